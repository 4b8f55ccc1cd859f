"""FormForge CLI entry point."""

import click

from formforge.validation.registry import RuleRegistry, register_builtin_rules


@click.group()
def cli():
    """FormForge: declarative form validation CLI."""
    register_builtin_rules()


@cli.command()
def rules():
    """List registered rule types."""
    for name in RuleRegistry.list_registered():
        click.echo(name)


# Register subcommand groups
from formforge.cli.forms_cmd import forms  # noqa: E402

cli.add_command(forms)
