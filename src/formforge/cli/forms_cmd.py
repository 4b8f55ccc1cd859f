"""Form CLI commands: check definitions and validate values."""

import asyncio
import json
from pathlib import Path
from typing import Any

import click
import yaml

from formforge.config import EngineConfig
from formforge.errors import FormForgeError
from formforge.forms.loader import FormLoader
from formforge.forms.validator import validate_form_file, validate_forms_dir
from formforge.validation.messages import load_message_catalog, set_error_messages


def _load_config() -> EngineConfig:
    try:
        config = EngineConfig.from_env()
    except FormForgeError as e:
        click.echo(click.style(f"Configuration error: {e}", fg="red"), err=True)
        raise SystemExit(1)
    config.apply_log_level()
    return config


def _load_values(values_file: Path) -> dict[str, Any]:
    """Read a YAML or JSON values file (JSON is valid YAML)."""
    try:
        with values_file.open(encoding="utf-8") as fh:
            values = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        click.echo(click.style(f"Cannot parse {values_file}: {e}", fg="red"), err=True)
        raise SystemExit(1)

    if values is None:
        return {}
    if not isinstance(values, dict):
        click.echo(
            click.style(f"{values_file} must contain a mapping of field -> value", fg="red"),
            err=True,
        )
        raise SystemExit(1)
    return values


@click.group()
def forms():
    """Form definition commands."""
    pass


@forms.command()
@click.option(
    "--path",
    "target_path",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Check a single YAML file instead of the whole forms directory.",
)
def check(target_path: Path | None):
    """Check form definitions against the form JSON Schema and rule registry."""
    config = _load_config()

    if target_path is not None:
        issues = validate_form_file(target_path)
    else:
        if not config.forms_path.is_dir():
            click.echo(f"Error: Forms directory not found at {config.forms_path}", err=True)
            raise SystemExit(1)
        issues = validate_forms_dir(config.forms_path)

    for issue in issues:
        colour = "red" if issue.severity == "error" else "yellow"
        click.echo(click.style(str(issue), fg=colour))

    errors = [i for i in issues if i.severity == "error"]
    if errors:
        click.echo(click.style(f"\n{len(errors)} error(s) found", fg="red", bold=True))
        raise SystemExit(1)

    if target_path is None:
        loader = FormLoader(config.forms_path)
        loader.load_all()
        names = loader.list_forms()
        click.echo(f"Loaded {len(names)} form(s):")
        for name in names:
            form = loader.get_form(name)
            field_count = len(form.fields) if form else 0
            click.echo(f"  ✓ {name} ({field_count} fields)")

    click.echo(click.style("All form definitions are valid.", fg="green", bold=True))


@forms.command()
@click.argument("form_name")
@click.argument("values_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "--messages",
    "messages_file",
    default=None,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="YAML message catalog overriding the default error messages.",
)
@click.option("--json", "as_json", is_flag=True, default=False, help="Print the result as JSON.")
def validate(form_name: str, values_file: Path, messages_file: Path | None, as_json: bool):
    """Validate a values file against a form definition."""
    config = _load_config()

    try:
        # Messages are resolved when rules are built, so load them first
        for catalog in (config.messages_path, messages_file):
            if catalog is not None:
                set_error_messages(load_message_catalog(catalog))

        loader = FormLoader(config.forms_path)
        loader.load_all()
        form = loader.get_form(form_name)
        if form is None:
            click.echo(f"Error: Form '{form_name}' not found in {config.forms_path}", err=True)
            raise SystemExit(1)

        values = _load_values(values_file)
        driver = form.create_driver(values, debounce=False)
    except FormForgeError as e:
        click.echo(click.style(f"Error: {e}", fg="red"), err=True)
        raise SystemExit(1)

    errors = asyncio.run(driver.validate_form())

    if as_json:
        click.echo(json.dumps({"form": form_name, "valid": not errors, "errors": errors}, indent=2))
    elif errors:
        for field_name, message in errors.items():
            click.echo(click.style(f"  ✗ {field_name}: {message}", fg="red"))
    else:
        click.echo(click.style(f"Values are valid for form '{form_name}'.", fg="green", bold=True))

    if errors:
        raise SystemExit(1)
