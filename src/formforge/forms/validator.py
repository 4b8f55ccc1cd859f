"""
forms/validator.py: checks for FormForge YAML form definitions.

Two passes per file:
1. Structure: the document is validated against ``form.schema.json``.
2. Semantics: structurally valid forms are loaded and their rules resolved,
   catching unknown rule types, bad params and dangling field references.

Usage:
    from formforge.forms.validator import validate_forms_dir

    issues = validate_forms_dir(Path("forms"))
    for issue in issues:
        print(issue)
"""

import json
import logging
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator
from jsonschema.exceptions import ValidationError

from formforge.errors import FormForgeError
from formforge.forms.loader import FormLoader

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Public data types
# ---------------------------------------------------------------------------

_SCHEMAS_DIR = Path(__file__).parent / "schemas"
FORM_SCHEMA = "form.schema.json"


@dataclass
class DefinitionIssue:
    """A single finding for a form definition file."""

    file: Path
    message: str
    path: str = ""          # location within the document, e.g. "fields[0]/rules[1]"
    severity: str = "error"  # "error" | "warning"

    def __str__(self) -> str:
        loc = f" at {self.path}" if self.path else ""
        return f"[{self.severity.upper()}] {self.file}{loc}: {self.message}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "file": str(self.file),
            "message": self.message,
            "path": self.path,
            "severity": self.severity,
        }


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


@lru_cache(maxsize=None)
def _load_schema(name: str = FORM_SCHEMA) -> dict[str, Any]:
    schema_path = _SCHEMAS_DIR / name
    with schema_path.open(encoding="utf-8") as fh:
        return json.load(fh)


def _json_path(error: ValidationError) -> str:
    """Convert a jsonschema ValidationError path to a readable string."""
    parts = []
    for p in error.absolute_path:
        if isinstance(p, int):
            parts.append(f"[{p}]")
        else:
            parts.append(str(p))
    return "/".join(parts).replace("/[", "[")


def _sort_key(error: ValidationError) -> list[str]:
    return [str(p) for p in error.absolute_path]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def validate_form_file(yaml_path: Path, *, semantic: bool = True) -> list[DefinitionIssue]:
    """
    Validate a single form definition file.

    Args:
        yaml_path: Path to the YAML file to validate.
        semantic:  Also load the form and resolve its rules (requires the
                   rule types to be registered).

    Returns:
        A list of :class:`DefinitionIssue` objects (empty on success).
    """
    # 1. Parse YAML
    try:
        with yaml_path.open(encoding="utf-8") as fh:
            doc = yaml.safe_load(fh)
    except yaml.YAMLError as exc:
        return [DefinitionIssue(file=yaml_path, message=f"YAML parse error: {exc}")]

    if doc is None:
        return [
            DefinitionIssue(file=yaml_path, message="File is empty or contains only whitespace")
        ]

    # 2. Structure
    validator = Draft202012Validator(_load_schema())
    issues = [
        DefinitionIssue(file=yaml_path, message=error.message, path=_json_path(error))
        for error in sorted(validator.iter_errors(doc), key=_sort_key)
    ]
    if issues or not semantic:
        return issues

    # 3. Semantics
    try:
        form = FormLoader(yaml_path.parent).load_file(yaml_path)
        if form is not None:
            form.build_schema()
    except FormForgeError as exc:
        return [DefinitionIssue(file=yaml_path, message=str(exc))]

    return []


def validate_forms_dir(forms_dir: Path, *, semantic: bool = True) -> list[DefinitionIssue]:
    """
    Validate all ``*.yaml`` form definitions in *forms_dir*.

    Form names must also be unique across files.

    Returns:
        A flat list of :class:`DefinitionIssue` objects across all files.
        Empty list means all files are valid.
    """
    if not forms_dir.is_dir():
        return [
            DefinitionIssue(
                file=forms_dir,
                message=f"Forms directory does not exist: {forms_dir}",
            )
        ]

    all_issues: list[DefinitionIssue] = []
    seen: dict[str, Path] = {}

    for yaml_file in sorted(forms_dir.glob("*.yaml")):
        file_issues = validate_form_file(yaml_file, semantic=semantic)
        all_issues.extend(file_issues)
        if file_issues:
            continue

        with yaml_file.open(encoding="utf-8") as fh:
            name = (yaml.safe_load(fh) or {}).get("form")
        if name in seen:
            all_issues.append(
                DefinitionIssue(
                    file=yaml_file,
                    message=f"Form '{name}' is already defined in {seen[name]}",
                    path="form",
                )
            )
        else:
            seen[name] = yaml_file

    logger.debug("Checked form definitions in %s: %d issue(s)", forms_dir, len(all_issues))
    return all_issues
