"""Declarative form definitions (YAML) for FormForge."""

from formforge.forms.loader import FieldModel, FormLoader, FormModel
from formforge.forms.validator import DefinitionIssue, validate_form_file, validate_forms_dir

__all__ = [
    "DefinitionIssue",
    "FieldModel",
    "FormLoader",
    "FormModel",
    "validate_form_file",
    "validate_forms_dir",
]
