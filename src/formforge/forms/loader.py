"""Load form definitions from YAML files."""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from formforge.errors import FormDefinitionError
from formforge.validation.combinators import as_validator
from formforge.validation.driver import FormDriver
from formforge.validation.registry import RuleRegistry
from formforge.validation.timing import async_validator
from formforge.validation.types import (
    FieldValidator,
    RuleDefinition,
    ValidationMode,
)

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_MS = 300

# Word boundaries for display names: snake_case and camelCase
_WORD_BOUNDARY = re.compile(r"_+|(?<=[a-z0-9])(?=[A-Z])")


@dataclass
class FieldModel:
    """A form field and its ordered rules."""

    name: str
    display_name: str
    rules: list[RuleDefinition] = field(default_factory=list)
    default: Any = None
    debounce: bool = False
    debounce_ms: float | None = None  # Overrides the engine default when set

    def build_validator(
        self,
        default_debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        *,
        debounce: bool = True,
    ) -> FieldValidator | None:
        """Resolve the field's rules to one validator; None without rules.

        Debounced fields get an async_validator around the composed rules
        unless debounce is False.
        """
        if not self.rules:
            return None

        validator = as_validator([RuleRegistry.create(rule) for rule in self.rules])

        if debounce and (self.debounce or self.debounce_ms is not None):
            delay = self.debounce_ms if self.debounce_ms is not None else default_debounce_ms
            validator = async_validator(validator, delay)

        return validator


@dataclass
class FormModel:
    name: str
    display_name: str
    fields: list[FieldModel]
    description: str = ""
    validate_on: ValidationMode | None = None
    revalidate_on: ValidationMode | None = None
    source: Path | None = None

    def get_field(self, name: str) -> FieldModel | None:
        for form_field in self.fields:
            if form_field.name == name:
                return form_field
        return None

    @property
    def field_names(self) -> list[str]:
        return [form_field.name for form_field in self.fields]

    def initial_values(self) -> dict[str, Any]:
        """Field defaults, keyed by field name."""
        return {form_field.name: form_field.default for form_field in self.fields}

    def build_schema(
        self,
        default_debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        *,
        debounce: bool = True,
    ) -> dict[str, FieldValidator]:
        """Build a ValidationSchema from the field rules.

        Every call returns fresh validators, so debounce and race-guard
        state is never shared between two schemas.

        Args:
            default_debounce_ms: Delay for fields marked `debounce: true`
            debounce: Set False to ignore field debounce settings
                (one-shot validation, e.g. an HTTP request)

        Raises:
            RuleNotRegisteredError: If a rule type is not registered
            FormDefinitionError: If a rule's params are malformed
        """
        schema: dict[str, FieldValidator] = {}
        for form_field in self.fields:
            validator = form_field.build_validator(default_debounce_ms, debounce=debounce)
            if validator is not None:
                schema[form_field.name] = validator
        return schema

    def create_driver(
        self,
        values: dict[str, Any] | None = None,
        *,
        validate_on: ValidationMode = ValidationMode.ON_BLUR,
        revalidate_on: ValidationMode = ValidationMode.ON_CHANGE,
        default_debounce_ms: float = DEFAULT_DEBOUNCE_MS,
        debounce: bool = True,
    ) -> FormDriver:
        """Create a FormDriver for this form.

        Modes declared in the form definition take precedence over the
        arguments. Given values are laid over the field defaults.
        """
        initial_values = self.initial_values()
        if values:
            initial_values.update(values)
        return FormDriver(
            initial_values,
            schema=self.build_schema(default_debounce_ms, debounce=debounce),
            validate_on=self.validate_on or validate_on,
            revalidate_on=self.revalidate_on or revalidate_on,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serializable summary (API responses, CLI output)."""
        return {
            "form": self.name,
            "displayName": self.display_name,
            "description": self.description,
            "fields": [
                {
                    "name": form_field.name,
                    "displayName": form_field.display_name,
                    "default": form_field.default,
                    "rules": [rule.type for rule in form_field.rules],
                }
                for form_field in self.fields
            ],
        }


class FormLoader:
    """Loads form definitions from a directory of YAML files."""

    def __init__(self, forms_path: Path):
        self.forms_path = forms_path
        self.forms: dict[str, FormModel] = {}

    def load_all(self) -> None:
        """Load every *.yaml file in the forms directory.

        Raises:
            FormDefinitionError: If a definition is malformed or a form name
                is defined twice
        """
        if not self.forms_path.is_dir():
            logger.warning("Forms directory %s does not exist", self.forms_path)
            return

        for yaml_file in sorted(self.forms_path.glob("*.yaml")):
            form = self.load_file(yaml_file)
            if form is None:
                continue
            if form.name in self.forms:
                raise FormDefinitionError(
                    f"Form '{form.name}' is defined in both "
                    f"{self.forms[form.name].source} and {yaml_file}"
                )
            self.forms[form.name] = form

        logger.info("Loaded %d form(s) from %s", len(self.forms), self.forms_path)

    def load_file(self, yaml_file: Path) -> FormModel | None:
        """Load a single form definition; None when the file holds no form."""
        try:
            with open(yaml_file, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as exc:
            raise FormDefinitionError(f"{yaml_file}: YAML parse error: {exc}") from exc

        if not isinstance(data, dict) or "form" not in data:
            logger.warning("Skipping %s: no 'form' key", yaml_file)
            return None

        return self._resolve_form(data, yaml_file)

    def get_form(self, name: str) -> FormModel | None:
        return self.forms.get(name)

    def list_forms(self) -> list[str]:
        return sorted(self.forms)

    def _resolve_form(self, data: dict, source: Path | None = None) -> FormModel:
        """Convert a form dict to a FormModel and check its references."""
        name = data["form"]
        if not isinstance(name, str) or not name:
            raise FormDefinitionError(f"{source}: 'form' must be a non-empty string")

        raw_fields = data.get("fields") or []
        if not isinstance(raw_fields, list):
            raise FormDefinitionError(f"Form '{name}': 'fields' must be a list")

        fields = [self._resolve_field(name, f) for f in raw_fields]

        form = FormModel(
            name=name,
            display_name=data.get("displayName", self._to_display_name(name)),
            fields=fields,
            description=data.get("description", ""),
            validate_on=self._resolve_mode(name, data.get("validateOn")),
            revalidate_on=self._resolve_mode(name, data.get("revalidateOn")),
            source=source,
        )
        self._check_references(form)
        return form

    def _resolve_field(self, form_name: str, data: Any) -> FieldModel:
        """Convert field dict to FieldModel."""
        if not isinstance(data, dict) or not data.get("name"):
            raise FormDefinitionError(f"Form '{form_name}': every field needs a name")

        name = data["name"]
        rules = []
        for rule_data in data.get("rules") or []:
            if not isinstance(rule_data, dict) or not rule_data.get("type"):
                raise FormDefinitionError(
                    f"Form '{form_name}' field '{name}': every rule needs a type"
                )
            rules.append(RuleDefinition.from_dict(rule_data))

        debounce_ms = data.get("debounceMs")
        if debounce_ms is not None and (
            isinstance(debounce_ms, bool) or not isinstance(debounce_ms, (int, float)) or debounce_ms < 0
        ):
            raise FormDefinitionError(
                f"Form '{form_name}' field '{name}': debounceMs must be a number >= 0"
            )

        return FieldModel(
            name=name,
            display_name=data.get("displayName", self._to_display_name(name)),
            rules=rules,
            default=data.get("default"),
            debounce=bool(data.get("debounce", False)),
            debounce_ms=debounce_ms,
        )

    def _resolve_mode(self, form_name: str, value: Any) -> ValidationMode | None:
        if value is None:
            return None
        try:
            return ValidationMode(value)
        except ValueError:
            raise FormDefinitionError(
                f"Form '{form_name}': unknown validation mode {value!r}"
            ) from None

    def _check_references(self, form: FormModel) -> None:
        """Check field names are unique and cross-field references resolve."""
        seen: set[str] = set()
        for form_field in form.fields:
            if form_field.name in seen:
                raise FormDefinitionError(
                    f"Form '{form.name}': duplicate field '{form_field.name}'"
                )
            seen.add(form_field.name)

        for form_field in form.fields:
            for rule in form_field.rules:
                if rule.type == "matches":
                    other = rule.params.get("field")
                    if other not in seen:
                        raise FormDefinitionError(
                            f"Form '{form.name}' field '{form_field.name}': "
                            f"'matches' refers to unknown field {other!r}"
                        )
                if rule.when:
                    other = rule.when.get("field") if isinstance(rule.when, dict) else None
                    if other not in seen:
                        raise FormDefinitionError(
                            f"Form '{form.name}' field '{form_field.name}': "
                            f"condition refers to unknown field {other!r}"
                        )

    def _to_display_name(self, name: str) -> str:
        """Convert snake_case or camelCase to Display Name."""
        return " ".join(word.capitalize() for word in _WORD_BOUNDARY.split(name) if word)
