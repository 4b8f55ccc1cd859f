"""Adapter from external schema libraries to FormForge validators.

An ExternalSchema (see formforge.validation.types) validates a whole value
set at once. The adapter turns it into a ValidationSchema: one validator per
field, each re-running the schema over all current values and reporting
only the issue that belongs to its field.

Field names are not known up front, so validators are built on first
lookup and cached:

    adapter = create_schema_adapter(PydanticSchema(SignupForm))
    error = adapter["email"]("bad", {"email": "bad"})
"""

from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from formforge.validation.types import (
    ExternalSchema,
    FieldValidator,
    FormValues,
    ValidationOutcome,
)

FALLBACK_MESSAGE = "Validation error"


def _segment_key(segment: Any) -> Any:
    """Key of a path segment; segments may be plain keys or carry a `key`."""
    if isinstance(segment, Mapping) and "key" in segment:
        return segment["key"]
    return getattr(segment, "key", segment)


def _issue_path(issue: Any) -> tuple:
    return tuple(getattr(issue, "path", None) or ())


def _issue_message(issue: Any) -> str:
    return getattr(issue, "message", None) or FALLBACK_MESSAGE


def find_field_issue(
    issues: Iterable[Any],
    field: str,
    all_values: FormValues,
) -> Any | None:
    """Find the first issue that belongs to a field.

    An issue belongs to a field when the first segment of its path is the
    field name. An issue without a path belongs to the field only when the
    value set has exactly one field.
    """
    for issue in issues:
        path = _issue_path(issue)
        if path:
            if _segment_key(path[0]) == field:
                return issue
        elif len(all_values) == 1:
            return issue
    return None


class SchemaAdapter(Mapping[str, FieldValidator]):
    """Read-only ValidationSchema backed by an ExternalSchema.

    Lookup never fails: any field name yields a validator, which reports
    None when the schema has nothing to say about that field. Iteration
    yields the field names looked up so far.
    """

    def __init__(self, external_schema: ExternalSchema):
        self.external_schema = external_schema
        self._validators: dict[str, FieldValidator] = {}

    def get_validator(self, field: str) -> FieldValidator:
        """Get (building and caching on first use) the validator for a field."""
        validator = self._validators.get(field)
        if validator is None:
            validator = self._build_validator(field)
            self._validators[field] = validator
        return validator

    def _build_validator(self, field: str) -> FieldValidator:
        schema = self.external_schema

        def field_validator(value: Any, all_values: FormValues) -> ValidationOutcome:
            try:
                result = schema.parse(all_values)
            except Exception as exc:
                issue = find_field_issue(getattr(exc, "issues", None) or (), field, all_values)
                if issue is not None:
                    return _issue_message(issue)
                return str(exc) or FALLBACK_MESSAGE

            if result.success:
                return None

            issue = find_field_issue(result.issues, field, all_values)
            if issue is None:
                return None
            return _issue_message(issue)

        field_validator.__name__ = f"{field}_validator"
        return field_validator

    def __getitem__(self, field: str) -> FieldValidator:
        if not isinstance(field, str):
            raise KeyError(field)
        return self.get_validator(field)

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._validators))

    def __len__(self) -> int:
        return len(self._validators)

    def __repr__(self) -> str:
        return f"SchemaAdapter({self.external_schema!r})"


def create_schema_adapter(external_schema: ExternalSchema) -> SchemaAdapter:
    """Wrap an object schema as a ValidationSchema."""
    return SchemaAdapter(external_schema)


def create_single_field_validator(external_schema: ExternalSchema) -> FieldValidator:
    """Wrap a schema for one bare value as a FieldValidator.

    The first issue's message is reported, whatever its path.
    """

    def single_field_validator(
        value: Any, all_values: FormValues | None = None
    ) -> ValidationOutcome:
        try:
            result = external_schema.parse(value)
        except Exception as exc:
            issues = list(getattr(exc, "issues", None) or ())
            if issues:
                return _issue_message(issues[0])
            return str(exc) or FALLBACK_MESSAGE

        if not result.success and result.issues:
            return _issue_message(result.issues[0])
        return None

    return single_field_validator

