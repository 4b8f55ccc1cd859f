"""ExternalSchema implementation over JSON Schema.

Validates with jsonschema's Draft 2020-12 validator. Formats ("email",
"uri", ...) are checked, unlike jsonschema's default where formats are
annotations only.

Example:
    schema = create_schema_adapter(JSONSchema({
        "type": "object",
        "properties": {"email": {"type": "string", "format": "email"}},
    }))
"""

from typing import Any

from jsonschema import Draft202012Validator, FormatChecker
from jsonschema.exceptions import ValidationError

from formforge.validation.types import ParseResult, SchemaIssue


def _issue_path(error: ValidationError) -> tuple:
    """Location of an error; a missing required property is located at its key."""
    path = tuple(error.absolute_path)
    if error.validator == "required" and isinstance(error.instance, dict):
        missing = [
            name for name in error.validator_value if name not in error.instance
        ]
        for name in missing:
            if repr(name) in error.message:
                return path + (name,)
        if missing:
            return path + (missing[0],)
    return path


def _sort_key(issue: SchemaIssue) -> list[str]:
    return [str(part) for part in issue.path]


class JSONSchema:
    """jsonschema-backed ExternalSchema.

    Raises:
        jsonschema.exceptions.SchemaError: If the schema itself is invalid
    """

    def __init__(self, schema: dict[str, Any], format_checker: FormatChecker | None = None):
        Draft202012Validator.check_schema(schema)
        self.schema = schema
        self._validator = Draft202012Validator(
            schema,
            format_checker=format_checker or Draft202012Validator.FORMAT_CHECKER,
        )

    def parse(self, data: Any) -> ParseResult:
        issues = sorted(
            (
                SchemaIssue(path=_issue_path(error), message=error.message)
                for error in self._validator.iter_errors(data)
            ),
            key=_sort_key,
        )
        if not issues:
            return ParseResult(success=True, output=data)
        return ParseResult(success=False, issues=tuple(issues))

    def __repr__(self) -> str:
        return f"JSONSchema({self.schema.get('title') or self.schema.get('$id') or '...'})"
