"""ExternalSchema implementation over pydantic.

Wraps a pydantic model (or any type pydantic can validate) in a TypeAdapter
and reports validation errors as SchemaIssues. Error locations become issue
paths, so a model field's errors are attributed to that field.

Example:
    class Signup(BaseModel):
        email: str
        age: int = Field(ge=18)

    schema = create_schema_adapter(PydanticSchema(Signup))
"""

from typing import Any

from pydantic import TypeAdapter, ValidationError

from formforge.validation.types import ParseResult, SchemaIssue


class PydanticSchema:
    """Pydantic-backed ExternalSchema."""

    def __init__(self, model: Any):
        self.model = model
        self._adapter = TypeAdapter(model)

    def parse(self, data: Any) -> ParseResult:
        try:
            output = self._adapter.validate_python(data)
        except ValidationError as exc:
            return ParseResult(
                success=False,
                issues=tuple(
                    SchemaIssue(path=tuple(error["loc"]), message=error["msg"])
                    for error in exc.errors()
                ),
            )
        return ParseResult(success=True, output=output)

    def __repr__(self) -> str:
        name = getattr(self.model, "__name__", repr(self.model))
        return f"PydanticSchema({name})"
