"""Tests for the external schema adapter (pydantic and JSON Schema)."""

from typing import Annotated

import pytest
from pydantic import BaseModel, Field, field_validator
from pydantic_core import PydanticCustomError

from formforge.schema import (
    JSONSchema,
    PydanticSchema,
    create_schema_adapter,
    create_single_field_validator,
)
from formforge.validation.types import ParseResult, SchemaIssue


class Signup(BaseModel):
    email: str
    age: int

    @field_validator("email")
    @classmethod
    def check_email(cls, value: str) -> str:
        if "@" not in value:
            raise PydanticCustomError("email", "Please enter a valid email")
        return value


EMAIL_JSON_SCHEMA = {
    "type": "object",
    "properties": {"email": {"type": "string", "format": "email"}},
}


class ExplodingSchema:
    """ExternalSchema whose parse raises instead of reporting."""

    def __init__(self, exc: Exception):
        self.exc = exc

    def parse(self, data):
        raise self.exc


class StaticSchema:
    """ExternalSchema returning a fixed result."""

    def __init__(self, result: ParseResult):
        self.result = result

    def parse(self, data):
        return self.result


class TestSchemaAdapterLookup:
    def test_lookup_is_memoized(self):
        adapter = create_schema_adapter(PydanticSchema(Signup))

        assert adapter["email"] is adapter["email"]
        assert adapter.get_validator("email") is adapter["email"]

    def test_iteration_yields_accessed_names(self):
        adapter = create_schema_adapter(PydanticSchema(Signup))
        assert list(adapter) == []

        adapter["email"]
        adapter["age"]

        assert list(adapter) == ["email", "age"]
        assert len(adapter) == 2

    def test_any_field_name_resolves(self):
        adapter = create_schema_adapter(PydanticSchema(Signup))
        assert "nickname" in adapter


class TestPydanticSchema:
    def test_field_error_attributed(self):
        adapter = create_schema_adapter(PydanticSchema(Signup))
        values = {"email": "bad", "age": 30}

        assert adapter["email"]("bad", values) == "Please enter a valid email"
        assert adapter["age"](30, values) is None

    def test_missing_field(self):
        adapter = create_schema_adapter(PydanticSchema(Signup))
        values = {"email": "ada@example.com"}

        assert adapter["age"](None, values) == "Field required"
        assert adapter["email"]("ada@example.com", values) is None

    def test_valid_values(self):
        adapter = create_schema_adapter(PydanticSchema(Signup))
        values = {"email": "ada@example.com", "age": 30}

        assert adapter["email"]("ada@example.com", values) is None

    def test_unknown_field_is_valid(self):
        adapter = create_schema_adapter(PydanticSchema(Signup))
        assert adapter["nickname"]("x", {"email": "bad", "age": 1}) is None

    def test_parse_result(self):
        result = PydanticSchema(Signup).parse({"email": "bad", "age": 30})

        assert result.success is False
        assert result.issues == (SchemaIssue(path=("email",), message="Please enter a valid email"),)


class TestJSONSchema:
    def test_format_error_attributed(self):
        adapter = create_schema_adapter(JSONSchema(EMAIL_JSON_SCHEMA))
        values = {"email": "bad"}

        assert adapter["email"]("bad", values) == "'bad' is not a 'email'"

    def test_other_fields_valid(self):
        adapter = create_schema_adapter(JSONSchema(EMAIL_JSON_SCHEMA))
        assert adapter["name"]("x", {"email": "bad", "name": "x"}) is None

    def test_valid_value(self):
        adapter = create_schema_adapter(JSONSchema(EMAIL_JSON_SCHEMA))
        assert adapter["email"]("ada@example.com", {"email": "ada@example.com"}) is None

    def test_parse_success_returns_data(self):
        result = JSONSchema(EMAIL_JSON_SCHEMA).parse({"email": "a@b.c"})
        assert result == ParseResult(success=True, output={"email": "a@b.c"})

    def test_missing_required_property_attributed_to_its_key(self):
        adapter = create_schema_adapter(JSONSchema({
            "type": "object",
            "properties": {"email": {"type": "string"}, "name": {"type": "string"}},
            "required": ["email"],
        }))
        values = {"name": "x"}

        assert adapter["name"]("x", values) is None
        assert adapter["email"](None, values) == "'email' is a required property"

    def test_required_issue_paths(self):
        result = JSONSchema({"type": "object", "required": ["name", "email"]}).parse({})

        assert [issue.path for issue in result.issues] == [("email",), ("name",)]


class TestIssueAttribution:
    def test_empty_path_with_single_field(self):
        schema = StaticSchema(ParseResult(False, issues=(SchemaIssue((), "Whole value bad"),)))
        adapter = create_schema_adapter(schema)

        assert adapter["email"]("x", {"email": "x"}) == "Whole value bad"

    def test_empty_path_with_several_fields(self):
        schema = StaticSchema(ParseResult(False, issues=(SchemaIssue((), "Whole value bad"),)))
        adapter = create_schema_adapter(schema)

        assert adapter["email"]("x", {"email": "x", "name": "y"}) is None

    def test_issue_without_message(self):
        schema = StaticSchema(ParseResult(False, issues=(SchemaIssue(("email",), None),)))
        adapter = create_schema_adapter(schema)

        assert adapter["email"]("x", {"email": "x"}) == "Validation error"

    def test_segment_with_key(self):
        schema = StaticSchema(
            ParseResult(False, issues=(SchemaIssue(({"key": "email"},), "Keyed issue"),))
        )
        adapter = create_schema_adapter(schema)

        assert adapter["email"]("x", {"email": "x", "name": "y"}) == "Keyed issue"


class TestParseExceptions:
    def test_exception_issue_for_field(self):
        exc = ValueError("boom")
        exc.issues = [SchemaIssue(("email",), "Bad email")]
        adapter = create_schema_adapter(ExplodingSchema(exc))

        assert adapter["email"]("x", {"email": "x", "name": "y"}) == "Bad email"

    def test_exception_message_fallback(self):
        exc = ValueError("boom")
        exc.issues = [SchemaIssue(("email",), "Bad email")]
        adapter = create_schema_adapter(ExplodingSchema(exc))

        assert adapter["name"]("y", {"email": "x", "name": "y"}) == "boom"

    def test_empty_exception_message(self):
        adapter = create_schema_adapter(ExplodingSchema(RuntimeError()))
        assert adapter["email"]("x", {"email": "x"}) == "Validation error"


class TestSingleFieldValidator:
    def test_pydantic_type(self):
        validator = create_single_field_validator(PydanticSchema(Annotated[int, Field(ge=18)]))

        assert validator(20, {}) is None
        assert validator(10, {}) == "Input should be greater than or equal to 18"

    def test_json_schema(self):
        validator = create_single_field_validator(JSONSchema({"type": "string", "minLength": 3}))

        assert validator("abcd", {}) is None
        assert validator("ab", {}) is not None

    def test_first_issue_regardless_of_path(self):
        schema = StaticSchema(
            ParseResult(False, issues=(SchemaIssue(("a",), "First"), SchemaIssue(("b",), "Second")))
        )
        assert create_single_field_validator(schema)("x") == "First"

    def test_exception_issues(self):
        exc = ValueError("boom")
        exc.issues = [SchemaIssue((), "From issues")]

        assert create_single_field_validator(ExplodingSchema(exc))("x") == "From issues"
        assert create_single_field_validator(ExplodingSchema(ValueError("boom")))("x") == "boom"
