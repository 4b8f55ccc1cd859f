"""External schema integration for FormForge.

Usage:
    from formforge.schema import JSONSchema, PydanticSchema, create_schema_adapter

    schema = create_schema_adapter(PydanticSchema(SignupForm))
    driver = FormDriver(initial_values, schema=schema)
"""

from formforge.schema.adapter import (
    SchemaAdapter,
    create_schema_adapter,
    create_single_field_validator,
    find_field_issue,
)
from formforge.schema.json_schema import JSONSchema
from formforge.schema.pydantic_schema import PydanticSchema

__all__ = [
    "JSONSchema",
    "PydanticSchema",
    "SchemaAdapter",
    "create_schema_adapter",
    "create_single_field_validator",
    "find_field_issue",
]
