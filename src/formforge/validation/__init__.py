"""FormForge validation engine.

This module provides field-level validation in layers:
- Rules: ready-made validators (required, email, min_length, ...)
- Combinators: compose, when, cross_field_validator
- Temporal wrappers: debounce, with_race_condition_prevention, async_validator
- Registry: declarative rule definitions resolved to validators
- Driver: per-form state and validation timing

Usage:
    from formforge.validation import (
        FormDriver,
        compose,
        email,
        min_length,
        required,
    )

    schema = {
        "email": [required(), email()],
        "password": compose(required(), min_length(8)),
    }
    driver = FormDriver({"email": "", "password": ""}, schema=schema)
    errors = await driver.validate_form()
"""

from formforge.validation.combinators import (
    as_validator,
    compose,
    cross_field_validator,
    run_validator,
    when,
)
from formforge.validation.driver import FormDriver, validate
from formforge.validation.messages import (
    DEFAULT_MESSAGES,
    MessageRegistry,
    get_error_message,
    load_message_catalog,
    message_registry,
    reset_error_messages,
    set_error_messages,
)
from formforge.validation.registry import (
    RuleRegistry,
    build_condition,
    register_builtin_rules,
)
from formforge.validation.rules import (
    Rule,
    alpha,
    alphanumeric,
    credit_card,
    email,
    integer,
    matches,
    max_length,
    max_value,
    min_length,
    min_value,
    numeric,
    one_of,
    pattern,
    phone,
    postal_code,
    required,
    url,
)
from formforge.validation.timing import (
    Debounced,
    RaceGuarded,
    async_validator,
    debounce,
    with_race_condition_prevention,
)
from formforge.validation.types import (
    ExternalSchema,
    FieldMeta,
    FieldValidator,
    FormValues,
    ParseResult,
    RuleDefinition,
    SchemaIssue,
    SubmissionStatus,
    ValidationMode,
    ValidationSchema,
)

__all__ = [
    # Types
    "ExternalSchema",
    "FieldMeta",
    "FieldValidator",
    "FormValues",
    "ParseResult",
    "RuleDefinition",
    "SchemaIssue",
    "SubmissionStatus",
    "ValidationMode",
    "ValidationSchema",
    # Rules
    "Rule",
    "alpha",
    "alphanumeric",
    "credit_card",
    "email",
    "integer",
    "matches",
    "max_length",
    "max_value",
    "min_length",
    "min_value",
    "numeric",
    "one_of",
    "pattern",
    "phone",
    "postal_code",
    "required",
    "url",
    # Combinators
    "as_validator",
    "compose",
    "cross_field_validator",
    "run_validator",
    "when",
    # Temporal wrappers
    "Debounced",
    "RaceGuarded",
    "async_validator",
    "debounce",
    "with_race_condition_prevention",
    # Messages
    "DEFAULT_MESSAGES",
    "MessageRegistry",
    "get_error_message",
    "load_message_catalog",
    "message_registry",
    "reset_error_messages",
    "set_error_messages",
    # Registry
    "RuleRegistry",
    "build_condition",
    "register_builtin_rules",
    # Driver
    "FormDriver",
    "validate",
]
