"""Rule registry for FormForge.

Resolves declarative RuleDefinitions (from YAML form definitions or dicts)
to FieldValidators. Built-in rules are registered by
register_builtin_rules(); applications register their own factories the
same way at startup.

Example:
    RuleRegistry.register_factory("username", _username_factory)

    validator = RuleRegistry.create(RuleDefinition(type="minLength", params={"length": 3}))
"""

import logging
import re
from collections.abc import Callable
from typing import Any

from formforge.errors import FormDefinitionError, RuleNotRegisteredError
from formforge.validation import rules
from formforge.validation.combinators import when
from formforge.validation.types import FieldValidator, FormValues, RuleDefinition

logger = logging.getLogger(__name__)

RuleFactory = Callable[[RuleDefinition], FieldValidator]

# Operators accepted in a rule's `when` condition
CONDITION_OPERATORS = ("equals", "notEquals", "in", "present")


class RuleRegistry:
    """Registry of rule factories keyed by rule type.

    Rule types must be registered before definitions can reference them.
    """

    _factories: dict[str, RuleFactory] = {}

    @classmethod
    def register_factory(cls, name: str, factory: RuleFactory) -> None:
        """Register a factory that builds validators from definitions.

        Idempotent - re-registering the same name is a no-op.

        Args:
            name: Rule type used in definitions (e.g., "minLength")
            factory: Function that takes a RuleDefinition and returns a FieldValidator
        """
        if name in cls._factories:
            return  # Already registered, no-op
        cls._factories[name] = factory

    @classmethod
    def create(cls, definition: RuleDefinition) -> FieldValidator:
        """Create a validator from a definition.

        A definition with a `when` condition is wrapped so the rule only
        runs while the condition holds.

        Raises:
            RuleNotRegisteredError: If the rule type is not registered
            FormDefinitionError: If the params or condition are malformed
        """
        factory = cls._factories.get(definition.type)
        if factory is None:
            raise RuleNotRegisteredError(
                f"Rule type '{definition.type}' is not registered. "
                "Available types: " + ", ".join(cls.list_registered())
            )

        validator = factory(definition)

        if definition.when:
            validator = when(build_condition(definition.when), validator)

        return validator

    @classmethod
    def is_registered(cls, name: str) -> bool:
        """Check if a rule type is registered."""
        return name in cls._factories

    @classmethod
    def list_registered(cls) -> list[str]:
        """List all registered rule types."""
        return sorted(cls._factories)

    @classmethod
    def clear(cls) -> None:
        """Clear all registrations. Primarily for testing."""
        cls._factories.clear()


# =============================================================================
# Conditions
# =============================================================================


def build_condition(condition: dict[str, Any]) -> Callable[[FormValues], bool]:
    """Build a predicate over form values from a condition dict.

    Supported forms (exactly one operator):
        {field: country, equals: US}
        {field: country, notEquals: US}
        {field: country, in: [US, CA]}
        {field: company, present: true}

    `present` treats None, "" and empty collections as absent.
    """
    if not isinstance(condition, dict):
        raise FormDefinitionError(f"Condition must be a mapping, got {condition!r}")

    field_name = condition.get("field")
    if not isinstance(field_name, str) or not field_name:
        raise FormDefinitionError(f"Condition {condition!r} must name a field")

    operators = [op for op in CONDITION_OPERATORS if op in condition]
    if len(operators) != 1:
        raise FormDefinitionError(
            f"Condition {condition!r} must use exactly one of: "
            + ", ".join(CONDITION_OPERATORS)
        )

    operator = operators[0]
    expected = condition[operator]

    if operator == "equals":
        return lambda values: values.get(field_name) == expected

    if operator == "notEquals":
        return lambda values: values.get(field_name) != expected

    if operator == "in":
        if not isinstance(expected, (list, tuple)):
            raise FormDefinitionError(f"Condition 'in' for '{field_name}' needs a list")
        allowed = tuple(expected)
        return lambda values: values.get(field_name) in allowed

    want_present = bool(expected)

    def present(values: FormValues) -> bool:
        value = values.get(field_name)
        is_present = value not in (None, "") and not (
            isinstance(value, (list, tuple, dict)) and not value
        )
        return is_present == want_present

    return present


# =============================================================================
# Built-in Rule Factories
# =============================================================================


def _param(definition: RuleDefinition, *names: str) -> Any:
    """Get the first present param among names (aliases)."""
    for name in names:
        if name in definition.params:
            return definition.params[name]
    raise FormDefinitionError(
        f"Rule '{definition.type}' requires param '{names[0]}'"
    )


def _number_param(definition: RuleDefinition, *names: str) -> float:
    value = _param(definition, *names)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise FormDefinitionError(
            f"Rule '{definition.type}' param '{names[0]}' must be a number, got {value!r}"
        )
    return value


def _message(definition: RuleDefinition) -> str | None:
    return definition.message or None


def _simple_factory(constructor: Callable[..., FieldValidator]) -> RuleFactory:
    """Factory for rules that take no params."""

    def factory(definition: RuleDefinition) -> FieldValidator:
        return constructor(_message(definition))

    return factory


def _min_length_factory(definition: RuleDefinition) -> FieldValidator:
    length = _number_param(definition, "length", "min")
    return rules.min_length(int(length), _message(definition))


def _max_length_factory(definition: RuleDefinition) -> FieldValidator:
    length = _number_param(definition, "length", "max")
    return rules.max_length(int(length), _message(definition))


def _min_factory(definition: RuleDefinition) -> FieldValidator:
    return rules.min_value(_number_param(definition, "value", "min"), _message(definition))


def _max_factory(definition: RuleDefinition) -> FieldValidator:
    return rules.max_value(_number_param(definition, "value", "max"), _message(definition))


def _pattern_factory(definition: RuleDefinition) -> FieldValidator:
    regex = _param(definition, "regex", "pattern")
    if not isinstance(regex, str):
        raise FormDefinitionError(f"Rule 'pattern' param 'regex' must be a string, got {regex!r}")
    try:
        return rules.pattern(regex, _message(definition))
    except re.error as exc:
        raise FormDefinitionError(f"Rule 'pattern' has an invalid regex {regex!r}: {exc}") from exc


def _matches_factory(definition: RuleDefinition) -> FieldValidator:
    field_name = _param(definition, "field")
    if not isinstance(field_name, str) or not field_name:
        raise FormDefinitionError("Rule 'matches' param 'field' must be a field name")
    return rules.matches(field_name, _message(definition))


def _one_of_factory(definition: RuleDefinition) -> FieldValidator:
    values = _param(definition, "values")
    if not isinstance(values, (list, tuple)):
        raise FormDefinitionError(f"Rule 'oneOf' param 'values' must be a list, got {values!r}")
    return rules.one_of(values, _message(definition))


def register_builtin_rules() -> None:
    """Register all built-in rules with the RuleRegistry."""
    RuleRegistry.register_factory("required", _simple_factory(rules.required))
    RuleRegistry.register_factory("email", _simple_factory(rules.email))
    RuleRegistry.register_factory("url", _simple_factory(rules.url))
    RuleRegistry.register_factory("phone", _simple_factory(rules.phone))
    RuleRegistry.register_factory("minLength", _min_length_factory)
    RuleRegistry.register_factory("maxLength", _max_length_factory)
    RuleRegistry.register_factory("min", _min_factory)
    RuleRegistry.register_factory("max", _max_factory)
    RuleRegistry.register_factory("pattern", _pattern_factory)
    RuleRegistry.register_factory("matches", _matches_factory)
    RuleRegistry.register_factory("oneOf", _one_of_factory)
    RuleRegistry.register_factory("creditCard", _simple_factory(rules.credit_card))
    RuleRegistry.register_factory("postalCode", _simple_factory(rules.postal_code))
    RuleRegistry.register_factory("alpha", _simple_factory(rules.alpha))
    RuleRegistry.register_factory("alphanumeric", _simple_factory(rules.alphanumeric))
    RuleRegistry.register_factory("numeric", _simple_factory(rules.numeric))
    RuleRegistry.register_factory("integer", _simple_factory(rules.integer))
    logger.debug("Registered %d built-in rules", len(RuleRegistry.list_registered()))

