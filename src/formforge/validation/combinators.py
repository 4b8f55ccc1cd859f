"""Composition combinators for FormForge validators.

- compose: run validators in order, first error wins
- when: only validate when a condition over all values holds
- cross_field_validator: validate a projection of several fields at once
"""

import inspect
from collections.abc import Awaitable, Callable, Iterable
from typing import Any

from formforge.validation.types import (
    FieldValidator,
    FormValues,
    SchemaEntry,
    ValidationOutcome,
)


async def run_validator(
    validator: FieldValidator,
    value: Any,
    all_values: FormValues,
) -> ValidationOutcome:
    """Call a validator and await its result if it is asynchronous."""
    result = validator(value, all_values)
    if inspect.isawaitable(result):
        result = await result
    return result


def compose(*validators: FieldValidator) -> FieldValidator:
    """Compose validators into one.

    Validators run strictly in order; the first error is returned and the
    rest are not called. The composed validator is always asynchronous.
    Exceptions raised by a validator propagate unchanged.

    Example:
        password = compose(required(), min_length(8))
    """

    async def composed(value: Any, all_values: FormValues) -> ValidationOutcome:
        for validator in validators:
            error = await run_validator(validator, value, all_values)
            if error:
                return error
        return None

    return composed


def when(
    condition: Callable[[FormValues], bool],
    validator: FieldValidator,
) -> FieldValidator:
    """Only validate when the condition holds for the current form values.

    When the condition is false the wrapped validator is not called at all,
    so guarded async checks make no network calls.

    Example:
        state = when(lambda values: values.get("country") == "US", required())
    """

    def conditional(
        value: Any, all_values: FormValues
    ) -> ValidationOutcome | Awaitable[ValidationOutcome]:
        if condition(all_values):
            return validator(value, all_values)
        return None

    return conditional


def cross_field_validator(
    field_names: Iterable[str],
    check: Callable[[dict[str, Any]], ValidationOutcome | Awaitable[ValidationOutcome]],
) -> FieldValidator:
    """Build a validator that depends on several fields.

    Only the listed fields are projected out of all_values (missing ones are
    None) and handed to `check`. The field being validated is not added
    implicitly; list it if it must take part.

    Example:
        password_match = cross_field_validator(
            ["password", "confirmPassword"],
            lambda v: None if v["password"] == v["confirmPassword"] else "Passwords must match",
        )
    """
    names = tuple(field_names)

    def cross_field(
        value: Any, all_values: FormValues
    ) -> ValidationOutcome | Awaitable[ValidationOutcome]:
        projection = {name: all_values.get(name) for name in names}
        return check(projection)

    return cross_field


def as_validator(entry: SchemaEntry) -> FieldValidator:
    """Normalize a schema entry (validator or list of validators) to one validator."""
    if isinstance(entry, (list, tuple)):
        if len(entry) == 1:
            return entry[0]
        return compose(*entry)
    return entry
