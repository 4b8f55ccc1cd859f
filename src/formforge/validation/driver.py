"""Form validation driver for FormForge.

The driver owns the state of one form instance (values, errors, touched
flags, submission status) and decides when field validators run:

- validate_on: when a field is first validated (default on blur)
- revalidate_on: when a field that was validated before runs again
  (default on change)

Validator faults (exceptions) are handled here, not in the rules: the
fault is logged and its message becomes the field's error.

Usage:
    driver = FormDriver(
        {"email": "", "password": ""},
        schema={"email": [required(), email()], "password": min_length(8)},
    )

    await driver.set_field_value("email", "ada@example.com")
    await driver.set_field_touched("email")
    await driver.submit(save_account)
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from formforge.validation.combinators import run_validator
from formforge.validation.types import (
    FieldMeta,
    FieldValidator,
    FormValues,
    SchemaEntry,
    SubmissionStatus,
    ValidationMode,
    ValidationOutcome,
    ValidationSchema,
)

logger = logging.getLogger(__name__)

FALLBACK_ERROR = "Validation error"

SubmitHandler = Callable[[dict[str, Any], "FormDriver"], Awaitable[None] | None]
ErrorHandler = Callable[[dict[str, str]], Any]


def _validators(entry: SchemaEntry) -> list[FieldValidator]:
    if isinstance(entry, (list, tuple)):
        return list(entry)
    return [entry]


async def validate(
    schema: ValidationSchema,
    field: str,
    value: Any,
    all_values: FormValues,
) -> ValidationOutcome:
    """Run a field's validators from a schema, first error wins.

    Fields missing from the schema are valid. Exceptions raised by a
    validator propagate to the caller.
    """
    entry = schema.get(field)
    if not entry:
        return None

    for validator in _validators(entry):
        error = await run_validator(validator, value, all_values)
        if error:
            return error
    return None


class FormDriver:
    """Drives validation for a single form instance.

    Attributes:
        values: Current field values
        errors: Current field errors (fields without errors are absent)
        touched: Fields that have been blurred
        validating: Fields with a validation in flight
        has_validated: Fields validated at least once through blur
        is_submitting: True while submit() runs
        status: SubmissionStatus of the last submit
    """

    def __init__(
        self,
        initial_values: Mapping[str, Any] | None = None,
        schema: ValidationSchema | None = None,
        validate_on: ValidationMode = ValidationMode.ON_BLUR,
        revalidate_on: ValidationMode = ValidationMode.ON_CHANGE,
    ):
        self.initial_values: dict[str, Any] = dict(initial_values or {})
        self.schema: ValidationSchema = schema if schema is not None else {}
        self.validate_on = validate_on
        self.revalidate_on = revalidate_on

        self.values: dict[str, Any] = dict(self.initial_values)
        self.errors: dict[str, str] = {}
        self.touched: dict[str, bool] = {}
        self.validating: set[str] = set()
        self.has_validated: set[str] = set()
        self.is_submitting = False
        self.status = SubmissionStatus.IDLE

        # Per-field generation; only the latest validation may update errors
        self._generations: dict[str, int] = {}

    # =========================================================================
    # Derived State
    # =========================================================================

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def is_dirty(self) -> bool:
        return any(
            value != self.initial_values.get(name)
            for name, value in self.values.items()
        )

    def is_validating(self, field: str) -> bool:
        return field in self.validating

    def get_field_meta(self, field: str) -> FieldMeta:
        return FieldMeta(
            error=self.errors.get(field),
            touched=self.touched.get(field, False),
            is_dirty=self.values.get(field) != self.initial_values.get(field),
            is_validating=field in self.validating,
        )

    # =========================================================================
    # Validation
    # =========================================================================

    async def validate_field(self, field: str) -> ValidationOutcome:
        """Validate one field against the current values.

        Returns:
            The field's error message, or None when valid. A validation
            overtaken by a newer one for the same field still returns its
            own outcome but leaves errors untouched.
        """
        error, _ = await self._run_validation(field)
        return error

    async def _run_validation(self, field: str) -> tuple[ValidationOutcome, bool]:
        """Validate a field; the flag is False when the outcome is out of date.

        An outcome is out of date when a newer validation of the field has
        started, or when the values changed while the validators ran.
        """
        entry = self.schema.get(field)
        if not entry:
            return None, True

        generation = self._generations.get(field, 0) + 1
        self._generations[field] = generation
        self.validating.add(field)

        value = self.values.get(field)
        all_values = dict(self.values)

        try:
            error = await validate(self.schema, field, value, all_values)
        except Exception as e:
            logger.error("Validator for field '%s' failed: %s", field, e)
            error = str(e) or FALLBACK_ERROR
        finally:
            if self._generations.get(field) == generation:
                self.validating.discard(field)

        error = error or None

        if self._generations.get(field) != generation:
            logger.debug("Discarding superseded validation of '%s'", field)
            return error, False

        self.set_field_error(field, error)
        return error, self.values == all_values

    async def validate_form(self) -> dict[str, str]:
        """Validate every known field concurrently.

        Known fields are the schema's keys plus every field with a value.
        errors is replaced by the collected errors, which are returned.
        When values change while the validators run, or a field's
        validation is superseded (a debounced call resolving None), the
        form is validated again, so the errors always describe the values
        present when this returns.
        """
        while True:
            fields = list(dict.fromkeys([*self.schema.keys(), *self.values.keys()]))
            results = await asyncio.gather(*(self._run_validation(name) for name in fields))
            if all(current for _, current in results):
                break
            logger.debug("Values changed during validation, validating again")

        self.errors = {name: error for name, (error, _) in zip(fields, results) if error}
        logger.debug("Validated %d field(s), %d error(s)", len(fields), len(self.errors))
        return dict(self.errors)

    # =========================================================================
    # Field Events
    # =========================================================================

    async def set_field_value(self, field: str, value: Any) -> None:
        """Store a field value and validate when the modes ask for it."""
        self.values[field] = value
        logger.debug("set_field_value: %s=%r", field, value)

        should_validate = self.validate_on is ValidationMode.ON_CHANGE or (
            self.revalidate_on is ValidationMode.ON_CHANGE and field in self.has_validated
        )
        if should_validate:
            await self.validate_field(field)

    async def set_field_touched(self, field: str, touched: bool = True) -> None:
        """Store the touched flag; a blur validates under ON_BLUR."""
        self.touched[field] = touched
        logger.debug("set_field_touched: %s=%s", field, touched)

        if touched and self.validate_on is ValidationMode.ON_BLUR and self.schema.get(field):
            self.has_validated.add(field)
            await self.validate_field(field)

    # =========================================================================
    # Submission
    # =========================================================================

    async def submit(
        self,
        on_submit: SubmitHandler,
        on_error: ErrorHandler | None = None,
    ) -> bool:
        """Validate the form and hand the values to on_submit.

        Returns:
            True when on_submit ran successfully, False when validation
            failed. Exceptions from on_submit set the error status and
            are re-raised.
        """
        self.is_submitting = True
        self.status = SubmissionStatus.SUBMITTING

        try:
            errors = await self.validate_form()

            if errors:
                self.status = SubmissionStatus.ERROR
                logger.debug("Submit blocked by %d error(s)", len(errors))
                if on_error is not None:
                    on_error(errors)
                return False

            result = on_submit(dict(self.values), self)
            if inspect.isawaitable(result):
                await result

            self.status = SubmissionStatus.SUCCESS
            return True
        except Exception:
            self.status = SubmissionStatus.ERROR
            raise
        finally:
            self.is_submitting = False

    # =========================================================================
    # Helpers
    # =========================================================================

    def set_values(self, values: Mapping[str, Any]) -> None:
        self.values = dict(values)

    def set_errors(self, errors: Mapping[str, str]) -> None:
        self.errors = {name: error for name, error in errors.items() if error}

    def set_field_error(self, field: str, error: str | None) -> None:
        if error:
            self.errors[field] = error
        else:
            self.errors.pop(field, None)

    def reset(self) -> None:
        """Restore initial values and clear all per-field state.

        Validations still in flight are discarded when they finish.
        """
        self.values = dict(self.initial_values)
        self.errors = {}
        self.touched = {}
        self.has_validated = set()
        # In-flight validations must not write into the reset form
        for field in self._generations:
            self._generations[field] += 1
        self.validating = set()
        self.is_submitting = False
        self.status = SubmissionStatus.IDLE
        logger.debug("Form reset")
