"""Tests for the form validation driver."""

import asyncio
import logging
from unittest.mock import AsyncMock, MagicMock

import pytest

from formforge.schema import JSONSchema, create_schema_adapter
from formforge.validation.driver import FormDriver, validate
from formforge.validation.rules import email, min_length, required
from formforge.validation.timing import async_validator
from formforge.validation.types import FieldMeta, SubmissionStatus, ValidationMode


@pytest.fixture(autouse=True)
def default_messages(clean_messages):
    yield


def signup_driver(**kwargs) -> FormDriver:
    return FormDriver(
        {"email": "", "password": ""},
        schema={"email": [required(), email()], "password": min_length(8)},
        **kwargs,
    )


class TestValidateFunction:
    @pytest.mark.asyncio
    async def test_first_error_in_list_wins(self):
        schema = {"email": [required(), email()]}

        assert await validate(schema, "email", "", {}) == "This field is required"
        assert await validate(schema, "email", "nope", {}) == "Please enter a valid email address"
        assert await validate(schema, "email", "a@b.co", {}) is None

    @pytest.mark.asyncio
    async def test_field_without_validators(self):
        assert await validate({}, "anything", "x", {}) is None

    @pytest.mark.asyncio
    async def test_faults_propagate(self):
        def broken(value, all_values):
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await validate({"x": broken}, "x", 1, {})


class TestValidateField:
    @pytest.mark.asyncio
    async def test_records_error(self):
        driver = signup_driver()

        assert await driver.validate_field("email") == "This field is required"
        assert driver.errors == {"email": "This field is required"}
        assert not driver.is_valid

    @pytest.mark.asyncio
    async def test_clears_error_when_valid(self):
        driver = signup_driver()
        await driver.validate_field("email")

        driver.values["email"] = "ada@example.com"
        assert await driver.validate_field("email") is None
        assert "email" not in driver.errors

    @pytest.mark.asyncio
    async def test_validators_receive_all_values(self):
        seen = MagicMock(return_value=None)
        driver = FormDriver({"a": 1, "b": 2}, schema={"a": seen})

        await driver.validate_field("a")

        seen.assert_called_once_with(1, {"a": 1, "b": 2})

    @pytest.mark.asyncio
    async def test_fault_becomes_field_error(self, caplog):
        def broken(value, all_values):
            raise RuntimeError("lookup failed")

        driver = FormDriver({"username": "bob"}, schema={"username": broken})

        with caplog.at_level(logging.ERROR, logger="formforge.validation.driver"):
            error = await driver.validate_field("username")

        assert error == "lookup failed"
        assert driver.errors == {"username": "lookup failed"}
        assert "lookup failed" in caplog.text

    @pytest.mark.asyncio
    async def test_fault_without_message(self):
        def broken(value, all_values):
            raise RuntimeError()

        driver = FormDriver({"username": "bob"}, schema={"username": broken})

        assert await driver.validate_field("username") == "Validation error"

    @pytest.mark.asyncio
    async def test_is_validating_while_in_flight(self):
        release = asyncio.Event()

        async def slow(value, all_values):
            await release.wait()
            return None

        driver = FormDriver({"username": "bob"}, schema={"username": slow})

        task = asyncio.create_task(driver.validate_field("username"))
        await asyncio.sleep(0)

        assert driver.is_validating("username")
        assert driver.get_field_meta("username").is_validating

        release.set()
        await task

        assert not driver.is_validating("username")

    @pytest.mark.asyncio
    async def test_superseded_validation_does_not_update_errors(self):
        async def validator(value, all_values):
            if value == "slow":
                await asyncio.sleep(0.05)
                return "slow error"
            return None

        driver = FormDriver({"name": "slow"}, schema={"name": validator})

        first = asyncio.create_task(driver.validate_field("name"))
        await asyncio.sleep(0)

        driver.values["name"] = "fast"
        assert await driver.validate_field("name") is None

        assert await first == "slow error"
        assert "name" not in driver.errors
        assert not driver.is_validating("name")

    @pytest.mark.asyncio
    async def test_reset_discards_in_flight_validation(self):
        release = asyncio.Event()

        async def slow(value, all_values):
            await release.wait()
            return "bad"

        driver = FormDriver({"name": "x"}, schema={"name": slow})

        task = asyncio.create_task(driver.validate_field("name"))
        await asyncio.sleep(0)
        assert driver.is_validating("name")

        driver.reset()
        assert not driver.is_validating("name")

        release.set()
        assert await task == "bad"

        assert driver.errors == {}
        assert not driver.is_validating("name")


class TestValidateForm:
    @pytest.mark.asyncio
    async def test_collects_errors(self):
        driver = signup_driver()
        driver.values["password"] = "short"

        errors = await driver.validate_form()

        assert errors == {
            "email": "This field is required",
            "password": "Must be at least 8 characters",
        }
        assert driver.errors == errors

    @pytest.mark.asyncio
    async def test_replaces_previous_errors(self):
        driver = signup_driver()
        driver.set_field_error("stale", "old error")
        driver.values.update({"email": "ada@example.com", "password": "long enough"})

        assert await driver.validate_form() == {}
        assert driver.is_valid

    @pytest.mark.asyncio
    async def test_schema_adapter_fields_come_from_values(self):
        schema = create_schema_adapter(JSONSchema({
            "type": "object",
            "properties": {"email": {"type": "string", "format": "email"}},
        }))
        driver = FormDriver({"email": "bad", "name": "Ada"}, schema=schema)

        errors = await driver.validate_form()

        assert errors == {"email": "'bad' is not a 'email'"}

    @pytest.mark.asyncio
    async def test_fields_validated_concurrently(self):
        started = []
        release = asyncio.Event()

        async def gated(value, all_values):
            started.append(value)
            await release.wait()
            return None

        driver = FormDriver({"a": "a", "b": "b"}, schema={"a": gated, "b": gated})

        task = asyncio.create_task(driver.validate_form())
        await asyncio.sleep(0.01)

        assert sorted(started) == ["a", "b"]
        release.set()
        assert await task == {}


class TestFieldEvents:
    @pytest.mark.asyncio
    async def test_on_blur_does_not_validate_on_change(self):
        driver = signup_driver()

        await driver.set_field_value("email", "nope")

        assert driver.errors == {}

    @pytest.mark.asyncio
    async def test_blur_validates_then_change_revalidates(self):
        driver = signup_driver()
        await driver.set_field_value("email", "nope")

        await driver.set_field_touched("email")
        assert driver.errors == {"email": "Please enter a valid email address"}
        assert "email" in driver.has_validated

        await driver.set_field_value("email", "ada@example.com")
        assert driver.errors == {}

    @pytest.mark.asyncio
    async def test_validate_on_change(self):
        driver = signup_driver(validate_on=ValidationMode.ON_CHANGE)

        await driver.set_field_value("email", "nope")

        assert driver.errors == {"email": "Please enter a valid email address"}

    @pytest.mark.asyncio
    async def test_revalidate_on_submit_skips_change(self):
        driver = signup_driver(revalidate_on=ValidationMode.ON_SUBMIT)
        await driver.set_field_value("email", "nope")
        await driver.set_field_touched("email")

        await driver.set_field_value("email", "ada@example.com")

        assert driver.errors == {"email": "Please enter a valid email address"}

    @pytest.mark.asyncio
    async def test_validate_on_submit_skips_blur(self):
        driver = signup_driver(validate_on=ValidationMode.ON_SUBMIT)

        await driver.set_field_touched("email")

        assert driver.errors == {}
        assert driver.touched == {"email": True}

    @pytest.mark.asyncio
    async def test_untouch_does_not_validate(self):
        driver = signup_driver()

        await driver.set_field_touched("email", False)

        assert driver.errors == {}
        assert driver.has_validated == set()


class TestSubmit:
    @pytest.mark.asyncio
    async def test_success(self):
        driver = signup_driver()
        driver.set_values({"email": "ada@example.com", "password": "long enough"})
        on_submit = AsyncMock()

        assert await driver.submit(on_submit) is True

        on_submit.assert_awaited_once_with(
            {"email": "ada@example.com", "password": "long enough"}, driver
        )
        assert driver.status is SubmissionStatus.SUCCESS
        assert not driver.is_submitting

    @pytest.mark.asyncio
    async def test_validation_errors_block_submit(self):
        driver = signup_driver()
        on_submit = AsyncMock()
        on_error = MagicMock()

        assert await driver.submit(on_submit, on_error) is False

        on_submit.assert_not_called()
        on_error.assert_called_once_with({"email": "This field is required"})
        assert driver.status is SubmissionStatus.ERROR
        assert not driver.is_submitting

    @pytest.mark.asyncio
    async def test_handler_exception_reraised(self):
        driver = FormDriver({"name": "Ada"})
        on_submit = AsyncMock(side_effect=ConnectionError("offline"))

        with pytest.raises(ConnectionError):
            await driver.submit(on_submit)

        assert driver.status is SubmissionStatus.ERROR
        assert not driver.is_submitting

    @pytest.mark.asyncio
    async def test_submitting_state_during_handler(self):
        driver = FormDriver({"name": "Ada"})
        observed = {}

        def on_submit(values, form):
            observed["is_submitting"] = form.is_submitting
            observed["status"] = form.status

        await driver.submit(on_submit)

        assert observed == {"is_submitting": True, "status": SubmissionStatus.SUBMITTING}


class TestStateHelpers:
    @pytest.mark.asyncio
    async def test_reset(self):
        driver = signup_driver()
        await driver.set_field_value("email", "nope")
        await driver.set_field_touched("email")
        await driver.submit(AsyncMock())

        driver.reset()

        assert driver.values == {"email": "", "password": ""}
        assert driver.errors == {}
        assert driver.touched == {}
        assert driver.has_validated == set()
        assert driver.status is SubmissionStatus.IDLE

    def test_dirty_tracking(self):
        driver = signup_driver()
        assert not driver.is_dirty

        driver.values["email"] = "ada@example.com"

        assert driver.is_dirty
        assert driver.get_field_meta("email").is_dirty
        assert not driver.get_field_meta("password").is_dirty

    def test_field_meta(self):
        driver = signup_driver()
        driver.set_field_error("email", "Bad")
        driver.touched["email"] = True

        meta = driver.get_field_meta("email")

        assert meta == FieldMeta(error="Bad", touched=True, is_dirty=False, is_validating=False)
        assert meta.to_dict() == {
            "error": "Bad",
            "touched": True,
            "isDirty": False,
            "isValidating": False,
        }

    def test_set_errors_drops_empty(self):
        driver = signup_driver()
        driver.set_errors({"email": "Bad", "password": None})

        assert driver.errors == {"email": "Bad"}

        driver.set_field_error("email", None)
        assert driver.is_valid


def username_driver(**kwargs) -> tuple[FormDriver, list]:
    checked = []

    async def username_available(value, all_values):
        checked.append(value)
        return "Username is taken" if value == "bob" else None

    driver = FormDriver(
        {"username": "alice"},
        schema={"username": async_validator(username_available, 50)},
        **kwargs,
    )
    return driver, checked


class TestSubmitWithChangingValues:
    @pytest.mark.asyncio
    async def test_value_changed_during_submit_is_validated(self):
        driver, checked = username_driver()
        on_submit = AsyncMock()

        task = asyncio.create_task(driver.submit(on_submit))
        await asyncio.sleep(0.01)
        await driver.set_field_value("username", "bob")

        assert await task is False
        on_submit.assert_not_called()
        assert driver.errors == {"username": "Username is taken"}
        assert checked[-1] == "bob"

    @pytest.mark.asyncio
    async def test_superseded_debounced_call_is_not_treated_as_valid(self):
        driver, checked = username_driver(validate_on=ValidationMode.ON_CHANGE)
        on_submit = AsyncMock()

        task = asyncio.create_task(driver.submit(on_submit))
        await asyncio.sleep(0.01)
        await driver.set_field_value("username", "bob")

        assert await task is False
        on_submit.assert_not_called()
        assert driver.errors == {"username": "Username is taken"}
        assert driver.status is SubmissionStatus.ERROR

    @pytest.mark.asyncio
    async def test_submits_latest_valid_value(self):
        driver, checked = username_driver(validate_on=ValidationMode.ON_CHANGE)
        on_submit = AsyncMock()

        task = asyncio.create_task(driver.submit(on_submit))
        await asyncio.sleep(0.01)
        await driver.set_field_value("username", "carol")

        assert await task is True
        on_submit.assert_awaited_once_with({"username": "carol"}, driver)
        assert checked == ["carol"]
