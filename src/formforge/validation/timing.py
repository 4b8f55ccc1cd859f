"""Temporal wrappers for asynchronous validators.

- debounce: collapse rapid calls into one validator invocation per window
- with_race_condition_prevention: only the most recently started call may
  report a result; older calls resolve None
- async_validator: both, with the race guard innermost

Everything runs on the asyncio event loop; nothing here uses threads.
Each wrapper instance owns its own timer, counters and timestamps, so two
wrappers around the same validator never interfere.

Example:
    async def username_available(value, all_values):
        taken = await api.username_taken(value)
        return "Username is taken" if taken else None

    check_username = async_validator(username_available, delay_ms=500)
"""

import asyncio
import logging
from typing import Any

from formforge.validation.combinators import run_validator
from formforge.validation.types import FieldValidator, FormValues, ValidationOutcome

logger = logging.getLogger(__name__)


# =============================================================================
# Debounce
# =============================================================================


class Debounced:
    """A debounced validator.

    On each call any pending trailing call is cancelled and its caller
    resolves None. Then:
    - leading edge: if `leading` and at least `delay_ms` passed since the
      last real invocation, the validator runs immediately;
    - trailing edge: otherwise, if `trailing`, the validator runs once the
      timer of `delay_ms` expires, unless a newer call replaces it;
    - neither: the last computed result is returned without invoking the
      validator.
    """

    def __init__(
        self,
        validator: FieldValidator,
        delay_ms: float = 300,
        leading: bool = False,
        trailing: bool = True,
    ):
        if delay_ms < 0:
            raise ValueError(f"delay_ms must be >= 0, got {delay_ms}")
        self.validator = validator
        self.delay_ms = delay_ms
        self.leading = leading
        self.trailing = trailing

        self._timer: asyncio.TimerHandle | None = None
        self._waiter: asyncio.Future[ValidationOutcome] | None = None
        self._last_call_time: float | None = None
        self._last_result: ValidationOutcome = None
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def pending(self) -> bool:
        """True while a trailing call is waiting for its timer."""
        return self._timer is not None

    @property
    def last_result(self) -> ValidationOutcome:
        return self._last_result

    async def __call__(self, value: Any, all_values: FormValues) -> ValidationOutcome:
        loop = asyncio.get_running_loop()
        now = loop.time()

        self._cancel_pending()

        # Leading edge
        if self.leading and self._elapsed_ms(now) >= self.delay_ms:
            self._last_call_time = now
            self._last_result = await run_validator(self.validator, value, all_values)
            return self._last_result

        # Trailing edge
        if self.trailing:
            waiter: asyncio.Future[ValidationOutcome] = loop.create_future()
            self._waiter = waiter
            self._timer = loop.call_later(
                self.delay_ms / 1000, self._fire, waiter, value, all_values
            )
            try:
                return await waiter
            except asyncio.CancelledError:
                if self._waiter is waiter:
                    self._cancel_pending()
                raise

        return self._last_result

    def _elapsed_ms(self, now: float) -> float:
        if self._last_call_time is None:
            return float("inf")
        return (now - self._last_call_time) * 1000

    def _cancel_pending(self) -> None:
        """Drop the pending trailing call; its caller resolves None."""
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
        if self._waiter is not None:
            if not self._waiter.done():
                self._waiter.set_result(None)
            self._waiter = None

    def _fire(
        self,
        waiter: "asyncio.Future[ValidationOutcome]",
        value: Any,
        all_values: FormValues,
    ) -> None:
        self._timer = None
        if self._waiter is waiter:
            self._waiter = None
        loop = asyncio.get_running_loop()
        self._last_call_time = loop.time()
        task = loop.create_task(self._run(waiter, value, all_values))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _run(
        self,
        waiter: "asyncio.Future[ValidationOutcome]",
        value: Any,
        all_values: FormValues,
    ) -> None:
        try:
            result = await run_validator(self.validator, value, all_values)
        except asyncio.CancelledError:
            waiter.cancel()
            raise
        except Exception as exc:
            # Hand the fault to the caller waiting on this call
            if waiter.done():
                logger.debug("Debounced validator failed after its caller left: %s", exc)
            else:
                waiter.set_exception(exc)
            return

        self._last_result = result
        if not waiter.done():
            waiter.set_result(result)


def debounce(
    validator: FieldValidator,
    delay_ms: float = 300,
    *,
    leading: bool = False,
    trailing: bool = True,
) -> Debounced:
    """Debounce a validator.

    Args:
        validator: The validator to wrap (sync or async)
        delay_ms: Quiet period in milliseconds
        leading: Invoke immediately when the window has elapsed
        trailing: Invoke once the window expires after the last call

    Returns:
        A debounced validator with its own timer state
    """
    return Debounced(validator, delay_ms, leading=leading, trailing=trailing)


# =============================================================================
# Race Condition Prevention
# =============================================================================


class RaceGuarded:
    """A validator that only reports the result of its latest call.

    Each call takes a strictly increasing id before awaiting the validator.
    When the validator settles, a call that is no longer the latest resolves
    None. Calls are never aborted; only their results are suppressed.
    Exceptions propagate unchanged.
    """

    def __init__(self, validator: FieldValidator):
        self.validator = validator
        self._latest_call_id = 0

    @property
    def latest_call_id(self) -> int:
        return self._latest_call_id

    async def __call__(self, value: Any, all_values: FormValues) -> ValidationOutcome:
        self._latest_call_id += 1
        call_id = self._latest_call_id

        result = await run_validator(self.validator, value, all_values)

        if call_id == self._latest_call_id:
            return result

        # A newer call has started; this result is stale
        return None


def with_race_condition_prevention(validator: FieldValidator) -> RaceGuarded:
    """Guard a validator so stale results are discarded."""
    return RaceGuarded(validator)


def async_validator(
    validator: FieldValidator,
    delay_ms: float = 300,
    *,
    leading: bool = False,
    trailing: bool = True,
) -> Debounced:
    """Debounce a validator and guard it against stale results.

    The race guard wraps the validator itself and the debounce wraps the
    guard, so the debounced trailing call's result still goes through the
    staleness check.
    """
    return debounce(
        with_race_condition_prevention(validator),
        delay_ms,
        leading=leading,
        trailing=trailing,
    )
