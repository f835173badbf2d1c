"""Retry driver built on tenacity.

Runs an operation until it succeeds, a bounded budget is used up, or an
optional cancellation signal fires, sleeping for an exponentially growing
delay between attempts. The operation receives the current attempt index.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import logging
import time
from typing import Any, Awaitable, Callable, Optional, TypeVar, Union

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    stop_never,
)

from relentless.domain.config.retry import RetryConfig
from relentless.domain.models.budget import UNBOUNDED, AttemptBudget, Bounded, Unbounded
from relentless.domain.models.outcome import OutcomeRecord
from relentless.domain.models.schedule import DelaySchedule
from relentless.errors import AttemptsExhausted, Cancelled

logger = logging.getLogger(__name__)

T = TypeVar("T")

# on_retry(attempt_index, error, next_delay); return value is ignored
OnRetry = Callable[[int, BaseException, float], Any]

DEFAULT_BASE_DELAY = 0.01
DEFAULT_GROWTH_FACTOR = 2.0


class _RetryCall:
    """State owned by a single retry call: attempt count and last failure"""

    def __init__(self, driver: RetryDriver):
        self.driver = driver
        self.attempts = 0
        self.last: Optional[OutcomeRecord] = None

    def index(self, retry_state: RetryCallState) -> int:
        return self.driver.start_index + retry_state.attempt_number - 1

    def begin_attempt(self, retry_state: RetryCallState) -> int:
        if self.driver.is_cancelled():
            self.cancel()
        self.attempts = retry_state.attempt_number
        index = self.index(retry_state)
        logger.debug(f"Starting attempt {index} (budget: {self.driver.budget})")
        return index

    def cancel(self) -> None:
        error = self.last.error if self.last else None
        logger.warning(f"Retry cancelled after {self.attempts} attempt(s)")
        raise Cancelled(self.attempts, error) from error

    def after(self, retry_state: RetryCallState) -> None:
        """Record a failed attempt (runs before tenacity decides to stop or wait)"""
        self.last = OutcomeRecord(self.index(retry_state), retry_state.outcome.exception())
        if self.driver.budget.is_last(retry_state.attempt_number):
            logger.error(
                f"Giving up after {retry_state.attempt_number} attempt(s): {self.last.message}"
            )

    def before_sleep(self, retry_state: RetryCallState) -> None:
        delay = retry_state.next_action.sleep
        logger.warning(f"Failed ({self.last.message}). Retrying in {delay:g} seconds...")
        if self.driver.on_retry is None:
            return
        try:
            self.driver.on_retry(self.last.attempt, self.last.error, delay)
        except Exception:
            logger.exception("on_retry hook raised, continuing with retry")

    def sleep(self, seconds: float) -> None:
        event = self.driver.cancel_event
        if event is None:
            (self.driver.sleep or time.sleep)(seconds)
        elif event.wait(seconds):
            self.cancel()

    async def async_sleep(self, seconds: float) -> None:
        event = self.driver.cancel_event
        if isinstance(event, asyncio.Event):
            try:
                await asyncio.wait_for(event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                return
            self.cancel()

        if self.driver.sleep is not None:
            result = self.driver.sleep(seconds)
            if inspect.isawaitable(result):
                await result
        else:
            await asyncio.sleep(seconds)
        if self.driver.is_cancelled():
            self.cancel()


class RetryDriver:
    """Runs an operation under an exponential backoff policy

    The driver itself is immutable policy; every call to ``run`` or
    ``run_async`` keeps its own attempt count and last failure, so one driver
    can be shared between callers. It also works as a decorator: the
    decorated function is called as ``func(attempt_index, *args, **kwargs)``.

    Example:
        >>> driver = RetryDriver(Bounded(5), base_delay=0.5)
        >>> driver.run(lambda attempt: fetch(hosts[attempt % len(hosts)]))
    """

    def __init__(
        self,
        budget: Union[AttemptBudget, int] = UNBOUNDED,
        base_delay: float = DEFAULT_BASE_DELAY,
        growth_factor: float = DEFAULT_GROWTH_FACTOR,
        max_delay: Optional[float] = None,
        on_retry: Optional[OnRetry] = None,
        start_index: int = 1,
        cancel_event: Optional[Any] = None,
        sleep: Optional[Callable[[float], Any]] = None,
    ):
        """Initialize retry driver

        Args:
            budget: Bounded(n), Unbounded() or a plain attempt count
            base_delay: Delay in seconds after the first failure
            growth_factor: Multiplier applied to the delay after each failure
            max_delay: Optional cap for a single delay (uncapped by default)
            on_retry: Hook called as on_retry(attempt_index, error, delay)
                before each sleep; must not be used for control flow
            start_index: Attempt index passed to the first attempt
            cancel_event: Object with is_set() (threading.Event, or
                asyncio.Event for run_async) checked before every attempt
                and while sleeping
            sleep: Replacement for time.sleep (ignored when cancel_event
                is a threading.Event)

        Raises:
            ValueError: If the policy parameters are invalid
        """
        if isinstance(budget, int):
            budget = Bounded(budget)
        if not isinstance(budget, (Bounded, Unbounded)):
            raise ValueError(f"Unsupported attempt budget: {budget!r}")
        if start_index < 0:
            raise ValueError("start_index must be >= 0")

        self.budget = budget
        self.schedule = DelaySchedule(base_delay, growth_factor, max_delay)
        self.on_retry = on_retry
        self.start_index = start_index
        self.cancel_event = cancel_event
        self.sleep = sleep

    @classmethod
    def from_config(cls, config: RetryConfig, **overrides: Any) -> RetryDriver:
        """Create a driver from retry configuration

        Args:
            config: Validated retry configuration
            **overrides: Constructor arguments taking precedence over config

        Returns:
            RetryDriver instance
        """
        options = {
            "budget": config.budget,
            "base_delay": config.base_delay,
            "growth_factor": config.growth_factor,
            "max_delay": config.max_delay,
            "start_index": config.start_index,
        }
        options.update(overrides)
        return cls(**options)

    def __repr__(self) -> str:
        return (
            f"RetryDriver(budget={self.budget!r}, base_delay={self.schedule.base_delay}, "
            f"growth_factor={self.schedule.growth_factor}, max_delay={self.schedule.max_delay})"
        )

    def is_cancelled(self) -> bool:
        return self.cancel_event is not None and self.cancel_event.is_set()

    def _stop(self):
        if isinstance(self.budget, Bounded):
            return stop_after_attempt(self.budget.attempts)
        return stop_never

    def _wait(self, retry_state: RetryCallState) -> float:
        return self.schedule.delay_for(retry_state.attempt_number)

    def _controller_options(self, call: _RetryCall) -> dict:
        return {
            "stop": self._stop(),
            "wait": self._wait,
            "retry": retry_if_exception_type(Exception),
            "after": call.after,
            "before_sleep": call.before_sleep,
            "retry_error_cls": AttemptsExhausted,
        }

    def run(self, operation: Callable[[int], T]) -> T:
        """Run operation until it succeeds

        Args:
            operation: Callable taking the attempt index

        Returns:
            Value returned by the first successful attempt

        Raises:
            AttemptsExhausted: If every attempt of a bounded budget failed
                (the last failure is chained as the cause)
            Cancelled: If cancel_event was set
        """
        call = _RetryCall(self)
        for attempt in Retrying(sleep=call.sleep, **self._controller_options(call)):
            index = call.begin_attempt(attempt.retry_state)
            with attempt:
                result = operation(index)
        return result

    async def run_async(self, operation: Callable[[int], Awaitable[T]]) -> T:
        """Run a coroutine operation until it succeeds

        Same contract as run; delays are awaited so the event loop keeps
        running other tasks.
        """
        call = _RetryCall(self)
        async for attempt in AsyncRetrying(sleep=call.async_sleep, **self._controller_options(call)):
            index = call.begin_attempt(attempt.retry_state)
            with attempt:
                result = await operation(index)
        return result

    def __call__(self, func: Callable[..., Any]) -> Callable[..., Any]:
        if inspect.iscoroutinefunction(func):

            @functools.wraps(func)
            async def async_wrapped(*args: Any, **kwargs: Any) -> Any:
                return await self.run_async(lambda attempt: func(attempt, *args, **kwargs))

            return async_wrapped

        @functools.wraps(func)
        def wrapped(*args: Any, **kwargs: Any) -> Any:
            return self.run(lambda attempt: func(attempt, *args, **kwargs))

        return wrapped


def run_with_retry(
    operation: Callable[[int], T],
    budget: Union[AttemptBudget, int] = UNBOUNDED,
    base_delay: float = DEFAULT_BASE_DELAY,
    growth_factor: float = DEFAULT_GROWTH_FACTOR,
    on_retry: Optional[OnRetry] = None,
    **options: Any,
) -> T:
    """Run operation with retries (see RetryDriver for the options)"""
    driver = RetryDriver(budget, base_delay, growth_factor, on_retry=on_retry, **options)
    return driver.run(operation)


async def run_with_retry_async(
    operation: Callable[[int], Awaitable[T]],
    budget: Union[AttemptBudget, int] = UNBOUNDED,
    base_delay: float = DEFAULT_BASE_DELAY,
    growth_factor: float = DEFAULT_GROWTH_FACTOR,
    on_retry: Optional[OnRetry] = None,
    **options: Any,
) -> T:
    driver = RetryDriver(budget, base_delay, growth_factor, on_retry=on_retry, **options)
    return await driver.run_async(operation)


def with_retries(**options: Any) -> RetryDriver:
    """Decorator factory: ``@with_retries(budget=Bounded(3))``"""
    return RetryDriver(**options)
