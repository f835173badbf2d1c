"""relentless - retry flaky operations with exponential backoff"""

from relentless.application.retry_driver import (
    RetryDriver,
    run_with_retry,
    run_with_retry_async,
    with_retries,
)
from relentless.domain.models import (
    UNBOUNDED,
    AttemptBudget,
    Bounded,
    DelaySchedule,
    OutcomeRecord,
    Unbounded,
)
from relentless.errors import AttemptsExhausted, Cancelled

__version__ = "0.1.0"

__all__ = [
    "RetryDriver",
    "run_with_retry",
    "run_with_retry_async",
    "with_retries",
    "AttemptBudget",
    "Bounded",
    "Unbounded",
    "UNBOUNDED",
    "DelaySchedule",
    "OutcomeRecord",
    "AttemptsExhausted",
    "Cancelled",
]
