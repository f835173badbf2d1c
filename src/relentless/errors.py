"""Terminal errors raised by the retry driver.

Both errors keep the operation's own exception: it is chained as
``__cause__`` and exposed as ``last_error``.
"""

from __future__ import annotations

from typing import Optional

from tenacity import RetryError


def _describe(error: Optional[BaseException]) -> str:
    if error is None:
        return "no failed attempts"
    message = str(error)
    if message:
        return f"{type(error).__name__}: {message}"
    return type(error).__name__


class AttemptsExhausted(RetryError):
    """Every attempt permitted by a bounded budget failed.

    Raised by tenacity in place of ``RetryError`` (see ``retry_error_cls``),
    so ``last_attempt`` is the future of the final attempt.
    """

    @property
    def attempts(self) -> int:
        """Number of attempts made"""
        return self.last_attempt.attempt_number

    @property
    def last_error(self) -> Optional[BaseException]:
        """Failure raised by the final attempt"""
        return self.last_attempt.exception()

    def __str__(self) -> str:
        return f"Failed after {self.attempts} attempt(s): {_describe(self.last_error)}"


class Cancelled(Exception):
    """A retry call was stopped by its cancellation signal."""

    def __init__(self, attempts: int, last_error: Optional[BaseException] = None):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(attempts, last_error)

    def __str__(self) -> str:
        return f"Cancelled after {self.attempts} attempt(s) (last failure: {_describe(self.last_error)})"
