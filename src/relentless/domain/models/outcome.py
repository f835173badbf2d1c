"""OutcomeRecord model - the most recent failure of a retry call"""

from dataclasses import dataclass


@dataclass(frozen=True)
class OutcomeRecord:
    """Most recent failed attempt, kept to report why a retry call gave up"""

    attempt: int  # Attempt index as seen by the operation
    error: BaseException

    @property
    def message(self) -> str:
        """Human-readable failure, falling back to the exception type"""
        return str(self.error) or type(self.error).__name__
