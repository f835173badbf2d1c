"""AttemptBudget model - how many attempts a retry call may make"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Bounded:
    """A fixed number of attempts (first try included)"""

    attempts: int

    def __post_init__(self):
        """Validate attempt count"""
        if isinstance(self.attempts, bool) or not isinstance(self.attempts, int):
            raise ValueError("attempts must be an integer")
        if self.attempts < 1:
            raise ValueError("attempts must be >= 1")

    def is_last(self, attempt_number: int) -> bool:
        """Check if the given 1-based attempt is the final permitted one"""
        return attempt_number >= self.attempts

    def __str__(self) -> str:
        return f"{self.attempts} attempt(s)"


@dataclass(frozen=True)
class Unbounded:
    """Retry forever"""

    def is_last(self, attempt_number: int) -> bool:
        return False

    def __str__(self) -> str:
        return "unbounded"


AttemptBudget = Union[Bounded, Unbounded]

UNBOUNDED = Unbounded()


def budget_from_max_attempts(max_attempts: Optional[int]) -> AttemptBudget:
    """Map a configured attempt limit to a budget (None means retry forever)"""
    if max_attempts is None:
        return UNBOUNDED
    return Bounded(max_attempts)
