"""Domain models for retry policies"""

from relentless.domain.models.budget import (
    UNBOUNDED,
    AttemptBudget,
    Bounded,
    Unbounded,
    budget_from_max_attempts,
)
from relentless.domain.models.outcome import OutcomeRecord
from relentless.domain.models.schedule import DelaySchedule

__all__ = [
    "AttemptBudget",
    "Bounded",
    "Unbounded",
    "UNBOUNDED",
    "budget_from_max_attempts",
    "DelaySchedule",
    "OutcomeRecord",
]
