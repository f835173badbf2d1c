"""Retry configuration model."""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from relentless.domain.models.budget import AttemptBudget, budget_from_max_attempts


class RetryConfig(BaseModel):
    """Configuration for retry logic.
    
    Attributes:
        max_attempts: Maximum number of attempts (None = retry forever)
        base_delay: Delay in seconds after the first failure
        growth_factor: Exponential backoff multiplier
        max_delay: Upper bound for a single delay (None = uncapped)
        start_index: Attempt index passed to the first attempt
    """

    model_config = ConfigDict(extra="forbid")

    max_attempts: Optional[int] = Field(None, gt=0)
    base_delay: float = Field(0.01, ge=0.0)
    growth_factor: float = Field(2.0, ge=1.0)
    max_delay: Optional[float] = Field(None, gt=0.0)
    start_index: int = Field(1, ge=0)

    @property
    def budget(self) -> AttemptBudget:
        """Attempt budget described by max_attempts"""
        return budget_from_max_attempts(self.max_attempts)
