"""DelaySchedule model - exponential backoff delays between attempts"""

import sys
from dataclasses import dataclass
from typing import Iterator, Optional

# Same ceiling tenacity uses when an exponential wait overflows
MAX_WAIT = sys.maxsize / 2


@dataclass(frozen=True)
class DelaySchedule:
    """Exponential delay schedule.

    The delay slept after the n-th failed attempt is
    ``base_delay * growth_factor ** (n - 1)``. Growth is uncapped unless
    ``max_delay`` is given.

    Attributes:
        base_delay: Delay in seconds after the first failure
        growth_factor: Multiplier applied after each further failure
        max_delay: Optional upper bound for a single delay
    """

    base_delay: float
    growth_factor: float = 2.0
    max_delay: Optional[float] = None

    def __post_init__(self):
        """Validate schedule parameters"""
        if self.base_delay < 0:
            raise ValueError("base_delay must be non-negative")
        if self.growth_factor < 1:
            raise ValueError("growth_factor must be >= 1")
        if self.max_delay is not None and self.max_delay <= 0:
            raise ValueError("max_delay must be positive")

    def delay_for(self, failures: int) -> float:
        """Delay to sleep after the given number of failed attempts

        Args:
            failures: 1-based count of failed attempts so far

        Returns:
            Delay in seconds
        """
        if failures < 1:
            raise ValueError("failures must be >= 1")
        if self.base_delay == 0:
            return 0.0
        try:
            delay = self.base_delay * (self.growth_factor ** (failures - 1))
        except OverflowError:
            delay = MAX_WAIT
        if self.max_delay is not None:
            return min(delay, self.max_delay)
        return min(delay, MAX_WAIT)

    def __iter__(self) -> Iterator[float]:
        """Yield successive delays, starting at base_delay, without end"""
        delay = float(self.base_delay)
        while True:
            if self.max_delay is not None and delay >= self.max_delay:
                delay = float(self.max_delay)
            yield min(delay, MAX_WAIT)
            delay *= self.growth_factor
