"""Shared data models for the elcron price trigger service.

CRITICAL: All prices use Decimal. Never use float for prices or thresholds,
equality with a threshold must never trigger a job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from elcron.exceptions import DesyncWarning


class TriggerCondition(str, Enum):
    """Direction in which the price must cross a job's threshold."""

    ABOVE = "above"
    BELOW = "below"


@dataclass(frozen=True)
class PricePoint:
    """Settled day-ahead price for one clock hour on one calendar date.

    Price is in c/kWh (the feed's EUR/MWh divided by 10).
    """

    date: date
    hour: int  # 0..23
    price: Decimal

    def __post_init__(self) -> None:
        if not 0 <= self.hour <= 23:
            raise ValueError(f"hour must be between 0 and 23, got {self.hour}")

    @property
    def slot(self) -> tuple[date, int]:
        """Ordering key: (date, hour)."""
        return (self.date, self.hour)

    def starts_at(self) -> datetime:
        """Naive local datetime at which this hour begins."""
        return datetime.combine(self.date, time(hour=self.hour))

    def __str__(self) -> str:
        return f"(date={self.date.isoformat()}, hour={self.hour}, price={self.price:.2f})"


def slot_of(moment: datetime) -> tuple[date, int]:
    """Return the (date, hour) slot a wall-clock instant falls in."""
    return (moment.date(), moment.hour)


@dataclass(frozen=True)
class JobDefinition:
    """A configured rule mapping a price threshold and direction to a command."""

    threshold: int
    condition: TriggerCondition
    command: str

    def should_execute(self, price: Decimal) -> bool:
        """Strict comparison: a price equal to the threshold never triggers."""
        if self.condition is TriggerCondition.ABOVE:
            return price > self.threshold
        return price < self.threshold

    def __str__(self) -> str:
        return (
            f"Job(threshold={self.threshold}, condition={self.condition.value}, "
            f"command={self.command})"
        )


@dataclass
class JobResult:
    """Outcome of running one triggered job's command."""

    job: JobDefinition
    returncode: int | None = None
    stdout: str = ""
    error: str | None = None
    is_simulated: bool = False

    @property
    def succeeded(self) -> bool:
        return self.error is None and (self.is_simulated or self.returncode == 0)


@dataclass
class CycleReport:
    """What one scheduler cycle did, for logging and tests."""

    started_at: datetime
    refetched: bool = False
    merged: int = 0
    dispatched: PricePoint | None = None
    desync: DesyncWarning | None = None
    triggered: list[JobDefinition] = field(default_factory=list)
    results: list[JobResult] = field(default_factory=list)
