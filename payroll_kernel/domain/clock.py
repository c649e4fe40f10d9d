"""
Injectable time source.

Payroll code never calls ``datetime.now()`` itself: the orchestrator
stamps ``created_at`` and the scheduler decides when to fire through a
``Clock`` passed in by the caller.  Which week gets paid is never taken
from the clock; that comes from the explicit ``as_of`` date.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

_DEFAULT_TEST_TIME = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


class Clock(ABC):
    """Source of timezone-aware "now"."""

    @abstractmethod
    def now(self) -> datetime:
        ...

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall-clock UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Clock that only moves when told to.

    Used by tests and by replays of a past scheduler trigger; repeated
    ``now()`` calls return the same instant.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or _DEFAULT_TEST_TIME

    def now(self) -> datetime:
        return self._now

    def set_time(self, time: datetime) -> None:
        self._now = time

    def advance(self, seconds: float = 1) -> None:
        self._now += timedelta(seconds=seconds)

    def advance_days(self, days: int) -> None:
        self._now += timedelta(days=days)
