"""
Calendar -- canonical weekly pay windows.

Responsibility:
    Defines the single week-boundary rule used everywhere in the engine:
    a week starts on the Monday of the ISO week containing a date and ends
    exactly six days later (Sunday).  Aggregation, pay-period assembly,
    store lookups and analytics all resolve windows through this module so
    that the same date always maps to the same window.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, timedelta

WEEK_LENGTH_DAYS = 7


@dataclass(frozen=True, slots=True)
class WeekWindow:
    """
    A closed seven-day pay window ``[start, end]``.

    Guarantees:
        - ``start`` is always a Monday (ISO weekday 1).
        - ``end == start + 6 days``.
    """

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start.isoweekday() != 1:
            raise ValueError(f"Week window must start on a Monday, got {self.start}")
        if self.end - self.start != timedelta(days=WEEK_LENGTH_DAYS - 1):
            raise ValueError(
                f"Week window must span exactly {WEEK_LENGTH_DAYS} days: "
                f"{self.start}..{self.end}"
            )

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def days(self) -> Iterator[date]:
        for offset in range(WEEK_LENGTH_DAYS):
            yield self.start + timedelta(days=offset)

    @property
    def iso_week(self) -> tuple[int, int]:
        """``(iso_year, iso_week_number)`` for labelling."""
        iso = self.start.isocalendar()
        return iso.year, iso.week

    @property
    def label(self) -> str:
        year, week = self.iso_week
        return f"{year}-W{week:02d}"

    def next(self) -> WeekWindow:
        return week_window(self.start + timedelta(days=WEEK_LENGTH_DAYS))

    def previous(self) -> WeekWindow:
        return week_window(self.start - timedelta(days=WEEK_LENGTH_DAYS))


def week_start(day: date) -> date:
    """Monday of the ISO week containing ``day``."""
    return day - timedelta(days=day.isoweekday() - 1)


def week_window(day: date) -> WeekWindow:
    """The canonical pay window containing ``day``."""
    start = week_start(day)
    return WeekWindow(start=start, end=start + timedelta(days=WEEK_LENGTH_DAYS - 1))


def windows_between(start: date, end: date) -> tuple[WeekWindow, ...]:
    """All week windows intersecting ``[start, end]``, in order."""
    if end < start:
        return ()
    windows = []
    current = week_window(start)
    while current.start <= end:
        windows.append(current)
        current = current.next()
    return tuple(windows)
