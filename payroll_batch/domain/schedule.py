"""
When does the weekly payroll fire, and which week does a trigger pay?

Everything here is a pure function of its arguments.  The scheduler
service reads its clock and passes the time in.

Cron expressions use the usual five fields
(``minute hour day-of-month month day-of-week``) with ``*``, single
values, ``a-b`` ranges, ``,`` lists and ``/n`` steps.  Day of week runs
0-6 from Sunday; 7 is accepted as Sunday too.  All five fields must match,
including day-of-month and day-of-week together.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from payroll_batch.domain.types import WeeklySchedule

# Long enough to reach the next 29 February from any date.
_SEARCH_DAYS = 366 * 5

_TERM = re.compile(r"^(?:(?P<any>\*)|(?P<lo>\d+)(?:-(?P<hi>\d+))?)(?:/(?P<step>\d+))?$")


@dataclass(frozen=True)
class CronSpec:
    """The set of allowed values for each cron field."""

    minutes: frozenset[int] = frozenset(range(60))
    hours: frozenset[int] = frozenset(range(24))
    days_of_month: frozenset[int] = frozenset(range(1, 32))
    months: frozenset[int] = frozenset(range(1, 13))
    days_of_week: frozenset[int] = frozenset(range(7))


def _expand(term: str, name: str, low: int, high: int) -> range:
    match = _TERM.match(term)
    if match is None:
        raise ValueError(f"Bad {name} term: {term!r}")

    step = int(match["step"]) if match["step"] is not None else 1
    if step < 1:
        raise ValueError(f"{name} step must be at least 1: {term!r}")

    if match["any"]:
        first, last = low, high
    else:
        first = int(match["lo"])
        if match["hi"] is not None:
            last = int(match["hi"])
        elif match["step"] is not None:
            last = high  # "5/10" counts from 5 to the top of the field
        else:
            last = first

    if first > last:
        raise ValueError(f"{name} range runs backwards: {term!r}")
    if first < low or last > high:
        raise ValueError(f"{name} must be within {low}-{high}: {term!r}")
    return range(first, last + 1, step)


def _parse_field(text: str, name: str, low: int, high: int) -> frozenset[int]:
    values: set[int] = set()
    for term in text.split(","):
        values.update(_expand(term.strip(), name, low, high))
    return frozenset(values)


def parse_cron(expression: str) -> CronSpec:
    """
    Parse ``minute hour day-of-month month day-of-week``.

    Raises:
        ValueError: wrong number of fields, an unparseable term, or a value
            outside its field's range.
    """
    fields = expression.split()
    if len(fields) != 5:
        raise ValueError(f"Expected 5 cron fields, got {len(fields)}: {expression!r}")
    minute, hour, dom, month, dow = fields
    weekdays = _parse_field(dow, "day of week", 0, 7)
    return CronSpec(
        minutes=_parse_field(minute, "minute", 0, 59),
        hours=_parse_field(hour, "hour", 0, 23),
        days_of_month=_parse_field(dom, "day of month", 1, 31),
        months=_parse_field(month, "month", 1, 12),
        days_of_week=frozenset(d % 7 for d in weekdays),
    )


def _cron_weekday(day: date) -> int:
    # date.isoweekday(): Monday=1 .. Sunday=7; cron: Sunday=0
    return day.isoweekday() % 7


def _day_matches(spec: CronSpec, day: date) -> bool:
    return (
        day.month in spec.months
        and day.day in spec.days_of_month
        and _cron_weekday(day) in spec.days_of_week
    )


def matches_cron(spec: CronSpec, dt: datetime) -> bool:
    """True when ``dt`` (to the minute) is one of the spec's trigger times."""
    return dt.minute in spec.minutes and dt.hour in spec.hours and _day_matches(spec, dt.date())


def compute_next_run(cron_expression: str, after: datetime) -> datetime:
    """
    First trigger time strictly after ``after``, keeping its tzinfo.

    Raises:
        ValueError: malformed expression, or one that never matches
            (e.g. ``0 0 31 2 *``).
    """
    spec = parse_cron(cron_expression)
    earliest = after.replace(second=0, microsecond=0) + timedelta(minutes=1)
    times = [time(h, m) for h in sorted(spec.hours) for m in sorted(spec.minutes)]

    day = earliest.date()
    for _ in range(_SEARCH_DAYS):
        if _day_matches(spec, day):
            for at in times:
                candidate = datetime.combine(day, at, tzinfo=earliest.tzinfo)
                if candidate >= earliest:
                    return candidate
        day += timedelta(days=1)
    raise ValueError(f"No cron match for {cron_expression!r} after {after.isoformat()}")


def should_fire(schedule: WeeklySchedule, as_of: datetime) -> bool:
    """
    Is the schedule due at ``as_of``?

    Once ``next_run_at`` is known the schedule is due from that instant on,
    so a tick that arrives late still fires.  Before the first computation
    the cron expression itself must match.  Inactive schedules and
    unparseable expressions are never due.
    """
    if not schedule.is_active:
        return False
    if schedule.next_run_at is not None:
        return as_of >= schedule.next_run_at
    try:
        return matches_cron(parse_cron(schedule.cron_expression), as_of)
    except ValueError:
        return False


def payroll_as_of(schedule: WeeklySchedule, fired_at: datetime) -> date:
    """The ``as_of`` date handed to the payroll run for a trigger."""
    fired_on = fired_at.date()
    if not schedule.pay_previous_week:
        return fired_on
    # Sunday of the previous Monday..Sunday week
    return fired_on - timedelta(days=fired_on.isoweekday())
