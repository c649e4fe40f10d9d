"""
Shift Aggregation Engine (``payroll_engines.aggregation``).

Responsibility
--------------
Select the shifts that belong to one canonical pay week and group them by
contractor:

* ``weekly_shifts_for`` -- completed shifts inside the ISO week of a date.
* ``group_by_contractor`` -- contractor -> shifts, input order preserved.
* ``validate_shift`` -- field-level checks on a single shift record.
* ``partition_shift_pool`` -- the orchestrator's entrypoint: window,
  validate and group in one pass, separating bad records per contractor.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
The reference date is always an explicit parameter.

Invariants enforced
-------------------
* Week boundaries come only from ``payroll_kernel.domain.calendar``: the
  same date always resolves to the same Monday..Sunday window.
* Only ``completed`` shifts are grouped.
* A shift is never attributed to a contractor other than its own.
* A record without a date is reported as undated, never rejected for a
  contractor: it cannot be placed in any week.

Failure modes
-------------
* ``validate_shift`` returns the list of problems; it never raises.
* ``partition_shift_pool`` reports invalid records as
  ``InvalidShiftDataError`` instances keyed by contractor instead of
  raising, so one bad record cannot abort the whole pool.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.calendar import WeekWindow, week_window
from payroll_kernel.exceptions import InvalidShiftDataError
from payroll_kernel.logging_config import get_logger
from payroll_modules.contractor_pay.models import ShiftStatus, WorkShift

logger = get_logger("engines.aggregation")

MAX_SHIFT_HOURS = Decimal("24")


@dataclass(frozen=True)
class ShiftPartition:
    """Result of ``partition_shift_pool`` for one pay week."""
    week: WeekWindow
    valid_by_contractor: dict[str, tuple[WorkShift, ...]] = field(default_factory=dict)
    rejected_by_contractor: dict[str, tuple[InvalidShiftDataError, ...]] = field(
        default_factory=dict,
    )
    unattributed: tuple[WorkShift, ...] = ()
    undated: tuple[WorkShift, ...] = ()

    @property
    def contractors(self) -> tuple[str, ...]:
        """Every contractor with at least one usable or rejected record."""
        return tuple(sorted(set(self.valid_by_contractor) | set(self.rejected_by_contractor)))


def _in_window(shift: WorkShift, window: WeekWindow) -> bool:
    return shift.work_date is not None and window.contains(shift.work_date)


def weekly_shifts_for(as_of: date, shift_pool: Iterable[WorkShift]) -> tuple[WorkShift, ...]:
    """Completed shifts dated inside the week containing ``as_of``."""
    window = week_window(as_of)
    return tuple(
        s for s in shift_pool
        if s.status == ShiftStatus.COMPLETED and _in_window(s, window)
    )


def group_by_contractor(shifts: Iterable[WorkShift]) -> dict[str, tuple[WorkShift, ...]]:
    """Group shifts by contractor id, preserving input order within each group."""
    grouped: dict[str, list[WorkShift]] = {}
    for shift in shifts:
        grouped.setdefault(shift.contractor_id, []).append(shift)
    return {contractor: tuple(items) for contractor, items in grouped.items()}


def validate_shift(shift: WorkShift) -> list[str]:
    """Return the problems with ``shift``; an empty list means it is usable."""
    problems: list[str] = []
    if not shift.contractor_id:
        problems.append("contractor_id is required")
    if not shift.role:
        problems.append("role is required")
    if shift.work_date is None:
        problems.append("work_date is required")
    if shift.hours is None:
        problems.append("hours is required")
    elif isinstance(shift.hours, str):
        problems.append(f"hours is not a number: {shift.hours!r}")
    elif not isinstance(shift.hours, Decimal):
        problems.append(f"hours must be Decimal, got {type(shift.hours).__name__}")
    elif not shift.hours.is_finite():
        problems.append("hours must be finite")
    elif shift.hours < 0:
        problems.append(f"hours cannot be negative: {shift.hours}")
    elif shift.hours > MAX_SHIFT_HOURS:
        problems.append(f"hours exceed {MAX_SHIFT_HOURS} in one shift: {shift.hours}")
    if not isinstance(shift.status, ShiftStatus):
        problems.append(f"unknown status: {shift.status!r}")
    return problems


@traced_engine("aggregation", "1.0", fingerprint_fields=("as_of",))
def partition_shift_pool(
    *,
    as_of: date,
    shift_pool: Iterable[WorkShift],
) -> ShiftPartition:
    """
    Window, validate and group a raw shift pool for the week of ``as_of``.

    Records without a date belong to no week and are returned as
    ``undated``; records without a contractor id are returned as
    ``unattributed``.  Neither fails a contractor.  Every other in-window
    record is validated, and valid completed shifts are grouped by
    contractor.
    """
    window = week_window(as_of)
    valid: dict[str, list[WorkShift]] = {}
    rejected: dict[str, list[InvalidShiftDataError]] = {}
    unattributed: list[WorkShift] = []
    undated: list[WorkShift] = []

    for shift in shift_pool:
        if shift.work_date is None:
            undated.append(shift)
            continue
        if not window.contains(shift.work_date):
            continue
        if not shift.contractor_id:
            unattributed.append(shift)
            continue

        problems = validate_shift(shift)
        if problems:
            rejected.setdefault(shift.contractor_id, []).append(
                InvalidShiftDataError(str(shift.shift_id), shift.contractor_id, problems)
            )
            continue

        if shift.status == ShiftStatus.COMPLETED:
            valid.setdefault(shift.contractor_id, []).append(shift)

    if unattributed:
        logger.warning("unattributed_shifts_skipped", extra={
            "week_start": window.start,
            "shift_ids": [str(s.shift_id) for s in unattributed],
        })
    if undated:
        logger.warning("undated_shifts_skipped", extra={
            "week_start": window.start,
            "shift_ids": [str(s.shift_id) for s in undated],
        })
    for contractor_id, errors in rejected.items():
        logger.warning("invalid_shift_records", extra={
            "contractor_id": contractor_id,
            "week_start": window.start,
            "shift_ids": [e.shift_id for e in errors],
        })

    logger.info("shift_pool_partitioned", extra={
        "week_start": window.start,
        "contractor_count": len(valid),
        "rejected_contractor_count": len(rejected),
        "unattributed_count": len(unattributed),
        "undated_count": len(undated),
    })

    return ShiftPartition(
        week=window,
        valid_by_contractor={k: tuple(v) for k, v in valid.items()},
        rejected_by_contractor={k: tuple(v) for k, v in rejected.items()},
        unattributed=tuple(unattributed),
        undated=tuple(undated),
    )
