"""
payroll_batch.domain.types -- Pure frozen dataclasses for weekly payroll scheduling.

ZERO I/O.  Frozen dataclasses with enum status fields and tuples for
immutable collections.

Invariants enforced:
    - All DTOs are frozen dataclasses (immutable); schedule bookkeeping
      produces replaced copies.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from uuid import UUID

DEFAULT_PAYROLL_CRON = "0 6 * * 1"  # Mondays 06:00


class ScheduledRunStatus(str, Enum):
    """Outcome of one scheduled payroll trigger."""

    COMPLETED = "completed"  # every contractor succeeded
    PARTIAL = "partial"  # at least one contractor failed
    FAILED = "failed"  # the run itself raised


@dataclass(frozen=True)
class WeeklySchedule:
    """
    When the weekly payroll run fires.

    ``pay_previous_week`` selects which week a trigger pays: the week that
    ended before the trigger (default) or the week containing it.
    """

    name: str = "weekly-payroll"
    cron_expression: str = DEFAULT_PAYROLL_CRON
    is_active: bool = True
    pay_previous_week: bool = True
    last_run_at: datetime | None = None
    next_run_at: datetime | None = None


@dataclass(frozen=True)
class ScheduledRunRecord:
    """Audit record of one trigger fired by the scheduler."""

    fired_at: datetime
    as_of: date
    status: ScheduledRunStatus
    run_id: UUID | None = None
    succeeded: int = 0
    failed: int = 0
    error_message: str | None = None
