"""
payroll_batch.domain -- Pure types and schedule evaluation.

ZERO I/O.  All types are frozen dataclasses.
"""

from payroll_batch.domain.schedule import (
    CronSpec,
    compute_next_run,
    matches_cron,
    parse_cron,
    payroll_as_of,
    should_fire,
)
from payroll_batch.domain.types import (
    DEFAULT_PAYROLL_CRON,
    ScheduledRunRecord,
    ScheduledRunStatus,
    WeeklySchedule,
)

__all__ = [
    "CronSpec",
    "DEFAULT_PAYROLL_CRON",
    "ScheduledRunRecord",
    "ScheduledRunStatus",
    "WeeklySchedule",
    "compute_next_run",
    "matches_cron",
    "parse_cron",
    "payroll_as_of",
    "should_fire",
]
