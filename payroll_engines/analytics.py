"""
payroll_engines.analytics -- Earnings summary over a date range.

Responsibility:
    Summarise a contractor's pay periods between two dates: total and
    bonus earnings, regular and overtime hours, average effective hourly
    rate, completed assignments, and a projected annual figure (weekly
    average over the weeks spanned, times 52).

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Periods are passed in
    by the orchestrator.

Invariants enforced:
    - Only periods belonging to the contractor and overlapping the range
      are counted.
    - All figures are Decimal, rounded half-to-even to 2 places.

Failure modes:
    - ``ValueError`` if ``end`` precedes ``start``.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_engines.earnings import OvertimePolicy
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.calendar import windows_between
from payroll_kernel.domain.money import ZERO, round_money
from payroll_kernel.logging_config import get_logger
from payroll_modules.contractor_pay.models import PayPeriod

logger = get_logger("engines.analytics")

WEEKS_PER_YEAR = 52


@dataclass(frozen=True)
class PaymentAnalytics:
    """Earnings summary for one contractor over ``[start, end]``."""

    contractor_id: str
    start: date
    end: date
    period_count: int
    total_earnings: Decimal
    bonus_earnings: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    average_hourly_rate: Decimal
    assignments_completed: int
    projected_annual_earnings: Decimal

    @property
    def total_hours(self) -> Decimal:
        return self.regular_hours + self.overtime_hours


@traced_engine("analytics", "1.0", fingerprint_fields=("contractor_id", "start", "end"))
def compute_payment_analytics(
    *,
    contractor_id: str,
    periods: Iterable[PayPeriod],
    start: date,
    end: date,
    policy: OvertimePolicy | None = None,
) -> PaymentAnalytics:
    """Summarise ``contractor_id``'s periods overlapping ``[start, end]``."""
    if end < start:
        raise ValueError(f"end {end} precedes start {start}")
    policy = policy or OvertimePolicy()
    threshold = policy.threshold_hours

    selected = [
        p for p in periods
        if p.contractor_id == contractor_id
        and p.start_date <= end
        and p.end_date >= start
    ]

    shift_earnings = sum((p.earnings for p in selected), ZERO)
    bonus_earnings = sum((p.bonus_total for p in selected), ZERO)
    total_earnings = shift_earnings + bonus_earnings

    regular_hours = ZERO
    overtime_hours = ZERO
    assignments = 0
    for period in selected:
        for shift in period.shifts:
            if not shift.is_completed:
                continue
            assignments += 1
            excess = shift.hours - threshold if shift.hours > threshold else ZERO
            regular_hours += shift.hours - excess
            overtime_hours += excess

    total_hours = regular_hours + overtime_hours
    average_rate = round_money(shift_earnings / total_hours) if total_hours else ZERO

    weeks = len(windows_between(start, end))
    projected = round_money(total_earnings / weeks * WEEKS_PER_YEAR) if weeks else ZERO

    logger.info("payment_analytics_computed", extra={
        "contractor_id": contractor_id,
        "period_count": len(selected),
        "weeks": weeks,
    })

    return PaymentAnalytics(
        contractor_id=contractor_id,
        start=start,
        end=end,
        period_count=len(selected),
        total_earnings=round_money(total_earnings),
        bonus_earnings=round_money(bonus_earnings),
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        average_hourly_rate=average_rate,
        assignments_completed=assignments,
        projected_annual_earnings=projected,
    )
