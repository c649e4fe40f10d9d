"""
Earnings Calculator (``payroll_engines.earnings``).

Responsibility
--------------
Convert one contractor's completed shifts for a pay week into a monetary
total, applying the daily overtime rule and holiday rates per shift.

Per shift:

1. Resolve the rate for the shift's role.  A miss raises
   ``RateUnavailableError``; the contractor's computation aborts rather
   than pricing the shift at zero.
2. ``regular = hours * base`` (``base * holiday_multiplier`` on a
   configured holiday).
3. When ``hours > threshold`` the excess also earns
   ``excess * base * overtime_multiplier``.

How the excess interacts with the regular component is an explicit
``OvertimeMode``:

* ``ADDITIVE`` (default) -- every hour is paid at the regular rate and the
  excess additionally receives the full overtime multiplier.  A 9-hour
  shift at 20/h with 1.5x pays 180 + 30 = 210.
* ``PREMIUM_ONLY`` -- the first ``threshold`` hours are paid at the
  regular rate and the excess at ``base * overtime_multiplier`` only.  The
  same shift pays 160 + 30 = 190.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.

Invariants enforced
-------------------
* Decimal-only arithmetic; the sum is rounded once, to 2 places,
  half-to-even.
* Only ``completed`` shifts contribute.
* The total is never negative and never includes another contractor's
  shifts.

Failure modes
-------------
* ``RateUnavailableError`` for an unpriceable shift.
* ``ValueError`` when a shift belonging to another contractor is passed
  in (caller bug).
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import Enum
from uuid import UUID

from payroll_engines.rates import RateResolver
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.money import ZERO, round_money
from payroll_kernel.exceptions import RateUnavailableError, UnknownRoleError
from payroll_kernel.logging_config import get_logger
from payroll_modules.contractor_pay.models import WorkShift

logger = get_logger("engines.earnings")

DEFAULT_OVERTIME_THRESHOLD_HOURS = Decimal("8")


class OvertimeMode(str, Enum):
    """How hours above the daily threshold are compensated."""

    ADDITIVE = "additive"
    PREMIUM_ONLY = "premium_only"


@dataclass(frozen=True)
class OvertimePolicy:
    """Daily overtime threshold and compensation mode."""

    threshold_hours: Decimal = DEFAULT_OVERTIME_THRESHOLD_HOURS
    mode: OvertimeMode = OvertimeMode.ADDITIVE

    def __post_init__(self):
        if self.threshold_hours < 0:
            raise ValueError("overtime threshold cannot be negative")


@dataclass(frozen=True)
class ShiftPay:
    """Priced line for one shift (unrounded)."""

    shift_id: UUID
    work_date: date
    role: str
    hours: Decimal
    regular_hours: Decimal
    overtime_hours: Decimal
    base_rate: Decimal
    regular_pay: Decimal
    overtime_pay: Decimal
    is_holiday: bool = False

    @property
    def amount(self) -> Decimal:
        return self.regular_pay + self.overtime_pay


@dataclass(frozen=True)
class EarningsBreakdown:
    """
    Result of ``compute_earnings``.

    Component totals are rounded individually for reporting; ``total`` is
    the rounded sum of the unrounded line amounts.
    """

    contractor_id: str
    lines: tuple[ShiftPay, ...]
    total: Decimal

    @property
    def regular_hours(self) -> Decimal:
        return sum((line.regular_hours for line in self.lines), ZERO)

    @property
    def overtime_hours(self) -> Decimal:
        return sum((line.overtime_hours for line in self.lines), ZERO)

    @property
    def total_hours(self) -> Decimal:
        return sum((line.hours for line in self.lines), ZERO)

    @property
    def regular_pay(self) -> Decimal:
        return round_money(sum((line.regular_pay for line in self.lines), ZERO))

    @property
    def overtime_pay(self) -> Decimal:
        return round_money(sum((line.overtime_pay for line in self.lines), ZERO))

    @property
    def holiday_pay(self) -> Decimal:
        return round_money(
            sum((line.regular_pay for line in self.lines if line.is_holiday), ZERO)
        )


def price_shift(
    shift: WorkShift,
    resolver: RateResolver,
    policy: OvertimePolicy,
    holidays: frozenset[date] = frozenset(),
) -> ShiftPay:
    """Price a single completed shift.

    Raises:
        RateUnavailableError: if the shift's role has no rate.
    """
    try:
        rate = resolver.resolve(shift.role)
    except UnknownRoleError as exc:
        raise RateUnavailableError(
            shift.contractor_id, shift.role, str(shift.shift_id),
        ) from exc

    hours = shift.hours
    threshold = policy.threshold_hours
    is_holiday = shift.work_date in holidays
    regular_rate = rate.base_hourly_rate * rate.holiday_multiplier if is_holiday else rate.base_hourly_rate

    overtime_hours = hours - threshold if hours > threshold else ZERO
    regular_hours = hours - overtime_hours

    if policy.mode == OvertimeMode.ADDITIVE:
        regular_pay = hours * regular_rate
    else:
        regular_pay = regular_hours * regular_rate
    overtime_pay = overtime_hours * rate.base_hourly_rate * rate.overtime_multiplier

    return ShiftPay(
        shift_id=shift.shift_id,
        work_date=shift.work_date,
        role=shift.role,
        hours=hours,
        regular_hours=regular_hours,
        overtime_hours=overtime_hours,
        base_rate=rate.base_hourly_rate,
        regular_pay=regular_pay,
        overtime_pay=overtime_pay,
        is_holiday=is_holiday,
    )


@traced_engine("earnings", "1.0", fingerprint_fields=("contractor_id", "shifts"))
def compute_earnings(
    *,
    contractor_id: str,
    shifts: Iterable[WorkShift],
    resolver: RateResolver,
    policy: OvertimePolicy | None = None,
    holidays: frozenset[date] = frozenset(),
) -> EarningsBreakdown:
    """
    Price ``contractor_id``'s shifts and return the rounded weekly total.

    Shifts that are not ``completed`` are skipped.

    Raises:
        RateUnavailableError: if any shift cannot be priced.
        ValueError: if a shift belongs to a different contractor.
    """
    policy = policy or OvertimePolicy()
    lines: list[ShiftPay] = []

    for shift in shifts:
        if shift.contractor_id != contractor_id:
            raise ValueError(
                f"Shift {shift.shift_id} belongs to {shift.contractor_id}, "
                f"not {contractor_id}"
            )
        if not shift.is_completed:
            continue
        lines.append(price_shift(shift, resolver, policy, holidays))

    total = round_money(sum((line.amount for line in lines), ZERO))

    logger.info("earnings_computed", extra={
        "contractor_id": contractor_id,
        "shift_count": len(lines),
        "overtime_mode": policy.mode.value,
        "total": str(total),
    })

    return EarningsBreakdown(
        contractor_id=contractor_id,
        lines=tuple(lines),
        total=total,
    )
