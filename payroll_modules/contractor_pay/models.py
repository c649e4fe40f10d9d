"""
Contractor Pay Domain Models (``payroll_modules.contractor_pay.models``).

Responsibility
--------------
Frozen dataclass value objects representing the nouns of contractor
payroll: worked shifts, pay rates, weekly pay periods, milestone bonuses,
permanent-placement progress, and the per-contractor outcomes of a weekly
run.

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by the
engines, the bonus engine, the placement tracker and the orchestrator.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).  Status
  changes and bonus additions produce replaced copies.
* All monetary fields and hours use ``Decimal`` -- NEVER ``float``.
* A ``PayPeriod`` always spans exactly seven days.

Failure modes
-------------
* ``PayRate`` / ``PayPeriod`` construction with invalid values raises
  ``ValueError``.
* ``WorkShift`` deliberately does NOT validate on construction: shift feeds
  come from external schedulers and bad records are rejected per contractor
  by ``payroll_engines.aggregation.validate_shift``.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime, timedelta
from decimal import ROUND_HALF_EVEN, Decimal
from enum import Enum
from uuid import UUID, uuid4

from payroll_kernel.domain.calendar import WeekWindow
from payroll_kernel.domain.money import ZERO
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.contractor_pay.models")

_HOURS_QUANTUM = Decimal("0.0001")
_SECONDS_PER_HOUR = Decimal("3600")


class ShiftStatus(str, Enum):
    """Shift lifecycle as reported by the scheduling collaborator."""
    SCHEDULED = "scheduled"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


class PayPeriodStatus(str, Enum):
    """Pay period lifecycle states."""
    PENDING = "pending"
    APPROVED = "approved"
    PAID = "paid"


class BonusType(str, Enum):
    """Milestone bonus kinds."""
    THIRTY_ASSIGNMENTS = "30-assignments"


class BonusStatus(str, Enum):
    """Bonus lifecycle states."""
    EARNED = "earned"
    PROCESSING = "processing"
    PAID = "paid"


class PlacementStatus(str, Enum):
    """Permanent-placement lifecycle, in forward order."""
    ACTIVE = "active"
    IN_CONSIDERATION = "inConsideration"
    INTERVIEWING = "interviewing"
    OFFERED = "offered"
    PLACED = "placed"
    DECLINED = "declined"


@dataclass(frozen=True)
class WorkShift:
    """
    A shift logged by the scheduling collaborator.

    Feed records are kept as received: ``hours`` and ``status`` may hold the
    unparsed text, which ``validate_shift`` reports.
    """
    shift_id: UUID
    contractor_id: str | None
    role: str | None
    work_date: date | None
    hours: Decimal | str | None
    status: ShiftStatus | str
    institution: str | None = None
    notes: str | None = None

    @property
    def is_completed(self) -> bool:
        return self.status == ShiftStatus.COMPLETED

    @classmethod
    def from_times(
        cls,
        *,
        contractor_id: str,
        role: str,
        start: datetime,
        end: datetime,
        status: ShiftStatus = ShiftStatus.COMPLETED,
        institution: str | None = None,
        notes: str | None = None,
        shift_id: UUID | None = None,
    ) -> WorkShift:
        """Build a shift whose hours are derived from a start/end pair.

        The work date is the calendar date of ``start``.  A reversed pair
        yields negative hours, which validation later rejects.
        """
        seconds = Decimal(int((end - start).total_seconds()))
        hours = (seconds / _SECONDS_PER_HOUR).quantize(
            _HOURS_QUANTUM, rounding=ROUND_HALF_EVEN,
        )
        if hours < 0:
            logger.warning(
                "shift_times_reversed",
                extra={"contractor_id": contractor_id, "start": start, "end": end},
            )
        return cls(
            shift_id=shift_id or uuid4(),
            contractor_id=contractor_id,
            role=role,
            work_date=start.date(),
            hours=hours,
            status=status,
            institution=institution,
            notes=notes,
        )


@dataclass(frozen=True)
class PayRate:
    """Base, overtime and holiday rates for one role classification."""
    role: str
    base_hourly_rate: Decimal
    overtime_multiplier: Decimal = Decimal("1.5")
    holiday_multiplier: Decimal = Decimal("2.0")

    def __post_init__(self):
        if not self.role:
            raise ValueError("role is required")
        if self.base_hourly_rate < 0:
            raise ValueError("base_hourly_rate cannot be negative")
        if self.overtime_multiplier < 1:
            raise ValueError("overtime_multiplier must be at least 1.0")
        if self.holiday_multiplier < 1:
            raise ValueError("holiday_multiplier must be at least 1.0")


@dataclass(frozen=True)
class Bonus:
    """A milestone bonus awarded once per threshold crossing."""
    id: UUID
    contractor_id: str
    bonus_type: BonusType
    amount: Decimal
    award_date: date
    status: BonusStatus = BonusStatus.EARNED

    def __post_init__(self):
        if self.amount < 0:
            raise ValueError("bonus amount cannot be negative")


@dataclass(frozen=True)
class PayPeriod:
    """
    One contractor's pay for one canonical week.

    ``earnings`` is the rounded shift pay; ``total_amount`` is earnings plus
    every attached bonus.
    """
    id: UUID
    contractor_id: str
    start_date: date
    end_date: date
    status: PayPeriodStatus = PayPeriodStatus.PENDING
    shifts: tuple[WorkShift, ...] = field(default_factory=tuple)
    bonuses: tuple[Bonus, ...] = field(default_factory=tuple)
    earnings: Decimal = ZERO
    total_amount: Decimal = ZERO
    run_id: UUID | None = None
    created_at: datetime | None = None

    def __post_init__(self):
        if self.end_date - self.start_date != timedelta(days=6):
            raise ValueError(
                f"PayPeriod must span 7 days, got {self.start_date}..{self.end_date}"
            )
        if self.total_amount < 0:
            raise ValueError("total_amount cannot be negative")

    @property
    def week(self) -> WeekWindow:
        return WeekWindow(start=self.start_date, end=self.end_date)

    @property
    def bonus_total(self) -> Decimal:
        return sum((b.amount for b in self.bonuses), ZERO)

    @property
    def is_open(self) -> bool:
        return self.status == PayPeriodStatus.PENDING

    def with_bonus(self, bonus: Bonus) -> PayPeriod:
        """Copy with ``bonus`` attached and the total raised by its amount."""
        return replace(
            self,
            bonuses=self.bonuses + (bonus,),
            total_amount=self.total_amount + bonus.amount,
        )

    def with_status(
        self,
        status: PayPeriodStatus,
        bonuses: tuple[Bonus, ...] | None = None,
    ) -> PayPeriod:
        return replace(
            self,
            status=status,
            bonuses=self.bonuses if bonuses is None else bonuses,
        )


@dataclass(frozen=True)
class PlacementProgress:
    """Lifetime progress toward permanent placement for one contractor."""
    contractor_id: str
    total_assignments: int = 0
    institutions: frozenset[str] = field(default_factory=frozenset)
    positive_feedback_count: int = 0
    status: PlacementStatus = PlacementStatus.ACTIVE
    start_date: date | None = None

    @property
    def unique_institution_count(self) -> int:
        return len(self.institutions)

    @property
    def placement_score(self) -> int:
        """Weighted ranking score used by placement coordinators."""
        return (
            self.total_assignments * 2
            + len(self.institutions) * 5
            + self.positive_feedback_count * 3
        )


@dataclass(frozen=True)
class ContractorOutcome:
    """
    Result of one contractor's pipeline in a weekly run.

    Exactly one of ``pay_period`` (success) or ``error_code`` (failure)
    is set.  ``stage`` is the last stage reached.
    """
    contractor_id: str
    stage: str
    pay_period: PayPeriod | None = None
    error_code: str | None = None
    error_message: str | None = None
    reused: bool = False

    @property
    def is_success(self) -> bool:
        return self.pay_period is not None and self.error_code is None


@dataclass(frozen=True)
class PayrollRunResult:
    """Immutable result of ``process_weekly_payroll``."""
    run_id: UUID
    as_of: date
    week_start: date
    week_end: date
    outcomes: dict[str, ContractorOutcome] = field(default_factory=dict)
    unattributed_shift_ids: tuple[UUID, ...] = ()
    undated_shift_ids: tuple[UUID, ...] = ()
    bonus_attach_failures: dict[str, str] = field(default_factory=dict)

    @property
    def succeeded(self) -> tuple[str, ...]:
        return tuple(sorted(k for k, v in self.outcomes.items() if v.is_success))

    @property
    def failed(self) -> tuple[str, ...]:
        return tuple(sorted(k for k, v in self.outcomes.items() if not v.is_success))

    @property
    def pay_periods(self) -> tuple[PayPeriod, ...]:
        return tuple(
            self.outcomes[k].pay_period for k in self.succeeded
        )

    @property
    def total_paid(self) -> Decimal:
        return sum((p.total_amount for p in self.pay_periods), ZERO)
