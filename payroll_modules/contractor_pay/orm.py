"""
Contractor Pay ORM Persistence Models (``payroll_modules.contractor_pay.orm``).

Responsibility:
    SQLAlchemy ORM models that persist the frozen ``PayPeriod`` DTO together
    with the shifts it covers and the bonuses attached to it, plus the
    incentive state that outlives a single run: bonus counters and
    placement progress.  DTO-backed classes provide ``to_dto()`` /
    ``from_dto()`` conversion.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from the kernel ``Base`` (UUID primary key ``id``).

Invariants enforced:
    - Exactly one pay period per (contractor_id, start_date)
      (uq_contractor_pay_period_week); this is what makes "the open period
      for a contractor's week" unambiguous.
    - All monetary fields and hours use Decimal -- NEVER float.
    - Enum fields stored as String containing the enum .value string.
    - Shift and bonus order is preserved through ``position``.
    - At most one bonus counter row and one placement progress row per
      contractor.
"""

import json
from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Date, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_kernel.db.base import Base
from payroll_kernel.domain.money import round_money

# ---------------------------------------------------------------------------
# PayPeriodModel
# ---------------------------------------------------------------------------


class PayPeriodModel(Base):
    """
    ORM model for ``PayPeriod`` -- one contractor's pay for one week.

    Guarantees:
        - ``(contractor_id, start_date)`` is unique.
        - ``status`` stores the PayPeriodStatus .value string.
    """

    __tablename__ = "contractor_pay_periods"

    contractor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    earnings: Mapped[Decimal] = mapped_column(nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(nullable=False)
    run_id: Mapped[UUID | None] = mapped_column(nullable=True)
    created_at: Mapped[datetime | None] = mapped_column(nullable=True)

    shifts: Mapped[list["PayPeriodShiftModel"]] = relationship(
        "PayPeriodShiftModel",
        back_populates="pay_period",
        cascade="all, delete-orphan",
        order_by="PayPeriodShiftModel.position",
        lazy="selectin",
    )
    bonuses: Mapped[list["BonusModel"]] = relationship(
        "BonusModel",
        back_populates="pay_period",
        cascade="all, delete-orphan",
        order_by="BonusModel.position",
        lazy="selectin",
    )

    __table_args__ = (
        UniqueConstraint("contractor_id", "start_date", name="uq_contractor_pay_period_week"),
        Index("idx_contractor_pay_period_start", "start_date"),
        Index("idx_contractor_pay_period_status", "status"),
    )

    def to_dto(self):
        from payroll_modules.contractor_pay.models import PayPeriod, PayPeriodStatus
        return PayPeriod(
            id=self.id,
            contractor_id=self.contractor_id,
            start_date=self.start_date,
            end_date=self.end_date,
            status=PayPeriodStatus(self.status),
            shifts=tuple(s.to_dto() for s in self.shifts),
            bonuses=tuple(b.to_dto() for b in self.bonuses),
            earnings=round_money(self.earnings),
            total_amount=round_money(self.total_amount),
            run_id=self.run_id,
            created_at=self.created_at,
        )

    @classmethod
    def from_dto(cls, dto) -> "PayPeriodModel":
        model = cls(
            id=dto.id,
            contractor_id=dto.contractor_id,
            start_date=dto.start_date,
            end_date=dto.end_date,
            status=dto.status.value,
            earnings=dto.earnings,
            total_amount=dto.total_amount,
            run_id=dto.run_id,
            created_at=dto.created_at,
        )
        model.shifts = [
            PayPeriodShiftModel.from_dto(shift, position=i)
            for i, shift in enumerate(dto.shifts)
        ]
        model.bonuses = [
            BonusModel.from_dto(bonus, position=i)
            for i, bonus in enumerate(dto.bonuses)
        ]
        return model

    def __repr__(self) -> str:
        return (
            f"<PayPeriodModel {self.contractor_id} {self.start_date}: "
            f"{self.total_amount} ({self.status})>"
        )


# ---------------------------------------------------------------------------
# PayPeriodShiftModel
# ---------------------------------------------------------------------------


class PayPeriodShiftModel(Base):
    """ORM model for a ``WorkShift`` covered by a pay period."""

    __tablename__ = "contractor_pay_period_shifts"

    pay_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("contractor_pay_periods.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False)
    shift_id: Mapped[UUID] = mapped_column(nullable=False)
    contractor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[str] = mapped_column(String(100), nullable=False)
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    hours: Mapped[Decimal] = mapped_column(nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)
    institution: Mapped[str | None] = mapped_column(String(200), nullable=True)
    notes: Mapped[str | None] = mapped_column(String(1000), nullable=True)

    pay_period: Mapped["PayPeriodModel"] = relationship(
        "PayPeriodModel", back_populates="shifts",
    )

    __table_args__ = (
        Index("idx_contractor_pay_shift_period", "pay_period_id"),
    )

    def to_dto(self):
        from payroll_modules.contractor_pay.models import ShiftStatus, WorkShift
        return WorkShift(
            shift_id=self.shift_id,
            contractor_id=self.contractor_id,
            role=self.role,
            work_date=self.work_date,
            hours=self.hours.normalize(),
            status=ShiftStatus(self.status),
            institution=self.institution,
            notes=self.notes,
        )

    @classmethod
    def from_dto(cls, dto, position: int) -> "PayPeriodShiftModel":
        return cls(
            position=position,
            shift_id=dto.shift_id,
            contractor_id=dto.contractor_id,
            role=dto.role,
            work_date=dto.work_date,
            hours=dto.hours,
            status=dto.status.value,
            institution=dto.institution,
            notes=dto.notes,
        )


# ---------------------------------------------------------------------------
# BonusModel
# ---------------------------------------------------------------------------


class BonusModel(Base):
    """ORM model for a ``Bonus`` attached to a pay period."""

    __tablename__ = "contractor_bonuses"

    pay_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("contractor_pay_periods.id"), nullable=False,
    )
    position: Mapped[int] = mapped_column(nullable=False)
    contractor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    bonus_type: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    award_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False)

    pay_period: Mapped["PayPeriodModel"] = relationship(
        "PayPeriodModel", back_populates="bonuses",
    )

    __table_args__ = (
        Index("idx_contractor_bonus_contractor", "contractor_id"),
    )

    def to_dto(self):
        from payroll_modules.contractor_pay.models import Bonus, BonusStatus, BonusType
        return Bonus(
            id=self.id,
            contractor_id=self.contractor_id,
            bonus_type=BonusType(self.bonus_type),
            amount=round_money(self.amount),
            award_date=self.award_date,
            status=BonusStatus(self.status),
        )

    @classmethod
    def from_dto(cls, dto, position: int) -> "BonusModel":
        return cls(
            id=dto.id,
            position=position,
            contractor_id=dto.contractor_id,
            bonus_type=dto.bonus_type.value,
            amount=dto.amount,
            award_date=dto.award_date,
            status=dto.status.value,
        )


# ---------------------------------------------------------------------------
# BonusCounterModel
# ---------------------------------------------------------------------------


class BonusCounterModel(Base):
    """
    Rolling completed-assignment counter for one contractor.

    Guarantees:
        - One row per ``contractor_id`` (uq_contractor_bonus_counter).
    """

    __tablename__ = "contractor_bonus_counters"

    contractor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    counter: Mapped[int] = mapped_column(nullable=False, default=0)

    __table_args__ = (
        UniqueConstraint("contractor_id", name="uq_contractor_bonus_counter"),
    )


# ---------------------------------------------------------------------------
# PlacementProgressModel
# ---------------------------------------------------------------------------


class PlacementProgressModel(Base):
    """
    ORM model for ``PlacementProgress``.

    Institutions are stored as a sorted JSON array since the dataclass uses
    ``frozenset[str]``.

    Guarantees:
        - One row per ``contractor_id`` (uq_contractor_placement_progress).
        - ``status`` stores the PlacementStatus .value string.
    """

    __tablename__ = "contractor_placement_progress"

    contractor_id: Mapped[str] = mapped_column(String(100), nullable=False)
    total_assignments: Mapped[int] = mapped_column(nullable=False, default=0)
    institutions_json: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    positive_feedback_count: Mapped[int] = mapped_column(nullable=False, default=0)
    status: Mapped[str] = mapped_column(String(30), nullable=False)
    start_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    __table_args__ = (
        UniqueConstraint("contractor_id", name="uq_contractor_placement_progress"),
        Index("idx_contractor_placement_status", "status"),
    )

    def to_dto(self):
        from payroll_modules.contractor_pay.models import PlacementProgress, PlacementStatus
        return PlacementProgress(
            contractor_id=self.contractor_id,
            total_assignments=self.total_assignments,
            institutions=frozenset(json.loads(self.institutions_json or "[]")),
            positive_feedback_count=self.positive_feedback_count,
            status=PlacementStatus(self.status),
            start_date=self.start_date,
        )

    def update_from_dto(self, dto) -> None:
        self.total_assignments = dto.total_assignments
        self.institutions_json = json.dumps(sorted(dto.institutions))
        self.positive_feedback_count = dto.positive_feedback_count
        self.status = dto.status.value
        self.start_date = dto.start_date

    @classmethod
    def from_dto(cls, dto) -> "PlacementProgressModel":
        model = cls(contractor_id=dto.contractor_id)
        model.update_from_dto(dto)
        return model
