"""Tests for contractor pay value objects (payroll_modules.contractor_pay.models)."""

from dataclasses import FrozenInstanceError
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_modules.contractor_pay.models import (
    Bonus,
    BonusStatus,
    BonusType,
    ContractorOutcome,
    PayPeriod,
    PayPeriodStatus,
    PayRate,
    PayrollRunResult,
    PlacementProgress,
    ShiftStatus,
    WorkShift,
)


def _period(contractor_id="C-1", total="200.00", **kwargs) -> PayPeriod:
    return PayPeriod(
        id=uuid4(),
        contractor_id=contractor_id,
        start_date=date(2024, 3, 4),
        end_date=date(2024, 3, 10),
        earnings=Decimal(total),
        total_amount=Decimal(total),
        **kwargs,
    )


def _bonus(amount="100") -> Bonus:
    return Bonus(
        id=uuid4(),
        contractor_id="C-1",
        bonus_type=BonusType.THIRTY_ASSIGNMENTS,
        amount=Decimal(amount),
        award_date=date(2024, 3, 10),
    )


class TestWorkShift:

    def test_from_times_derives_hours(self):
        shift = WorkShift.from_times(
            contractor_id="C-1",
            role="Bus Aide",
            start=datetime(2024, 3, 4, 7, 0, tzinfo=timezone.utc),
            end=datetime(2024, 3, 4, 15, 30, tzinfo=timezone.utc),
        )
        assert shift.hours == Decimal("8.5")
        assert shift.work_date == date(2024, 3, 4)
        assert shift.status == ShiftStatus.COMPLETED

    def test_from_times_reversed_gives_negative(self, captured_logs):
        shift = WorkShift.from_times(
            contractor_id="C-1",
            role="Bus Aide",
            start=datetime(2024, 3, 4, 15, 0),
            end=datetime(2024, 3, 4, 7, 0),
        )
        assert shift.hours == Decimal("-8")
        assert any(r["message"] == "shift_times_reversed" for r in captured_logs())

    def test_is_frozen(self):
        shift = WorkShift(uuid4(), "C-1", "Bus Aide", date(2024, 3, 4), Decimal("8"), ShiftStatus.COMPLETED)
        with pytest.raises(FrozenInstanceError):
            shift.hours = Decimal("9")


class TestPayRate:

    def test_negative_base_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            PayRate(role="Aide", base_hourly_rate=Decimal("-1"))

    def test_empty_role_rejected(self):
        with pytest.raises(ValueError, match="role"):
            PayRate(role="", base_hourly_rate=Decimal("20"))

    def test_holiday_multiplier_below_one_rejected(self):
        with pytest.raises(ValueError, match="holiday_multiplier"):
            PayRate(role="Aide", base_hourly_rate=Decimal("20"), holiday_multiplier=Decimal("0.9"))


class TestPayPeriod:

    def test_must_span_seven_days(self):
        with pytest.raises(ValueError, match="7 days"):
            PayPeriod(
                id=uuid4(), contractor_id="C-1",
                start_date=date(2024, 3, 4), end_date=date(2024, 3, 11),
            )

    def test_negative_total_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            _period(total="-1")

    def test_with_bonus_adds_to_total(self):
        period = _period()
        updated = period.with_bonus(_bonus())
        assert updated.total_amount == Decimal("300.00")
        assert updated.bonus_total == Decimal("100")
        assert updated.id == period.id
        assert period.bonuses == ()

    def test_with_status(self):
        period = _period()
        approved = period.with_status(PayPeriodStatus.APPROVED)
        assert approved.status == PayPeriodStatus.APPROVED
        assert not approved.is_open
        assert period.is_open

    def test_week(self):
        assert _period().week.label == "2024-W10"


class TestPlacementProgress:

    def test_score(self):
        progress = PlacementProgress(
            contractor_id="C-1",
            total_assignments=30,
            institutions=frozenset({"A", "B", "C"}),
            positive_feedback_count=10,
        )
        assert progress.unique_institution_count == 3
        assert progress.placement_score == 60 + 15 + 30


class TestPayrollRunResult:

    def test_partitions_outcomes(self):
        ok = _period("C-1", "100.00")
        result = PayrollRunResult(
            run_id=uuid4(),
            as_of=date(2024, 3, 6),
            week_start=date(2024, 3, 4),
            week_end=date(2024, 3, 10),
            outcomes={
                "C-2": ContractorOutcome("C-2", "not_started", error_code="INVALID_SHIFT_DATA"),
                "C-1": ContractorOutcome("C-1", "assembled", pay_period=ok),
            },
        )
        assert result.succeeded == ("C-1",)
        assert result.failed == ("C-2",)
        assert result.pay_periods == (ok,)
        assert result.total_paid == Decimal("100.00")

    def test_bonus_status_values(self):
        assert [s.value for s in BonusStatus] == ["earned", "processing", "paid"]
