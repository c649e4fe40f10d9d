"""
Tests for the milestone Bonus Engine.

Covers:
- Threshold crossing emits exactly one bonus and resets the counter
- Counters of different contractors are independent
- Second-pass attachment to the open pay period
- NoOpenPeriodError keeps the counter intact
- preview/commit: nothing changes until the draft is committed
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import NoOpenPeriodError, PayPeriodNotFoundError
from payroll_modules.contractor_pay.bonus import BonusEngine
from payroll_modules.contractor_pay.config import PayrollConfig
from payroll_modules.contractor_pay.models import (
    BonusStatus,
    BonusType,
    PayPeriod,
    PayPeriodStatus,
)
from payroll_modules.contractor_pay.store import InMemoryPayPeriodStore

WEEK_START = date(2024, 3, 4)
AWARD_DATE = date(2024, 3, 10)


def _open_period(store, contractor_id="C-1", earnings="200.00", status=PayPeriodStatus.PENDING):
    return store.add(PayPeriod(
        id=uuid4(),
        contractor_id=contractor_id,
        start_date=WEEK_START,
        end_date=date(2024, 3, 10),
        status=status,
        earnings=Decimal(earnings),
        total_amount=Decimal(earnings),
    ))


class TestEvaluate:

    def test_below_threshold_no_bonus(self):
        engine = BonusEngine()
        engine.record_completion("C-1", 29)
        assert engine.evaluate("C-1", AWARD_DATE) is None
        assert engine.counter("C-1") == 29

    def test_threshold_awards_and_resets(self, captured_logs):
        engine = BonusEngine()
        engine.record_completion("C-1", 30)
        bonus = engine.evaluate("C-1", AWARD_DATE)

        assert bonus is not None
        assert bonus.amount == Decimal("100")
        assert bonus.bonus_type == BonusType.THIRTY_ASSIGNMENTS
        assert bonus.status == BonusStatus.EARNED
        assert bonus.award_date == AWARD_DATE
        assert engine.counter("C-1") == 0
        assert any(r["message"] == "bonus_awarded" for r in captured_logs())

    def test_second_evaluate_without_completions_emits_nothing(self):
        engine = BonusEngine()
        engine.record_completion("C-1", 30)
        assert engine.evaluate("C-1", AWARD_DATE) is not None
        assert engine.evaluate("C-1", AWARD_DATE) is None

    def test_overshoot_resets_to_zero(self):
        engine = BonusEngine()
        engine.record_completion("C-1", 34)
        assert engine.evaluate("C-1", AWARD_DATE) is not None
        assert engine.counter("C-1") == 0

    def test_incremental_crossing(self):
        engine = BonusEngine()
        for _ in range(29):
            engine.record_completion("C-1")
        assert engine.evaluate("C-1", AWARD_DATE) is None
        assert engine.record_completion("C-1") == 30
        assert engine.evaluate("C-1", AWARD_DATE) is not None

    def test_contractors_independent(self):
        engine = BonusEngine()
        engine.record_completion("C-1", 30)
        engine.record_completion("C-2", 5)
        engine.evaluate("C-1", AWARD_DATE)
        assert engine.counter("C-2") == 5
        assert engine.counters() == {"C-2": 5}

    def test_negative_count_rejected(self):
        with pytest.raises(ValueError):
            BonusEngine().record_completion("C-1", -1)

    def test_from_config(self):
        config = PayrollConfig(bonus_threshold=5, bonus_amount=Decimal("25"))
        engine = BonusEngine.from_config(config)
        engine.record_completion("C-1", 5)
        assert engine.threshold == 5
        assert engine.evaluate("C-1", AWARD_DATE).amount == Decimal("25")

    def test_invalid_threshold(self):
        with pytest.raises(ValueError):
            BonusEngine(threshold=0)


class TestPreviewCommit:

    def test_preview_leaves_counter(self):
        engine = BonusEngine()
        engine.record_completion("C-1", 29)
        draft = engine.preview("C-1", 1, AWARD_DATE)

        assert draft.bonus is not None
        assert draft.bonus.status == BonusStatus.EARNED
        assert engine.counter("C-1") == 29

    def test_commit_resets_after_award(self, captured_logs):
        engine = BonusEngine()
        engine.record_completion("C-1", 29)
        draft = engine.preview("C-1", 3, AWARD_DATE)

        assert engine.commit(draft) == 0
        assert any(r["message"] == "bonus_awarded" for r in captured_logs())

    def test_commit_without_bonus_adds_completions(self):
        engine = BonusEngine()
        engine.record_completion("C-1", 10)
        draft = engine.preview("C-1", 5, AWARD_DATE)

        assert draft.bonus is None
        assert engine.commit(draft) == 15

    def test_negative_preview_rejected(self):
        with pytest.raises(ValueError):
            BonusEngine().preview("C-1", -1, AWARD_DATE)


class _FailingReplaceStore(InMemoryPayPeriodStore):

    def replace(self, period):
        raise PayPeriodNotFoundError(str(period.id))


class TestAttachPending:

    def test_attaches_processing_bonus(self):
        store = InMemoryPayPeriodStore()
        period = _open_period(store)
        engine = BonusEngine()
        engine.record_completion("C-1", 30)

        updated = engine.attach_pending("C-1", store, WEEK_START, AWARD_DATE)

        assert updated.id == period.id
        assert len(updated.bonuses) == 1
        assert updated.bonuses[0].status == BonusStatus.PROCESSING
        assert updated.total_amount == Decimal("300.00")
        assert store.get(period.id) == updated
        assert engine.counter("C-1") == 0

    def test_below_threshold_returns_none(self):
        store = InMemoryPayPeriodStore()
        _open_period(store)
        engine = BonusEngine()
        engine.record_completion("C-1", 3)
        assert engine.attach_pending("C-1", store, WEEK_START, AWARD_DATE) is None

    def test_no_open_period_keeps_counter(self):
        store = InMemoryPayPeriodStore()
        engine = BonusEngine()
        engine.record_completion("C-1", 30)

        with pytest.raises(NoOpenPeriodError) as exc_info:
            engine.attach_pending("C-1", store, WEEK_START, AWARD_DATE)
        assert exc_info.value.week_start == "2024-03-04"
        assert engine.counter("C-1") == 30

    def test_approved_period_is_not_open(self):
        store = InMemoryPayPeriodStore()
        _open_period(store, status=PayPeriodStatus.APPROVED)
        engine = BonusEngine()
        engine.record_completion("C-1", 30)
        with pytest.raises(NoOpenPeriodError):
            engine.attach_pending("C-1", store, WEEK_START, AWARD_DATE)

    def test_rejected_replace_keeps_counter(self):
        store = _FailingReplaceStore()
        _open_period(store)
        engine = BonusEngine()
        engine.record_completion("C-1", 30)

        with pytest.raises(PayPeriodNotFoundError):
            engine.attach_pending("C-1", store, WEEK_START, AWARD_DATE)
        assert engine.counter("C-1") == 30


class TestProcessBonuses:

    def test_attached_and_failures_separated(self):
        store = InMemoryPayPeriodStore()
        _open_period(store, "C-1")
        engine = BonusEngine()
        engine.record_completion("C-1", 30)
        engine.record_completion("C-2", 31)
        engine.record_completion("C-3", 4)

        result = engine.process_bonuses(store, WEEK_START, AWARD_DATE)

        assert set(result.attached) == {"C-1"}
        assert set(result.failures) == {"C-2"}
        assert result.failures["C-2"].code == "NO_OPEN_PERIOD"
        assert engine.counter("C-2") == 31
        assert engine.counter("C-3") == 4

    def test_second_pass_is_noop(self):
        store = InMemoryPayPeriodStore()
        _open_period(store, "C-1")
        engine = BonusEngine()
        engine.record_completion("C-1", 30)
        engine.process_bonuses(store, WEEK_START, AWARD_DATE)

        again = engine.process_bonuses(store, WEEK_START, AWARD_DATE)
        assert again.attached == {}
        assert len(store.find("C-1", WEEK_START).bonuses) == 1
