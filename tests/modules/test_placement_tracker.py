"""
Tests for the Placement Tracker.

Covers:
- Monotonic assignment and feedback counters
- Institution set semantics
- Automatic promotion to inConsideration
- Forward-only lifecycle transitions
"""

from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import PlacementRegressionError
from payroll_modules.contractor_pay.config import PayrollConfig
from payroll_modules.contractor_pay.models import PlacementStatus, ShiftStatus, WorkShift
from payroll_modules.contractor_pay.placement import PlacementCriteria, PlacementTracker


def _shifts(n: int, institution: str = "Lincoln", contractor_id: str = "C-1",
            status: ShiftStatus = ShiftStatus.COMPLETED) -> list[WorkShift]:
    return [
        WorkShift(
            shift_id=uuid4(),
            contractor_id=contractor_id,
            role="Bus Aide",
            work_date=date(2024, 3, 4),
            hours=Decimal("6"),
            status=status,
            institution=institution,
        )
        for _ in range(n)
    ]


def _eligible_tracker() -> PlacementTracker:
    tracker = PlacementTracker()
    tracker.update_progress("C-1", _shifts(10, "A") + _shifts(10, "B") + _shifts(10, "C"))
    tracker.record_feedback("C-1", 10)
    return tracker


class TestUpdateProgress:

    def test_fresh_contractor(self):
        progress = PlacementTracker().progress_for("C-1")
        assert progress.total_assignments == 0
        assert progress.status == PlacementStatus.ACTIVE

    def test_counts_completed_only(self):
        tracker = PlacementTracker()
        progress = tracker.update_progress(
            "C-1", _shifts(3) + _shifts(2, status=ShiftStatus.CANCELLED),
        )
        assert progress.total_assignments == 3

    def test_institutions_are_a_set(self):
        tracker = PlacementTracker()
        tracker.update_progress("C-1", _shifts(2, "Lincoln"))
        progress = tracker.update_progress("C-1", _shifts(1, "Lincoln") + _shifts(1, "Roosevelt"))
        assert progress.institutions == frozenset({"Lincoln", "Roosevelt"})
        assert progress.total_assignments == 4

    def test_start_date_set_once(self):
        tracker = PlacementTracker()
        tracker.update_progress("C-1", _shifts(1), as_of=date(2024, 3, 6))
        progress = tracker.update_progress("C-1", [], as_of=date(2024, 5, 1))
        assert progress.start_date == date(2024, 3, 4)

    def test_start_date_falls_back_to_as_of(self):
        progress = PlacementTracker().update_progress("C-1", [], as_of=date(2024, 3, 6))
        assert progress.start_date == date(2024, 3, 6)

    def test_foreign_shift_rejected(self):
        with pytest.raises(ValueError, match="belongs to"):
            PlacementTracker().update_progress("C-1", _shifts(1, contractor_id="C-2"))


class TestPromotion:

    def test_promoted_when_all_criteria_met(self, captured_logs):
        tracker = _eligible_tracker()
        assert tracker.is_eligible("C-1")
        assert tracker.progress_for("C-1").status == PlacementStatus.IN_CONSIDERATION
        assert any(r["message"] == "placement_eligibility_reached" for r in captured_logs())

    def test_not_promoted_without_enough_institutions(self):
        tracker = PlacementTracker()
        tracker.update_progress("C-1", _shifts(30, "A"))
        tracker.record_feedback("C-1", 10)
        assert tracker.progress_for("C-1").status == PlacementStatus.ACTIVE

    def test_not_promoted_without_feedback(self):
        tracker = PlacementTracker()
        tracker.update_progress("C-1", _shifts(10, "A") + _shifts(10, "B") + _shifts(10, "C"))
        assert tracker.progress_for("C-1").status == PlacementStatus.ACTIVE

    def test_custom_criteria_from_config(self):
        config = PayrollConfig(
            placement_min_assignments=2,
            placement_min_institutions=1,
            placement_min_positive_feedback=0,
        )
        tracker = PlacementTracker.from_config(config)
        assert tracker.criteria == PlacementCriteria(2, 1, 0)
        progress = tracker.update_progress("C-1", _shifts(2))
        assert progress.status == PlacementStatus.IN_CONSIDERATION

    def test_negative_feedback_rejected(self):
        with pytest.raises(ValueError):
            PlacementTracker().record_feedback("C-1", -1)


class TestAdvance:

    def test_forward_path(self):
        tracker = _eligible_tracker()
        for action, expected in (
            ("interview", PlacementStatus.INTERVIEWING),
            ("offer", PlacementStatus.OFFERED),
            ("place", PlacementStatus.PLACED),
        ):
            assert tracker.advance("C-1", action).status == expected

    def test_cannot_skip_ahead_from_active(self):
        with pytest.raises(PlacementRegressionError) as exc_info:
            PlacementTracker().advance("C-1", "offer")
        assert exc_info.value.current_status == "active"
        assert exc_info.value.code == "PLACEMENT_REGRESSION"

    def test_cannot_reconsider_after_interview(self):
        tracker = _eligible_tracker()
        tracker.advance("C-1", "interview")
        with pytest.raises(PlacementRegressionError):
            tracker.advance("C-1", "consider")

    def test_declined_is_terminal(self):
        tracker = _eligible_tracker()
        tracker.advance("C-1", "decline")
        with pytest.raises(PlacementRegressionError):
            tracker.advance("C-1", "interview")

    def test_progress_survives_status_change(self):
        tracker = _eligible_tracker()
        tracker.advance("C-1", "interview")
        progress = tracker.update_progress("C-1", _shifts(1, "D"))
        assert progress.status == PlacementStatus.INTERVIEWING
        assert progress.total_assignments == 31

    def test_all_progress_sorted(self):
        tracker = PlacementTracker()
        tracker.update_progress("C-2", _shifts(1, contractor_id="C-2"))
        tracker.update_progress("C-1", _shifts(1))
        assert [p.contractor_id for p in tracker.all_progress()] == ["C-1", "C-2"]
