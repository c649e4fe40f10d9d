"""
Placement Tracker (``payroll_modules.contractor_pay.placement``).

Responsibility
--------------
Accumulate each contractor's lifetime completed assignments, the set of
distinct institutions worked at and positive feedback, and move placement
status forward once the configured eligibility criteria are met.

Architecture position
---------------------
**Modules layer** -- stateful component.  The progress map is owned here
and nowhere else; callers receive immutable ``PlacementProgress`` copies.
With an ``IncentiveStateStore`` the map is loaded at construction and every
change is written through, so progress survives across processes.

Invariants enforced
-------------------
* ``total_assignments`` and ``positive_feedback_count`` never decrease.
* ``institutions`` is a true set: the same institution is counted once.
* Status only moves along ``PLACEMENT_WORKFLOW``; it never returns to an
  earlier state.
* Same-contractor updates are serialized through ``KeyedLocks``.

Failure modes
-------------
* ``PlacementRegressionError`` for any status change that is not a
  declared forward transition from the current status.
* ``ValueError`` when shifts for another contractor are passed in, or
  feedback counts are negative.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import date

from payroll_kernel.exceptions import InvalidTransitionError, PlacementRegressionError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.utils.locks import KeyedLocks
from payroll_modules.contractor_pay.config import PayrollConfig
from payroll_modules.contractor_pay.models import (
    PlacementProgress,
    PlacementStatus,
    WorkShift,
)
from payroll_modules.contractor_pay.store import IncentiveStateStore
from payroll_modules.contractor_pay.workflows import PLACEMENT_WORKFLOW

logger = get_logger("modules.contractor_pay.placement")


@dataclass(frozen=True)
class PlacementCriteria:
    """Eligibility thresholds for moving from active to in-consideration."""
    min_assignments: int = 30
    min_institutions: int = 3
    min_positive_feedback: int = 10

    def is_met(self, progress: PlacementProgress) -> bool:
        return (
            progress.total_assignments >= self.min_assignments
            and progress.unique_institution_count >= self.min_institutions
            and progress.positive_feedback_count >= self.min_positive_feedback
        )


class PlacementTracker:
    """Lifetime placement progress per contractor."""

    def __init__(
        self,
        criteria: PlacementCriteria | None = None,
        state: IncentiveStateStore | None = None,
    ):
        self._criteria = criteria or PlacementCriteria()
        self._state = state
        self._progress: dict[str, PlacementProgress] = (
            state.load_placement_progress() if state is not None else {}
        )
        self._locks = KeyedLocks()

    @classmethod
    def from_config(
        cls,
        config: PayrollConfig,
        state: IncentiveStateStore | None = None,
    ) -> PlacementTracker:
        criteria = PlacementCriteria(
            min_assignments=config.placement_min_assignments,
            min_institutions=config.placement_min_institutions,
            min_positive_feedback=config.placement_min_positive_feedback,
        )
        return cls(criteria, state=state)

    @property
    def criteria(self) -> PlacementCriteria:
        return self._criteria

    def progress_for(self, contractor_id: str) -> PlacementProgress:
        """Current progress; a fresh ``active`` record if none exists yet."""
        return self._progress.get(contractor_id) or PlacementProgress(contractor_id=contractor_id)

    def all_progress(self) -> tuple[PlacementProgress, ...]:
        return tuple(sorted(list(self._progress.values()), key=lambda p: p.contractor_id))

    def is_eligible(self, contractor_id: str) -> bool:
        return self._criteria.is_met(self.progress_for(contractor_id))

    def _save(self, progress: PlacementProgress) -> None:
        # Caller holds the contractor's lock.
        if self._state is not None:
            self._state.save_placement_progress(progress)
        self._progress[progress.contractor_id] = progress

    def _promote_if_eligible(self, progress: PlacementProgress) -> PlacementProgress:
        if progress.status == PlacementStatus.ACTIVE and self._criteria.is_met(progress):
            status = PLACEMENT_WORKFLOW.apply(progress.status.value, "consider")
            logger.info("placement_eligibility_reached", extra={
                "contractor_id": progress.contractor_id,
                "total_assignments": progress.total_assignments,
                "unique_institutions": progress.unique_institution_count,
                "positive_feedback": progress.positive_feedback_count,
                "placement_score": progress.placement_score,
            })
            return replace(progress, status=PlacementStatus(status))
        return progress

    def update_progress(
        self,
        contractor_id: str,
        newly_completed_shifts: Iterable[WorkShift],
        as_of: date | None = None,
    ) -> PlacementProgress:
        """
        Fold shifts not yet counted into the contractor's progress.

        Only completed shifts count.  The caller guarantees each shift is
        passed at most once.
        """
        shifts = [s for s in newly_completed_shifts if s.is_completed]
        foreign = [s for s in shifts if s.contractor_id != contractor_id]
        if foreign:
            raise ValueError(
                f"Shift {foreign[0].shift_id} belongs to {foreign[0].contractor_id}, "
                f"not {contractor_id}"
            )

        with self._locks.hold(contractor_id):
            current = self.progress_for(contractor_id)
            start = current.start_date
            if start is None:
                dated = [s.work_date for s in shifts if s.work_date is not None]
                start = min(dated) if dated else as_of
            updated = replace(
                current,
                total_assignments=current.total_assignments + len(shifts),
                institutions=current.institutions | {s.institution for s in shifts if s.institution},
                start_date=start,
            )
            updated = self._promote_if_eligible(updated)
            self._save(updated)

        logger.debug("placement_progress_updated", extra={
            "contractor_id": contractor_id,
            "added_assignments": len(shifts),
            "total_assignments": updated.total_assignments,
            "status": updated.status.value,
        })
        return updated

    def record_feedback(self, contractor_id: str, positive: int = 1) -> PlacementProgress:
        """Add positive feedback received from institutions."""
        if positive < 0:
            raise ValueError(f"feedback count cannot be negative: {positive}")
        with self._locks.hold(contractor_id):
            current = self.progress_for(contractor_id)
            updated = replace(
                current,
                positive_feedback_count=current.positive_feedback_count + positive,
            )
            updated = self._promote_if_eligible(updated)
            self._save(updated)
        return updated

    def advance(self, contractor_id: str, action: str) -> PlacementProgress:
        """
        Apply a placement lifecycle action (``interview``, ``offer``,
        ``place``, ``decline``, or a manual ``consider``).

        Raises:
            PlacementRegressionError: if ``action`` is not a forward
                transition from the current status.
        """
        with self._locks.hold(contractor_id):
            current = self.progress_for(contractor_id)
            try:
                target = PLACEMENT_WORKFLOW.apply(current.status.value, action)
            except InvalidTransitionError as exc:
                raise PlacementRegressionError(
                    contractor_id, current.status.value, action,
                ) from exc
            updated = replace(current, status=PlacementStatus(target))
            self._save(updated)

        logger.info("placement_status_advanced", extra={
            "contractor_id": contractor_id,
            "from_status": current.status.value,
            "to_status": updated.status.value,
            "action": action,
        })
        return updated
