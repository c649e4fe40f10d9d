"""
Bonus Engine (``payroll_modules.contractor_pay.bonus``).

Responsibility
--------------
Own the rolling completed-assignment counter per contractor and award the
fixed milestone bonus each time the counter crosses the threshold.

* ``record_completion`` -- increment a contractor's counter.
* ``evaluate`` -- emit an ``earned`` bonus when the counter has reached the
  threshold, resetting it to zero.
* ``preview`` / ``commit`` -- the same decision split in two, so a caller
  can build and store a pay period around the bonus before the counter
  moves.  A draft that is never committed changes nothing.
* ``process_bonuses`` -- second pass: emit ``processing`` bonuses for any
  counter still at the threshold and attach each to the contractor's open
  period for the week.

Counters are held in memory and, when an ``IncentiveStateStore`` is
given, loaded from it at construction and written through on every change.

Architecture position
---------------------
**Modules layer** -- stateful component.  The counter map is owned here
and nowhere else; callers pass contractors in and receive bonuses out.

Invariants enforced
-------------------
* Award events are disjoint: the counter resets to zero in the same
  critical section that emits the bonus, so a second ``evaluate`` without
  new completions emits nothing.
* Same-contractor mutations are serialized through ``KeyedLocks``;
  different contractors never contend.
* A bonus that cannot be attached is never dropped: the counter keeps its
  value and ``NoOpenPeriodError`` is reported.

Failure modes
-------------
* ``NoOpenPeriodError`` when no pending period exists for the contractor's
  week at attach time.
* ``ValueError`` for negative completion counts.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

from payroll_kernel.exceptions import NoOpenPeriodError
from payroll_kernel.logging_config import get_logger
from payroll_kernel.utils.locks import KeyedLocks
from payroll_modules.contractor_pay.config import PayrollConfig
from payroll_modules.contractor_pay.models import (
    Bonus,
    BonusStatus,
    BonusType,
    PayPeriod,
)
from payroll_modules.contractor_pay.store import IncentiveStateStore, PayPeriodStore

logger = get_logger("modules.contractor_pay.bonus")


@dataclass(frozen=True)
class BonusProcessingResult:
    """Outcome of a ``process_bonuses`` pass."""
    attached: dict[str, PayPeriod] = field(default_factory=dict)
    failures: dict[str, NoOpenPeriodError] = field(default_factory=dict)


@dataclass(frozen=True)
class BonusDraft:
    """Completions and the bonus they would award, not yet applied."""
    contractor_id: str
    completions: int
    bonus: Bonus | None = None


class BonusEngine:
    """
    Threshold-crossing bonus awards.

    Contract:
        ``evaluate`` returns at most one bonus per threshold crossing.
        ``preview`` never changes a counter; only ``commit`` does.
    """

    def __init__(
        self,
        *,
        threshold: int = 30,
        amount: Decimal = Decimal("100"),
        bonus_type: BonusType = BonusType.THIRTY_ASSIGNMENTS,
        id_factory: Callable[[], UUID] = uuid4,
        state: IncentiveStateStore | None = None,
    ):
        if threshold <= 0:
            raise ValueError("threshold must be positive")
        self._threshold = threshold
        self._amount = amount
        self._bonus_type = bonus_type
        self._id_factory = id_factory
        self._state = state
        self._counters: dict[str, int] = state.load_bonus_counters() if state is not None else {}
        self._locks = KeyedLocks()

    @classmethod
    def from_config(
        cls,
        config: PayrollConfig,
        state: IncentiveStateStore | None = None,
    ) -> BonusEngine:
        return cls(
            threshold=config.bonus_threshold,
            amount=config.bonus_amount,
            bonus_type=config.bonus_type,
            state=state,
        )

    @property
    def threshold(self) -> int:
        return self._threshold

    def counter(self, contractor_id: str) -> int:
        return self._counters.get(contractor_id, 0)

    def counters(self) -> dict[str, int]:
        """Snapshot of every non-zero counter."""
        return {k: v for k, v in list(self._counters.items()) if v}

    def _set_counter(self, contractor_id: str, value: int) -> None:
        # Caller holds the contractor's lock.
        if self._state is not None:
            self._state.save_bonus_counter(contractor_id, value)
        self._counters[contractor_id] = value

    def _new_bonus(self, contractor_id: str, award_date: date, status: BonusStatus) -> Bonus:
        return Bonus(
            id=self._id_factory(),
            contractor_id=contractor_id,
            bonus_type=self._bonus_type,
            amount=self._amount,
            award_date=award_date,
            status=status,
        )

    def _log_award(self, bonus: Bonus) -> None:
        logger.info("bonus_awarded", extra={
            "contractor_id": bonus.contractor_id,
            "bonus_id": bonus.id,
            "bonus_type": bonus.bonus_type.value,
            "amount": str(bonus.amount),
        })

    def record_completion(self, contractor_id: str, count: int = 1) -> int:
        """Add ``count`` completed assignments and return the new counter."""
        if count < 0:
            raise ValueError(f"completion count cannot be negative: {count}")
        with self._locks.hold(contractor_id):
            value = self._counters.get(contractor_id, 0) + count
            self._set_counter(contractor_id, value)
        logger.debug("assignment_completions_recorded", extra={
            "contractor_id": contractor_id,
            "count": count,
            "counter": value,
        })
        return value

    def evaluate(self, contractor_id: str, award_date: date) -> Bonus | None:
        """Emit an ``earned`` bonus if the threshold is reached, else None."""
        with self._locks.hold(contractor_id):
            if self._counters.get(contractor_id, 0) < self._threshold:
                return None
            bonus = self._new_bonus(contractor_id, award_date, BonusStatus.EARNED)
            self._set_counter(contractor_id, 0)
        self._log_award(bonus)
        return bonus

    def preview(self, contractor_id: str, count: int, award_date: date) -> BonusDraft:
        """
        What recording ``count`` completions would award, without recording.

        The returned draft takes effect only through ``commit``; dropping it
        leaves the counter exactly as it was.
        """
        if count < 0:
            raise ValueError(f"completion count cannot be negative: {count}")
        with self._locks.hold(contractor_id):
            reached = self._counters.get(contractor_id, 0) + count >= self._threshold
        bonus = self._new_bonus(contractor_id, award_date, BonusStatus.EARNED) if reached else None
        return BonusDraft(contractor_id=contractor_id, completions=count, bonus=bonus)

    def commit(self, draft: BonusDraft) -> int:
        """Apply a ``preview`` result and return the new counter."""
        contractor_id = draft.contractor_id
        with self._locks.hold(contractor_id):
            value = self._counters.get(contractor_id, 0) + draft.completions
            if draft.bonus is not None:
                value = 0
            self._set_counter(contractor_id, value)
        logger.debug("assignment_completions_recorded", extra={
            "contractor_id": contractor_id,
            "count": draft.completions,
            "counter": value,
        })
        if draft.bonus is not None:
            self._log_award(draft.bonus)
        return value

    def attach_pending(
        self,
        contractor_id: str,
        store: PayPeriodStore,
        week_start: date,
        award_date: date,
    ) -> PayPeriod | None:
        """
        Attach a ``processing`` bonus for ``contractor_id`` to its open period.

        Returns the updated period, or None when the counter is below the
        threshold.  The counter resets only after the store accepted the
        updated period.

        Raises:
            NoOpenPeriodError: if the contractor has no pending period for
                ``week_start``.  The counter is left unchanged.
        """
        with self._locks.hold(contractor_id):
            if self._counters.get(contractor_id, 0) < self._threshold:
                return None
            period = store.find(contractor_id, week_start)
            if period is None or not period.is_open:
                raise NoOpenPeriodError(contractor_id, week_start.isoformat())
            bonus = self._new_bonus(contractor_id, award_date, BonusStatus.PROCESSING)
            updated = store.replace(period.with_bonus(bonus))
            self._set_counter(contractor_id, 0)
        logger.info("bonus_attached", extra={
            "contractor_id": contractor_id,
            "bonus_id": bonus.id,
            "pay_period_id": updated.id,
            "total_amount": str(updated.total_amount),
        })
        return updated

    def process_bonuses(
        self,
        store: PayPeriodStore,
        week_start: date,
        award_date: date,
    ) -> BonusProcessingResult:
        """Attach pending bonuses for every contractor at the threshold."""
        attached: dict[str, PayPeriod] = {}
        failures: dict[str, NoOpenPeriodError] = {}
        for contractor_id in sorted(self.counters()):
            try:
                period = self.attach_pending(contractor_id, store, week_start, award_date)
            except NoOpenPeriodError as exc:
                logger.warning("bonus_attach_failed", extra={
                    "contractor_id": contractor_id,
                    "week_start": week_start,
                    "error_code": exc.code,
                })
                failures[contractor_id] = exc
                continue
            if period is not None:
                attached[contractor_id] = period
        return BonusProcessingResult(attached=attached, failures=failures)
