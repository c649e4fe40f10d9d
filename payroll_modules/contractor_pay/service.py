"""
Payroll Orchestrator (``payroll_modules.contractor_pay.service``).

Responsibility
--------------
Drive a weekly payroll run: partition the shift pool, price each
contractor's week, apply milestone bonuses, assemble immutable pending
``PayPeriod`` records, and fold the week into placement progress.  Also
serves the read-side queries and the pay-period status operations.

Per contractor the pipeline moves through::

    NOT_STARTED -> AGGREGATED -> COMPUTED -> BONUSES_APPLIED -> ASSEMBLED

Architecture position
---------------------
**Modules layer** -- thin glue.  ``PayrollOrchestrator`` is the sole public
entry point.  It composes the pure engines (``partition_shift_pool``,
``compute_earnings``, ``compute_payment_analytics``) with the stateful
``BonusEngine``, ``PlacementTracker`` and a ``PayPeriodStore``.

Invariants enforced
-------------------
* The pay week comes only from the explicit ``as_of`` date; the clock is
  read only to stamp ``created_at``.
* Idempotence: a period that already exists for (contractor, week) is
  returned as-is with ``reused=True``; counters and progress are not
  touched again.
* Partial-failure isolation: a typed error fails only its contractor and
  is reported in the outcome map.
* A failed contractor leaves no trace in incentive state: completions and
  the bonus are committed only after the store accepted the period.
* Stages run in fixed order within a contractor; the contractor's lock is
  held for the whole pipeline so concurrent runs never interleave on the
  same contractor.

Failure modes
-------------
* ``InvalidShiftDataError`` / ``RateUnavailableError`` /
  ``DuplicatePayPeriodError``  -> contractor outcome with ``error_code``.
* ``NoOpenPeriodError`` from the second bonus pass -> recorded in
  ``PayrollRunResult.bonus_attach_failures``.
* Records with no contractor id or no date -> listed in
  ``unattributed_shift_ids`` / ``undated_shift_ids``; no contractor fails.
* Unexpected exceptions propagate to the caller.

Usage::

    orchestrator = PayrollOrchestrator(
        rate_resolver=RateResolver.default(),
        shift_source=lambda: load_shift_feed("shifts.csv"),
    )
    result = orchestrator.process_weekly_payroll(date(2024, 3, 6))
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
from contextvars import copy_context
from dataclasses import replace
from datetime import date
from enum import Enum
from uuid import UUID, uuid4

from payroll_engines.aggregation import partition_shift_pool
from payroll_engines.analytics import PaymentAnalytics, compute_payment_analytics
from payroll_engines.earnings import compute_earnings
from payroll_engines.rates import RateResolver
from payroll_kernel.domain.calendar import WeekWindow, week_window
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.exceptions import PayrollKernelError
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_kernel.utils.locks import KeyedLocks
from payroll_modules.contractor_pay.bonus import BonusEngine
from payroll_modules.contractor_pay.config import PayrollConfig
from payroll_modules.contractor_pay.models import (
    BonusStatus,
    ContractorOutcome,
    PayPeriod,
    PayPeriodStatus,
    PayrollRunResult,
    PlacementProgress,
    WorkShift,
)
from payroll_modules.contractor_pay.placement import PlacementTracker
from payroll_modules.contractor_pay.store import (
    IncentiveStateStore,
    InMemoryPayPeriodStore,
    PayPeriodStore,
)
from payroll_modules.contractor_pay.workflows import BONUS_WORKFLOW, PAY_PERIOD_WORKFLOW

logger = get_logger("modules.contractor_pay.service")


class PipelineStage(str, Enum):
    """Per-contractor stage within a weekly run."""

    NOT_STARTED = "not_started"
    AGGREGATED = "aggregated"
    COMPUTED = "computed"
    BONUSES_APPLIED = "bonuses_applied"
    ASSEMBLED = "assembled"


class PayrollOrchestrator:
    """
    Weekly payroll runs and pay-period queries.

    Contract:
        ``process_weekly_payroll`` may be called any number of times for
        the same week; each (contractor, week) is assembled at most once.
        With ``incentive_state`` the default bonus engine and placement
        tracker load from and write through to it.
    Non-goals:
        - Does not deliver payments, compute tax or send notifications.
        - Does not retry failed contractors; re-running the week does.
    """

    def __init__(
        self,
        *,
        rate_resolver: RateResolver,
        config: PayrollConfig | None = None,
        store: PayPeriodStore | None = None,
        shift_source: Callable[[], Iterable[WorkShift]] | None = None,
        bonus_engine: BonusEngine | None = None,
        placement_tracker: PlacementTracker | None = None,
        incentive_state: IncentiveStateStore | None = None,
        clock: Clock | None = None,
    ):
        self._config = config or PayrollConfig.with_defaults()
        self._resolver = rate_resolver
        self._store = store if store is not None else InMemoryPayPeriodStore()
        self._shift_source = shift_source
        self._bonus_engine = bonus_engine or BonusEngine.from_config(
            self._config, state=incentive_state,
        )
        self._placement = placement_tracker or PlacementTracker.from_config(
            self._config, state=incentive_state,
        )
        self._clock = clock or SystemClock()
        self._locks = KeyedLocks()

    @property
    def store(self) -> PayPeriodStore:
        return self._store

    @property
    def bonus_engine(self) -> BonusEngine:
        return self._bonus_engine

    @property
    def placement_tracker(self) -> PlacementTracker:
        return self._placement

    # ------------------------------------------------------------------
    # Weekly run
    # ------------------------------------------------------------------

    def process_weekly_payroll(
        self,
        as_of: date,
        shift_pool: Iterable[WorkShift] | None = None,
    ) -> PayrollRunResult:
        """
        Run payroll for the week containing ``as_of``.

        ``shift_pool`` overrides the configured ``shift_source`` for this run.
        """
        if shift_pool is None:
            if self._shift_source is None:
                raise ValueError("No shift_pool given and no shift_source configured")
            shift_pool = self._shift_source()

        run_id = uuid4()
        window = week_window(as_of)

        with LogContext.bind(run_id=str(run_id)):
            logger.info("payroll_run_started", extra={
                "as_of": as_of,
                "week_start": window.start,
                "week_end": window.end,
            })

            partition = partition_shift_pool(as_of=as_of, shift_pool=shift_pool)
            contractors = partition.contractors

            def pipeline(contractor_id: str) -> ContractorOutcome:
                return self._run_contractor(
                    contractor_id=contractor_id,
                    shifts=partition.valid_by_contractor.get(contractor_id, ()),
                    rejected=partition.rejected_by_contractor.get(contractor_id, ()),
                    window=window,
                    as_of=as_of,
                    run_id=run_id,
                )

            if self._config.max_workers and len(contractors) > 1:
                with ThreadPoolExecutor(max_workers=self._config.max_workers) as pool:
                    futures = {
                        c: pool.submit(copy_context().run, pipeline, c)
                        for c in contractors
                    }
                    outcomes = {c: f.result() for c, f in futures.items()}
            else:
                outcomes = {c: pipeline(c) for c in contractors}

            second_pass = self._bonus_engine.process_bonuses(self._store, window.start, as_of)
            for contractor_id, updated in second_pass.attached.items():
                if contractor_id in outcomes and outcomes[contractor_id].is_success:
                    outcomes[contractor_id] = replace(outcomes[contractor_id], pay_period=updated)

            result = PayrollRunResult(
                run_id=run_id,
                as_of=as_of,
                week_start=window.start,
                week_end=window.end,
                outcomes=dict(sorted(outcomes.items())),
                unattributed_shift_ids=tuple(s.shift_id for s in partition.unattributed),
                undated_shift_ids=tuple(s.shift_id for s in partition.undated),
                bonus_attach_failures={c: e.code for c, e in second_pass.failures.items()},
            )

            logger.info("payroll_run_completed", extra={
                "week_start": window.start,
                "succeeded": len(result.succeeded),
                "failed": len(result.failed),
                "reused": sum(1 for o in outcomes.values() if o.reused),
                "total_paid": str(result.total_paid),
            })
        return result

    def _run_contractor(
        self,
        *,
        contractor_id: str,
        shifts: tuple[WorkShift, ...],
        rejected: tuple[PayrollKernelError, ...],
        window: WeekWindow,
        as_of: date,
        run_id: UUID,
    ) -> ContractorOutcome:
        with self._locks.hold(contractor_id), LogContext.bind(contractor_id=contractor_id):
            existing = self._store.find(contractor_id, window.start)
            if existing is not None:
                logger.info("pay_period_reused", extra={
                    "pay_period_id": existing.id,
                    "week_start": window.start,
                })
                return ContractorOutcome(
                    contractor_id=contractor_id,
                    stage=PipelineStage.ASSEMBLED.value,
                    pay_period=existing,
                    reused=True,
                )

            stage = PipelineStage.NOT_STARTED
            try:
                if rejected:
                    raise rejected[0]
                stage = PipelineStage.AGGREGATED

                breakdown = compute_earnings(
                    contractor_id=contractor_id,
                    shifts=shifts,
                    resolver=self._resolver,
                    policy=self._config.overtime_policy,
                    holidays=self._config.holiday_dates,
                )
                stage = PipelineStage.COMPUTED

                draft = self._bonus_engine.preview(
                    contractor_id, len(breakdown.lines), award_date=as_of,
                )
                bonuses = (draft.bonus,) if draft.bonus is not None else ()
                stage = PipelineStage.BONUSES_APPLIED

                period = PayPeriod(
                    id=uuid4(),
                    contractor_id=contractor_id,
                    start_date=window.start,
                    end_date=window.end,
                    status=PayPeriodStatus.PENDING,
                    shifts=shifts,
                    bonuses=bonuses,
                    earnings=breakdown.total,
                    total_amount=breakdown.total + sum(b.amount for b in bonuses),
                    run_id=run_id,
                    created_at=self._clock.now(),
                )
                self._store.add(period)
                # Counter moves only once the period holding the bonus is stored.
                self._bonus_engine.commit(draft)
                stage = PipelineStage.ASSEMBLED
            except PayrollKernelError as exc:
                logger.warning("contractor_pipeline_failed", extra={
                    "stage": stage.value,
                    "error_code": exc.code,
                    "error": str(exc),
                })
                return ContractorOutcome(
                    contractor_id=contractor_id,
                    stage=stage.value,
                    error_code=exc.code,
                    error_message=str(exc),
                )

            self._placement.update_progress(contractor_id, period.shifts, as_of=as_of)

            logger.info("contractor_period_assembled", extra={
                "pay_period_id": period.id,
                "shift_count": len(period.shifts),
                "earnings": str(period.earnings),
                "bonus_count": len(period.bonuses),
                "total_amount": str(period.total_amount),
            })
            return ContractorOutcome(
                contractor_id=contractor_id,
                stage=stage.value,
                pay_period=period,
            )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def pay_periods(
        self,
        contractor_id: str | None = None,
        week_of: date | None = None,
    ) -> tuple[PayPeriod, ...]:
        """Stored periods, optionally filtered by contractor and/or week."""
        if contractor_id is not None and week_of is not None:
            period = self._store.find(contractor_id, week_window(week_of).start)
            return (period,) if period is not None else ()
        if contractor_id is not None:
            return self._store.for_contractor(contractor_id)
        if week_of is not None:
            return self._store.for_week(week_window(week_of).start)
        return self._store.all()

    def placement_for(self, contractor_id: str) -> PlacementProgress:
        return self._placement.progress_for(contractor_id)

    def analytics_for(self, contractor_id: str, start: date, end: date) -> PaymentAnalytics:
        return compute_payment_analytics(
            contractor_id=contractor_id,
            periods=self._store.for_contractor(contractor_id),
            start=start,
            end=end,
            policy=self._config.overtime_policy,
        )

    # ------------------------------------------------------------------
    # Status transitions
    # ------------------------------------------------------------------

    def _transition(self, period_id: UUID, action: str) -> PayPeriod:
        period = self._store.get(period_id)
        with self._locks.hold(period.contractor_id):
            period = self._store.get(period_id)
            target = PayPeriodStatus(PAY_PERIOD_WORKFLOW.apply(period.status.value, action))
            bonuses = None
            if target == PayPeriodStatus.PAID:
                bonuses = tuple(
                    replace(b, status=BonusStatus(BONUS_WORKFLOW.apply(b.status.value, "pay")))
                    for b in period.bonuses
                )
            updated = self._store.replace(period.with_status(target, bonuses=bonuses))
        logger.info("pay_period_status_changed", extra={
            "pay_period_id": period_id,
            "contractor_id": period.contractor_id,
            "from_status": period.status.value,
            "to_status": target.value,
        })
        return updated

    def approve_period(self, period_id: UUID) -> PayPeriod:
        """pending -> approved."""
        return self._transition(period_id, "approve")

    def mark_paid(self, period_id: UUID) -> PayPeriod:
        """approved -> paid; attached bonuses become paid."""
        return self._transition(period_id, "pay")
