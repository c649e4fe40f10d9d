"""
Weekly payroll trigger.

``WeeklyPayrollScheduler`` polls its clock, asks ``should_fire()`` whether
the schedule is due and, if so, calls the injected payroll entry point
(normally ``PayrollOrchestrator.process_weekly_payroll``) with the
``as_of`` date that selects the week to pay.  Each trigger leaves a
``ScheduledRunRecord`` in ``history``.

``next_run_at`` moves past the trigger before the lock is released, so a
trigger fires once even when the run raises.  ``stop()`` lets an
in-flight run finish.
"""

from __future__ import annotations

import threading
from dataclasses import replace
from datetime import date
from typing import Callable

from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.contractor_pay.models import PayrollRunResult

from payroll_batch.domain.schedule import compute_next_run, payroll_as_of, should_fire
from payroll_batch.domain.types import ScheduledRunRecord, ScheduledRunStatus, WeeklySchedule

logger = get_logger("batch.scheduler")


class WeeklyPayrollScheduler:
    """
    Fires the weekly payroll from one process.

    Drive it with ``tick()`` (tests, external cron) or let ``start()`` run
    the polling loop on a daemon thread.  Several processes each running a
    scheduler would each fire; the pay-period store's (contractor, week)
    uniqueness keeps the outcome single.  Cron times are read in the
    clock's timezone, UTC by default.
    """

    def __init__(
        self,
        run_payroll: Callable[[date], PayrollRunResult],
        schedule: WeeklySchedule | None = None,
        clock: Clock | None = None,
        tick_interval_seconds: int = 60,
    ):
        self._run_payroll = run_payroll
        self._clock = clock or SystemClock()
        schedule = schedule or WeeklySchedule()
        if schedule.next_run_at is None:
            schedule = replace(
                schedule,
                next_run_at=compute_next_run(schedule.cron_expression, self._clock.now()),
            )
        self._schedule = schedule
        self._tick_interval = tick_interval_seconds
        self._history: list[ScheduledRunRecord] = []
        self._lock = threading.Lock()
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def schedule(self) -> WeeklySchedule:
        return self._schedule

    @property
    def history(self) -> tuple[ScheduledRunRecord, ...]:
        return tuple(self._history)

    def tick(self) -> int:
        """Fire the run if it is due; returns how many runs fired (0 or 1)."""
        with self._lock:
            now = self._clock.now()
            if not should_fire(self._schedule, now):
                return 0

            as_of = payroll_as_of(self._schedule, now)
            record = self._fire(now, as_of)
            self._history.append(record)
            self._schedule = replace(
                self._schedule,
                last_run_at=now,
                next_run_at=compute_next_run(self._schedule.cron_expression, now),
            )

        logger.info(
            "schedule_fired",
            extra={
                "schedule": self._schedule.name,
                "as_of": as_of,
                "status": record.status.value,
                "next_run_at": self._schedule.next_run_at,
            },
        )
        return 1

    def start(self) -> None:
        """Start the scheduler in a background thread."""
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="payroll-scheduler",
            daemon=True,
        )
        self._thread.start()
        logger.info("scheduler_started", extra={"tick_interval": self._tick_interval})

    def stop(self, timeout: float = 30.0) -> None:
        """Signal stop and wait for the scheduler to finish."""
        self._stop_event.set()
        if self._thread is not None and self._thread.is_alive():
            self._thread.join(timeout=timeout)
        logger.info("scheduler_stopped")

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _fire(self, now, as_of: date) -> ScheduledRunRecord:
        try:
            with LogContext.bind(correlation_id=f"{self._schedule.name}-{now:%Y%m%d-%H%M}"):
                result = self._run_payroll(as_of)
        except Exception as exc:
            logger.exception("scheduled_payroll_run_failed", extra={"as_of": as_of})
            return ScheduledRunRecord(
                fired_at=now,
                as_of=as_of,
                status=ScheduledRunStatus.FAILED,
                error_message=str(exc),
            )

        status = ScheduledRunStatus.PARTIAL if result.failed else ScheduledRunStatus.COMPLETED
        return ScheduledRunRecord(
            fired_at=now,
            as_of=as_of,
            status=status,
            run_id=result.run_id,
            succeeded=len(result.succeeded),
            failed=len(result.failed),
        )

    def _run_loop(self) -> None:
        while not self._stop_event.is_set():
            try:
                self.tick()
            except Exception:
                logger.exception("scheduler_tick_exception")
            self._stop_event.wait(timeout=self._tick_interval)
