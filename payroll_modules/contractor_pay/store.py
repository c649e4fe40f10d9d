"""
Pay Period Stores (``payroll_modules.contractor_pay.store``).

Responsibility
--------------
Hold the assembled ``PayPeriod`` records and answer the read-only queries
collaborators run against them (by id, by contractor, by week).

* ``InMemoryPayPeriodStore`` -- thread-safe dict-backed store for tests,
  the CLI and single-process runs.
* ``SqlPayPeriodStore`` -- SQLAlchemy-backed store using
  ``payroll_modules.contractor_pay.orm``.
* ``SqlIncentiveStateStore`` -- bonus counters and placement progress
  persisted next to the periods, so they survive across runs.

Architecture position
---------------------
**Modules layer** -- persistence behind the ``PayPeriodStore`` protocol.
The orchestrator and bonus engine depend on the protocol only.

Invariants enforced
-------------------
* At most one period per (contractor, week start).  A second ``add``
  raises ``DuplicatePayPeriodError``; the existing period is untouched.
* Stored periods are immutable DTOs; ``replace`` swaps in a new version
  under the same id and the same (contractor, week).

Failure modes
-------------
* ``DuplicatePayPeriodError`` on a second period for a (contractor, week).
* ``PayPeriodNotFoundError`` from ``get`` / ``replace`` for unknown ids.
* ``ValueError`` when ``replace`` tries to move a period to another
  contractor or week.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import date
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from payroll_kernel.exceptions import DuplicatePayPeriodError, PayPeriodNotFoundError
from payroll_kernel.logging_config import get_logger
from payroll_modules.contractor_pay.models import PayPeriod, PlacementProgress
from payroll_modules.contractor_pay.orm import (
    BonusCounterModel,
    BonusModel,
    PayPeriodModel,
    PlacementProgressModel,
)

logger = get_logger("modules.contractor_pay.store")


class PayPeriodStore(Protocol):
    """Persistence contract for pay periods."""

    def get(self, period_id: UUID) -> PayPeriod: ...

    def find(self, contractor_id: str, week_start: date) -> PayPeriod | None: ...

    def for_contractor(self, contractor_id: str) -> tuple[PayPeriod, ...]: ...

    def for_week(self, week_start: date) -> tuple[PayPeriod, ...]: ...

    def all(self) -> tuple[PayPeriod, ...]: ...

    def add(self, period: PayPeriod) -> PayPeriod: ...

    def replace(self, period: PayPeriod) -> PayPeriod: ...


def _check_same_slot(current: PayPeriod, updated: PayPeriod) -> None:
    if (current.contractor_id, current.start_date) != (updated.contractor_id, updated.start_date):
        raise ValueError(
            f"Pay period {updated.id} cannot move from "
            f"({current.contractor_id}, {current.start_date}) to "
            f"({updated.contractor_id}, {updated.start_date})"
        )


class InMemoryPayPeriodStore:
    """Dict-backed ``PayPeriodStore``; safe to share across worker threads."""

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._by_id: dict[UUID, PayPeriod] = {}
        self._by_slot: dict[tuple[str, date], UUID] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._by_id)

    def get(self, period_id: UUID) -> PayPeriod:
        with self._lock:
            period = self._by_id.get(period_id)
        if period is None:
            raise PayPeriodNotFoundError(str(period_id))
        return period

    def find(self, contractor_id: str, week_start: date) -> PayPeriod | None:
        with self._lock:
            period_id = self._by_slot.get((contractor_id, week_start))
            return self._by_id.get(period_id) if period_id is not None else None

    def for_contractor(self, contractor_id: str) -> tuple[PayPeriod, ...]:
        with self._lock:
            periods = [p for p in self._by_id.values() if p.contractor_id == contractor_id]
        return tuple(sorted(periods, key=lambda p: p.start_date))

    def for_week(self, week_start: date) -> tuple[PayPeriod, ...]:
        with self._lock:
            periods = [p for p in self._by_id.values() if p.start_date == week_start]
        return tuple(sorted(periods, key=lambda p: p.contractor_id))

    def all(self) -> tuple[PayPeriod, ...]:
        with self._lock:
            periods = list(self._by_id.values())
        return tuple(sorted(periods, key=lambda p: (p.start_date, p.contractor_id)))

    def add(self, period: PayPeriod) -> PayPeriod:
        slot = (period.contractor_id, period.start_date)
        with self._lock:
            existing_id = self._by_slot.get(slot)
            if existing_id is not None:
                raise DuplicatePayPeriodError(
                    period.contractor_id, period.start_date.isoformat(), str(existing_id),
                )
            self._by_id[period.id] = period
            self._by_slot[slot] = period.id
        logger.debug("pay_period_stored", extra={
            "pay_period_id": period.id,
            "contractor_id": period.contractor_id,
            "week_start": period.start_date,
        })
        return period

    def replace(self, period: PayPeriod) -> PayPeriod:
        with self._lock:
            current = self._by_id.get(period.id)
            if current is None:
                raise PayPeriodNotFoundError(str(period.id))
            _check_same_slot(current, period)
            self._by_id[period.id] = period
        return period


class SqlPayPeriodStore:
    """
    SQLAlchemy-backed ``PayPeriodStore``.

    Each call runs in its own session from ``session_factory`` and commits
    before returning, so the store can be shared by worker threads.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def _load(self, session: Session, period_id: UUID) -> PayPeriodModel:
        model = session.get(PayPeriodModel, period_id)
        if model is None:
            raise PayPeriodNotFoundError(str(period_id))
        return model

    def get(self, period_id: UUID) -> PayPeriod:
        with self._session_factory() as session:
            return self._load(session, period_id).to_dto()

    def find(self, contractor_id: str, week_start: date) -> PayPeriod | None:
        stmt = select(PayPeriodModel).where(
            PayPeriodModel.contractor_id == contractor_id,
            PayPeriodModel.start_date == week_start,
        )
        with self._session_factory() as session:
            model = session.scalars(stmt).one_or_none()
            return model.to_dto() if model is not None else None

    def for_contractor(self, contractor_id: str) -> tuple[PayPeriod, ...]:
        stmt = (
            select(PayPeriodModel)
            .where(PayPeriodModel.contractor_id == contractor_id)
            .order_by(PayPeriodModel.start_date)
        )
        with self._session_factory() as session:
            return tuple(m.to_dto() for m in session.scalars(stmt))

    def for_week(self, week_start: date) -> tuple[PayPeriod, ...]:
        stmt = (
            select(PayPeriodModel)
            .where(PayPeriodModel.start_date == week_start)
            .order_by(PayPeriodModel.contractor_id)
        )
        with self._session_factory() as session:
            return tuple(m.to_dto() for m in session.scalars(stmt))

    def all(self) -> tuple[PayPeriod, ...]:
        stmt = select(PayPeriodModel).order_by(
            PayPeriodModel.start_date, PayPeriodModel.contractor_id,
        )
        with self._session_factory() as session:
            return tuple(m.to_dto() for m in session.scalars(stmt))

    def add(self, period: PayPeriod) -> PayPeriod:
        try:
            with self._session_factory() as session:
                session.add(PayPeriodModel.from_dto(period))
                session.commit()
        except IntegrityError:
            existing = self.find(period.contractor_id, period.start_date)
            if existing is None:
                raise
            raise DuplicatePayPeriodError(
                period.contractor_id, period.start_date.isoformat(), str(existing.id),
            ) from None
        logger.debug("pay_period_stored", extra={
            "pay_period_id": period.id,
            "contractor_id": period.contractor_id,
            "week_start": period.start_date,
        })
        return period

    def replace(self, period: PayPeriod) -> PayPeriod:
        """Persist a new version of an existing period (status and bonuses)."""
        with self._session_factory() as session:
            model = self._load(session, period.id)
            _check_same_slot(model.to_dto(), period)
            model.status = period.status.value
            model.earnings = period.earnings
            model.total_amount = period.total_amount

            existing = {b.id: b for b in model.bonuses}
            for position, bonus in enumerate(period.bonuses):
                row = existing.get(bonus.id)
                if row is None:
                    model.bonuses.append(BonusModel.from_dto(bonus, position=position))
                else:
                    row.status = bonus.status.value
                    row.amount = bonus.amount
                    row.position = position
            session.commit()
        return period


class IncentiveStateStore(Protocol):
    """Persistence contract for bonus counters and placement progress."""

    def load_bonus_counters(self) -> dict[str, int]: ...

    def save_bonus_counter(self, contractor_id: str, counter: int) -> None: ...

    def load_placement_progress(self) -> dict[str, PlacementProgress]: ...

    def save_placement_progress(self, progress: PlacementProgress) -> None: ...


class SqlIncentiveStateStore:
    """
    SQLAlchemy-backed ``IncentiveStateStore``.

    ``BonusEngine`` and ``PlacementTracker`` load from it once at
    construction and write each change through while holding the
    contractor's lock, so separate processes running consecutive weeks
    against one database see the same counters and progress.
    """

    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def load_bonus_counters(self) -> dict[str, int]:
        with self._session_factory() as session:
            rows = session.scalars(select(BonusCounterModel))
            return {row.contractor_id: row.counter for row in rows}

    def save_bonus_counter(self, contractor_id: str, counter: int) -> None:
        stmt = select(BonusCounterModel).where(BonusCounterModel.contractor_id == contractor_id)
        with self._session_factory() as session:
            row = session.scalars(stmt).one_or_none()
            if row is None:
                session.add(BonusCounterModel(contractor_id=contractor_id, counter=counter))
            else:
                row.counter = counter
            session.commit()
        logger.debug("bonus_counter_saved", extra={
            "contractor_id": contractor_id,
            "counter": counter,
        })

    def load_placement_progress(self) -> dict[str, PlacementProgress]:
        with self._session_factory() as session:
            rows = session.scalars(select(PlacementProgressModel))
            return {row.contractor_id: row.to_dto() for row in rows}

    def save_placement_progress(self, progress: PlacementProgress) -> None:
        stmt = select(PlacementProgressModel).where(
            PlacementProgressModel.contractor_id == progress.contractor_id,
        )
        with self._session_factory() as session:
            row = session.scalars(stmt).one_or_none()
            if row is None:
                session.add(PlacementProgressModel.from_dto(progress))
            else:
                row.update_from_dto(progress)
            session.commit()
        logger.debug("placement_progress_saved", extra={
            "contractor_id": progress.contractor_id,
            "total_assignments": progress.total_assignments,
            "status": progress.status.value,
        })
