"""
Pytest fixtures for the contractor payroll test suite.

Provides:
- Structured logging configuration and log capture
- Deterministic clocks
- In-memory and SQLite-backed pay period stores
- Shift factories
"""

import json
import logging
from datetime import date, datetime, timezone
from decimal import Decimal
from uuid import uuid4

import pytest

from payroll_engines.rates import RateResolver
from payroll_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_modules.contractor_pay.config import PayrollConfig
from payroll_modules.contractor_pay.models import ShiftStatus, WorkShift
from payroll_modules.contractor_pay.service import PayrollOrchestrator
from payroll_modules.contractor_pay.store import (
    InMemoryPayPeriodStore,
    SqlIncentiveStateStore,
    SqlPayPeriodStore,
)


# Monday of the reference pay week used throughout the suite
WEEK_START = date(2024, 3, 4)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """JSON logging at DEBUG for the whole session."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """No run or contractor ids leak from one test into the next."""
    LogContext.clear()
    yield
    LogContext.clear()


class _JsonCapture(logging.Handler):
    """Keeps every record as the dict the structured formatter would print."""

    def __init__(self):
        super().__init__(level=logging.DEBUG)
        self.setFormatter(StructuredFormatter())
        self.records: list[dict] = []

    def emit(self, record: logging.LogRecord) -> None:
        self.records.append(json.loads(self.format(record)))


@pytest.fixture
def captured_logs():
    """
    Records logged under ``payroll_kernel`` during the test.

    Call the fixture value to get the records so far::

        orchestrator.process_weekly_payroll(...)
        assert any(r["message"] == "payroll_run_completed" for r in captured_logs())
    """
    capture = _JsonCapture()
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(capture)
    yield lambda: list(capture.records)
    root.removeHandler(capture)
    root.setLevel(previous_level)


# =============================================================================
# Domain fixtures
# =============================================================================


@pytest.fixture
def deterministic_clock():
    return DeterministicClock(datetime(2024, 3, 11, 6, 0, tzinfo=timezone.utc))


@pytest.fixture
def rate_resolver():
    return RateResolver.default()


@pytest.fixture
def memory_store():
    return InMemoryPayPeriodStore()


@pytest.fixture
def sqlite_session_factory():
    """In-memory SQLite database with the payroll tables created."""
    init_engine_from_url("sqlite://")
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()


@pytest.fixture
def sql_store(sqlite_session_factory):
    return SqlPayPeriodStore(sqlite_session_factory)


@pytest.fixture
def sql_incentive_state(sqlite_session_factory):
    return SqlIncentiveStateStore(sqlite_session_factory)


@pytest.fixture
def orchestrator(rate_resolver, memory_store, deterministic_clock):
    return PayrollOrchestrator(
        rate_resolver=rate_resolver,
        config=PayrollConfig(),
        store=memory_store,
        clock=deterministic_clock,
    )


@pytest.fixture
def make_shift():
    """Factory for completed shifts in the reference week."""

    def _make(
        contractor_id: str | None = "C-100",
        role: str | None = "Substitute Teacher",
        work_date: date | None = WEEK_START,
        hours: Decimal | None = Decimal("8"),
        status: ShiftStatus | str = ShiftStatus.COMPLETED,
        institution: str | None = "Lincoln Elementary",
    ) -> WorkShift:
        return WorkShift(
            shift_id=uuid4(),
            contractor_id=contractor_id,
            role=role,
            work_date=work_date,
            hours=hours,
            status=status,
            institution=institution,
        )

    return _make
