"""Tests for the structured logging system (payroll_kernel/logging_config.py)."""

import json
import logging
from datetime import date
from decimal import Decimal
from io import StringIO
from uuid import uuid4

import pytest

from payroll_kernel.exceptions import RateUnavailableError
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    get_logger,
    reset_logging,
)


@pytest.fixture(autouse=True)
def _clean_logging():
    """Reset logging state between tests, then restore the suite default."""
    reset_logging()
    LogContext.clear()
    yield
    LogContext.clear()
    reset_logging()
    configure_logging(level=logging.DEBUG)


def _make_handler() -> tuple[logging.Handler, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    return handler, stream


def _parse_all_logs(stream: StringIO) -> list[dict]:
    lines = stream.getvalue().strip().split("\n")
    return [json.loads(line) for line in lines if line]


class TestStructuredFormatter:
    """JSON log output format."""

    def test_basic_json_output(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        get_logger("test").info("hello")

        record = _parse_all_logs(stream)[0]
        assert record["message"] == "hello"
        assert record["level"] == "INFO"
        assert record["logger"] == "payroll_kernel.test"
        assert "ts" in record

    def test_extra_fields_serialized(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        period_id = uuid4()
        get_logger("test").info("period", extra={
            "pay_period_id": period_id,
            "week_start": date(2024, 3, 4),
            "total": Decimal("925.00"),
            "institutions": {"b", "a"},
        })

        record = _parse_all_logs(stream)[0]
        assert record["pay_period_id"] == str(period_id)
        assert record["week_start"] == "2024-03-04"
        assert record["total"] == "925.00"
        assert record["institutions"] == ["a", "b"]

    def test_exception_fields_included(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        try:
            raise RateUnavailableError("C-1", "Astronaut", "shift-1")
        except RateUnavailableError:
            get_logger("test").exception("failed")

        record = _parse_all_logs(stream)[0]
        assert record["exc_type"] == "RateUnavailableError"
        assert record["exc_code"] == "RATE_UNAVAILABLE"
        assert record["exc_role"] == "Astronaut"
        assert "traceback" in record

    def test_configure_is_idempotent(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        configure_logging(handler=handler)
        get_logger("test").info("once")

        assert len(_parse_all_logs(stream)) == 1

    def test_level_filters_records(self):
        handler, stream = _make_handler()
        configure_logging(level=logging.WARNING, handler=handler)
        log = get_logger("test")
        log.info("hidden")
        log.warning("shown")

        assert [r["message"] for r in _parse_all_logs(stream)] == ["shown"]


class TestLogContext:
    """Run-scoped context propagation."""

    def test_context_fields_added(self):
        handler, stream = _make_handler()
        configure_logging(handler=handler)
        LogContext.set(run_id="run-1", contractor_id="C-1")
        get_logger("test").info("ctx")

        record = _parse_all_logs(stream)[0]
        assert record["run_id"] == "run-1"
        assert record["contractor_id"] == "C-1"

    def test_get_all_skips_unset(self):
        LogContext.set(run_id="run-1")
        assert LogContext.get_all() == {"run_id": "run-1"}

    def test_clear(self):
        LogContext.set(run_id="run-1", actor_id="ops")
        LogContext.clear()
        assert LogContext.get_all() == {}

    def test_bind_restores_previous_values(self):
        LogContext.set(run_id="outer")
        with LogContext.bind(run_id="inner", contractor_id="C-9"):
            assert LogContext.get_all() == {"run_id": "inner", "contractor_id": "C-9"}
        assert LogContext.get_all() == {"run_id": "outer"}

    def test_bind_ignores_none(self):
        with LogContext.bind(run_id=None, contractor_id="C-1"):
            assert LogContext.get_all() == {"contractor_id": "C-1"}
