"""
Engine tracing.

``@traced_engine`` wraps a pure calculation and logs one
``PAYROLL_ENGINE_TRACE`` record per call with the engine name and version,
a fingerprint of selected keyword arguments, the wall time and whether
the call raised.  Two calls with equal fingerprinted inputs get equal
fingerprints, so a pay figure can be tied back to the exact inputs that
produced it.

Usage::

    @traced_engine("earnings", "1.0", fingerprint_fields=("contractor_id", "shifts"))
    def compute_earnings(*, contractor_id, shifts, resolver, policy=None):
        ...

Only keyword arguments can be fingerprinted; engines take keyword-only
parameters for that reason.
"""

from __future__ import annotations

import dataclasses
import functools
import time
from collections.abc import Callable, Mapping
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from payroll_kernel.logging_config import get_logger
from payroll_kernel.utils.hashing import hash_payload

logger = get_logger("engines.tracer")

FINGERPRINT_LENGTH = 16

_JSON_READY = (str, int, float, bool, Decimal, date, UUID)


def _plain(value: Any) -> Any:
    """Reduce ``value`` to something ``hash_payload`` can serialize stably."""
    if value is None:
        return None
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, _JSON_READY):
        return value
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {f.name: _plain(getattr(value, f.name)) for f in dataclasses.fields(value)}
    if isinstance(value, Mapping):
        return {str(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted(str(_plain(v)) for v in value)
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    return str(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """Short SHA-256 digest of the named keyword arguments (absent = None)."""
    selected = {name: _plain(kwargs.get(name)) for name in fingerprint_fields}
    return hash_payload(selected)[:FINGERPRINT_LENGTH]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable[[Callable], Callable]:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields else ""
            )
            outcome = "error"
            started = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                outcome = "ok"
                return result
            finally:
                logger.info("PAYROLL_ENGINE_TRACE", extra={
                    "trace_type": "PAYROLL_ENGINE_TRACE",
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "input_fingerprint": fingerprint,
                    "outcome": outcome,
                    "duration_ms": round((time.perf_counter() - started) * 1000, 3),
                    "function": func.__qualname__,
                })

        return wrapper

    return decorator
