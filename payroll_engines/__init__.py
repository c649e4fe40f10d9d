"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines: rate resolution, shift aggregation, earnings and
    payment analytics.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import payroll_kernel and the contractor-pay value objects.
    MUST NOT import the orchestrator, stores, config loading or batch.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The pay week is derived from an explicit ``as_of`` date.
    - Decimal-only arithmetic for money and hours.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Engine entrypoints are wrapped with ``@traced_engine`` (see
    ``payroll_engines.tracer``) and emit PAYROLL_ENGINE_TRACE records.

Usage:
    from payroll_engines import RateResolver, compute_earnings
    from payroll_engines.aggregation import partition_shift_pool
"""

from payroll_engines.aggregation import (
    ShiftPartition,
    group_by_contractor,
    partition_shift_pool,
    validate_shift,
    weekly_shifts_for,
)
from payroll_engines.analytics import PaymentAnalytics, compute_payment_analytics
from payroll_engines.earnings import (
    EarningsBreakdown,
    OvertimeMode,
    OvertimePolicy,
    ShiftPay,
    compute_earnings,
    price_shift,
)
from payroll_engines.rates import DEFAULT_ROLE_RATES, RateResolver
from payroll_engines.tracer import traced_engine

__all__ = [
    "DEFAULT_ROLE_RATES",
    "EarningsBreakdown",
    "OvertimeMode",
    "OvertimePolicy",
    "PaymentAnalytics",
    "RateResolver",
    "ShiftPartition",
    "ShiftPay",
    "compute_earnings",
    "compute_payment_analytics",
    "group_by_contractor",
    "partition_shift_pool",
    "price_shift",
    "traced_engine",
    "validate_shift",
    "weekly_shifts_for",
]
