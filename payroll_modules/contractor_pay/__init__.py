"""
Contractor Pay Module (``payroll_modules.contractor_pay``).

Responsibility
--------------
Weekly payroll for hourly contractors: pay periods assembled from worked
shifts, daily overtime and holiday pay, the 30-assignment milestone bonus,
and progress toward permanent placement.

Architecture position
---------------------
**Modules layer** -- value objects, workflows and a config schema, plus the
stateful components (``BonusEngine``, ``PlacementTracker``), the pay-period
stores and the ``PayrollOrchestrator`` facade.  Pricing and aggregation are
delegated to ``payroll_engines``.

Only the dependency-free models and workflows are re-exported here, because
the engines import the models from this package.  Import the stateful parts
from their submodules::

    from payroll_modules.contractor_pay.service import PayrollOrchestrator
    from payroll_modules.contractor_pay.config import PayrollConfig

Invariants enforced
-------------------
* One pay period per (contractor, week); re-runs reuse it.
* Bonus awards are disjoint; placement progress never regresses.
"""

from payroll_modules.contractor_pay.models import (
    Bonus,
    BonusStatus,
    BonusType,
    ContractorOutcome,
    PayPeriod,
    PayPeriodStatus,
    PayRate,
    PayrollRunResult,
    PlacementProgress,
    PlacementStatus,
    ShiftStatus,
    WorkShift,
)
from payroll_modules.contractor_pay.workflows import (
    BONUS_WORKFLOW,
    PAY_PERIOD_WORKFLOW,
    PLACEMENT_WORKFLOW,
)

__all__ = [
    "Bonus",
    "BonusStatus",
    "BonusType",
    "ContractorOutcome",
    "PayPeriod",
    "PayPeriodStatus",
    "PayRate",
    "PayrollRunResult",
    "PlacementProgress",
    "PlacementStatus",
    "ShiftStatus",
    "WorkShift",
    "BONUS_WORKFLOW",
    "PAY_PERIOD_WORKFLOW",
    "PLACEMENT_WORKFLOW",
]
