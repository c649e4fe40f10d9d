"""Contractor Pay Workflows.

State machines for pay periods, bonuses and permanent placement.
"""

from payroll_kernel.domain.workflow import Transition, Workflow
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.contractor_pay.workflows")


# -----------------------------------------------------------------------------
# Pay Period Workflow
# -----------------------------------------------------------------------------

PAY_PERIOD_WORKFLOW = Workflow(
    name="pay_period",
    description="Weekly pay period lifecycle",
    initial_state="pending",
    states=("pending", "approved", "paid"),
    transitions=(
        Transition("pending", "approved", action="approve"),
        Transition("approved", "paid", action="pay"),
    ),
    terminal_states=("paid",),
)


# -----------------------------------------------------------------------------
# Bonus Workflow
# -----------------------------------------------------------------------------

BONUS_WORKFLOW = Workflow(
    name="bonus",
    description="Milestone bonus lifecycle",
    initial_state="earned",
    states=("earned", "processing", "paid"),
    transitions=(
        Transition("earned", "processing", action="process"),
        Transition("earned", "paid", action="pay"),
        Transition("processing", "paid", action="pay"),
    ),
    terminal_states=("paid",),
)


# -----------------------------------------------------------------------------
# Placement Workflow
# -----------------------------------------------------------------------------

# States are declared in forward order; rank() is used for monotonicity.
PLACEMENT_WORKFLOW = Workflow(
    name="placement",
    description="Temporary-to-permanent placement lifecycle",
    initial_state="active",
    states=(
        "active",
        "inConsideration",
        "interviewing",
        "offered",
        "placed",
        "declined",
    ),
    transitions=(
        Transition("active", "inConsideration", action="consider"),
        Transition("inConsideration", "interviewing", action="interview"),
        Transition("interviewing", "offered", action="offer"),
        Transition("offered", "placed", action="place"),
        Transition("inConsideration", "declined", action="decline"),
        Transition("interviewing", "declined", action="decline"),
        Transition("offered", "declined", action="decline"),
    ),
    terminal_states=("placed", "declined"),
)

logger.info(
    "contractor_pay_workflows_defined",
    extra={
        "workflows": [
            PAY_PERIOD_WORKFLOW.name,
            BONUS_WORKFLOW.name,
            PLACEMENT_WORKFLOW.name,
        ],
    },
)
