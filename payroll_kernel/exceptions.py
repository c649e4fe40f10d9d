"""
Typed Exception Hierarchy for the Payroll Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

A weekly payroll run reports failures per contractor.  Callers (schedulers,
retry tooling, dashboards) must be able to tell an unknown role from a bad
shift record without parsing message text.  Therefore:

  1. Every error has a TYPED exception class (catch by type, not message)
  2. Every exception has a CODE attribute (machine-readable, API-safe)
  3. Exceptions carry structured DATA (not just a message string)

Example:
    try:
        breakdown = compute_earnings(contractor_id, shifts, resolver)
    except RateUnavailableError as e:
        outcomes[e.contractor_id] = failure(code=e.code, role=e.role)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    PayrollKernelError (base)
    |
    +-- RateError
    |   +-- UnknownRoleError
    |   +-- RateUnavailableError
    |
    +-- ShiftError
    |   +-- InvalidShiftDataError
    |
    +-- PeriodError
    |   +-- NoOpenPeriodError
    |   +-- PayPeriodNotFoundError
    |   +-- DuplicatePayPeriodError
    |
    +-- WorkflowError
    |   +-- InvalidTransitionError
    |
    +-- PlacementError
    |   +-- PlacementRegressionError
    |
    +-- ConfigError
        +-- InvalidPayrollConfigError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category   | Code                    | When Raised
-----------|-------------------------|------------------------------------------
Rate       | UNKNOWN_ROLE            | Role has no configured pay rate
           | RATE_UNAVAILABLE        | Earnings pass could not price a shift
-----------|-------------------------|------------------------------------------
Shift      | INVALID_SHIFT_DATA      | Negative hours / missing required field
-----------|-------------------------|------------------------------------------
Period     | NO_OPEN_PERIOD          | Bonus attach found no pending period
           | PAY_PERIOD_NOT_FOUND    | Period id does not exist
           | DUPLICATE_PAY_PERIOD    | Second period for (contractor, week)
-----------|-------------------------|------------------------------------------
Workflow   | INVALID_TRANSITION      | Action not allowed from current state
-----------|-------------------------|------------------------------------------
Placement  | PLACEMENT_REGRESSION    | Placement status would move backwards
-----------|-------------------------|------------------------------------------
Config     | INVALID_PAYROLL_CONFIG  | Config file content fails validation

===============================================================================
PROPAGATION
===============================================================================

Every error raised inside a contractor's pipeline is caught by the
orchestrator and recorded in that contractor's outcome; no single bad record
aborts the weekly run.  Nothing is retried internally.
"""


class PayrollKernelError(Exception):
    """
    Base exception for all payroll kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "PAYROLL_KERNEL_ERROR"


# Rate-related exceptions


class RateError(PayrollKernelError):
    """Base exception for pay-rate lookup errors."""

    code: str = "RATE_ERROR"


class UnknownRoleError(RateError):
    """Role has no configured pay rate."""

    code: str = "UNKNOWN_ROLE"

    def __init__(self, role: str | None):
        self.role = role
        super().__init__(f"No pay rate configured for role: {role!r}")


class RateUnavailableError(RateError):
    """
    A shift could not be priced during the earnings pass.

    Raised by the earnings calculator when the rate resolver misses; the
    contractor's period computation aborts instead of being zeroed.
    """

    code: str = "RATE_UNAVAILABLE"

    def __init__(self, contractor_id: str, role: str | None, shift_id: str):
        self.contractor_id = contractor_id
        self.role = role
        self.shift_id = shift_id
        super().__init__(
            f"Rate unavailable for role {role!r} "
            f"(contractor {contractor_id}, shift {shift_id})"
        )


# Shift-related exceptions


class ShiftError(PayrollKernelError):
    """Base exception for shift record errors."""

    code: str = "SHIFT_ERROR"


class InvalidShiftDataError(ShiftError):
    """Shift record has negative hours or is missing required fields."""

    code: str = "INVALID_SHIFT_DATA"

    def __init__(self, shift_id: str, contractor_id: str | None, reasons: list[str]):
        self.shift_id = shift_id
        self.contractor_id = contractor_id
        self.reasons = reasons
        super().__init__(
            f"Invalid shift {shift_id} for contractor {contractor_id}: "
            f"{'; '.join(reasons)}"
        )


# Period-related exceptions


class PeriodError(PayrollKernelError):
    """Base exception for pay-period errors."""

    code: str = "PERIOD_ERROR"


class NoOpenPeriodError(PeriodError):
    """No pending pay period exists for the contractor in this run's week."""

    code: str = "NO_OPEN_PERIOD"

    def __init__(self, contractor_id: str, week_start: str):
        self.contractor_id = contractor_id
        self.week_start = week_start
        super().__init__(
            f"No open pay period for contractor {contractor_id} "
            f"in week starting {week_start}"
        )


class PayPeriodNotFoundError(PeriodError):
    """Pay period with given ID was not found."""

    code: str = "PAY_PERIOD_NOT_FOUND"

    def __init__(self, period_id: str):
        self.period_id = period_id
        super().__init__(f"Pay period not found: {period_id}")


class DuplicatePayPeriodError(PeriodError):
    """A pay period already exists for this contractor and week."""

    code: str = "DUPLICATE_PAY_PERIOD"

    def __init__(self, contractor_id: str, week_start: str, existing_id: str):
        self.contractor_id = contractor_id
        self.week_start = week_start
        self.existing_id = existing_id
        super().__init__(
            f"Pay period {existing_id} already exists for contractor "
            f"{contractor_id} in week starting {week_start}"
        )


# Workflow exceptions


class WorkflowError(PayrollKernelError):
    """Base exception for state machine errors."""

    code: str = "WORKFLOW_ERROR"


class InvalidTransitionError(WorkflowError):
    """Requested action is not a valid transition from the current state."""

    code: str = "INVALID_TRANSITION"

    def __init__(self, workflow: str, from_state: str, action: str):
        self.workflow = workflow
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"Workflow '{workflow}' has no '{action}' transition from state '{from_state}'"
        )


# Placement exceptions


class PlacementError(PayrollKernelError):
    """Base exception for placement tracking errors."""

    code: str = "PLACEMENT_ERROR"


class PlacementRegressionError(PlacementError):
    """Placement status may only advance; it never returns to an earlier state."""

    code: str = "PLACEMENT_REGRESSION"

    def __init__(self, contractor_id: str, current_status: str, requested_status: str):
        self.contractor_id = contractor_id
        self.current_status = current_status
        self.requested_status = requested_status
        super().__init__(
            f"Placement status for contractor {contractor_id} cannot move "
            f"from '{current_status}' to '{requested_status}'"
        )


# Configuration exceptions


class ConfigError(PayrollKernelError):
    """Base exception for configuration errors."""

    code: str = "CONFIG_ERROR"


class InvalidPayrollConfigError(ConfigError):
    """Configuration source could not be turned into a valid PayrollConfig."""

    code: str = "INVALID_PAYROLL_CONFIG"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid payroll configuration in {source}: {reason}")
