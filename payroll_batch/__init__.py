"""
payroll_batch -- Weekly payroll trigger.

Provides pure cron-style schedule evaluation and an in-process scheduler
that calls ``PayrollOrchestrator.process_weekly_payroll(as_of)`` once per
configured trigger.

Architecture:
    payroll_batch/ is a top-level package.  Nothing in kernel, engines,
    modules or config imports from payroll_batch.

Invariants:
    - Clock injection (no datetime.now() calls outside SystemClock)
    - Schedule evaluation is pure
    - Each trigger fires at most once
    - Graceful shutdown
"""
