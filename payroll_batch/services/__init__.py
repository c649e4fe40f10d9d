"""payroll_batch.services -- Scheduler that triggers the weekly payroll run."""

from payroll_batch.services.scheduler import WeeklyPayrollScheduler

__all__ = ["WeeklyPayrollScheduler"]
