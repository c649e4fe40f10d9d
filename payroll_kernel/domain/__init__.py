"""
Pure domain layer.

Value objects and helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Wall-clock time (except the SystemClock boundary)
- I/O
"""

from payroll_kernel.domain.calendar import WeekWindow, week_start, week_window, windows_between
from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.money import ZERO, round_money, sum_money, to_decimal
from payroll_kernel.domain.workflow import Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "WeekWindow",
    "week_start",
    "week_window",
    "windows_between",
    "ZERO",
    "round_money",
    "sum_money",
    "to_decimal",
    "Transition",
    "Workflow",
]
