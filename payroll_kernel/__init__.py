"""
Payroll Kernel

Shared foundation for the contractor payroll engine:
- Structured JSON logging with request-scoped context
- Typed, coded exception hierarchy
- Injectable clock and ISO week calendar
- Decimal-only money rounding
- Forward-only workflow state machines
- SQLAlchemy declarative base and engine management
"""

__version__ = "0.1.0"
