"""
Configuration Schema (``payroll_config.schema``).

Responsibility
--------------
Frozen dataclasses describing a payroll configuration set as read from
YAML (``PayrollConfigSet``) and the runtime artifact handed to callers
(``ActivePayrollConfig``).

Architecture position
---------------------
**Config layer** -- pure data definitions.  No I/O.

Invariants enforced
-------------------
* ``PayrollConfigSet.checksum`` is computed over the raw ``settings`` and
  ``rates`` blocks, so two files with the same content share a checksum.
* ``ActivePayrollConfig`` holds a validated ``PayrollConfig`` and a
  ``RateResolver`` built from the same set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from payroll_engines.rates import RateResolver
from payroll_modules.contractor_pay.config import PayrollConfig


@dataclass(frozen=True)
class PayrollConfigSet:
    """Raw configuration set parsed from one YAML file."""

    config_id: str
    version: int
    checksum: str
    settings: dict[str, Any] = field(default_factory=dict)
    rates: dict[str, Any] = field(default_factory=dict)
    description: str = ""


@dataclass(frozen=True)
class ActivePayrollConfig:
    """The runtime configuration artifact returned by ``get_active_config``."""

    config: PayrollConfig
    rate_resolver: RateResolver
    checksum: str
    source: str
    config_id: str = "default"
    version: int = 1
