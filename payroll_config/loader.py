"""
Configuration Loader (``payroll_config.loader``).

Responsibility
--------------
Load a YAML configuration set, parse it into a ``PayrollConfigSet`` and
build the validated ``ActivePayrollConfig`` from it.  Runtime callers use
``payroll_config.get_active_config()`` rather than this module.

A configuration set looks like::

    config_id: default
    version: 1
    settings:
      overtime_mode: additive
      bonus_threshold: 30
    rates:
      Substitute Teacher:
        base_hourly_rate: "25.00"
        overtime_multiplier: "1.5"

Invariants enforced
-------------------
* ``compute_checksum`` is deterministic (sorted keys, normalized Decimals).
* An empty or missing ``rates`` block falls back to the built-in role
  catalogue; an empty ``settings`` block uses ``PayrollConfig`` defaults.

Failure modes
-------------
* Missing file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Structurally invalid content or values rejected by ``PayrollConfig`` /
  ``PayRate``  -> ``InvalidPayrollConfigError``.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

from payroll_config.schema import ActivePayrollConfig, PayrollConfigSet
from payroll_engines.rates import RateResolver
from payroll_kernel.exceptions import InvalidPayrollConfigError
from payroll_kernel.utils.hashing import hash_payload
from payroll_modules.contractor_pay.config import PayrollConfig


def load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a single YAML file; an empty file yields an empty dict."""
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(settings: dict[str, Any], rates: dict[str, Any]) -> str:
    """SHA-256 over the canonical JSON form of the settings and rates blocks."""
    return hash_payload({"settings": settings, "rates": rates})


def parse_config_set(data: dict[str, Any], source: str) -> PayrollConfigSet:
    """Parse the top-level mapping of a configuration file.

    Raises:
        InvalidPayrollConfigError: if a block has the wrong shape.
    """
    if not isinstance(data, dict):
        raise InvalidPayrollConfigError(source, "top level must be a mapping")
    settings = data.get("settings") or {}
    rates = data.get("rates") or {}
    if not isinstance(settings, dict):
        raise InvalidPayrollConfigError(source, "'settings' must be a mapping")
    if not isinstance(rates, dict):
        raise InvalidPayrollConfigError(source, "'rates' must be a mapping")
    try:
        version = int(data.get("version", 1))
    except (TypeError, ValueError) as exc:
        raise InvalidPayrollConfigError(source, f"invalid version: {data.get('version')!r}") from exc

    return PayrollConfigSet(
        config_id=str(data.get("config_id", Path(source).stem)),
        version=version,
        checksum=compute_checksum(settings, rates),
        settings=settings,
        rates=rates,
        description=str(data.get("description", "")),
    )


def build_active_config(config_set: PayrollConfigSet, source: str) -> ActivePayrollConfig:
    """Validate a parsed set and build the runtime artifact.

    Raises:
        InvalidPayrollConfigError: if any setting or rate is rejected.
    """
    try:
        config = PayrollConfig.from_dict(config_set.settings)
    except (TypeError, ValueError) as exc:
        raise InvalidPayrollConfigError(source, f"settings: {exc}") from exc

    try:
        resolver = (
            RateResolver.from_mapping(config_set.rates)
            if config_set.rates
            else RateResolver.default()
        )
    except (TypeError, ValueError) as exc:
        raise InvalidPayrollConfigError(source, f"rates: {exc}") from exc

    return ActivePayrollConfig(
        config=config,
        rate_resolver=resolver,
        checksum=config_set.checksum,
        source=source,
        config_id=config_set.config_id,
        version=config_set.version,
    )


def load_config_file(path: Path) -> ActivePayrollConfig:
    """Load, parse and validate one configuration file."""
    source = str(path)
    return build_active_config(parse_config_set(load_yaml_file(path), source), source)
