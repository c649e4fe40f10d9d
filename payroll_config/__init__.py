"""
payroll_config -- single public entrypoint for payroll configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns an ``ActivePayrollConfig`` holding
    the validated ``PayrollConfig`` settings and the ``RateResolver`` built
    from the configured rate table.

Architecture position:
    Configuration -- YAML-driven settings.  Sits above ``payroll_kernel``,
    ``payroll_engines`` and the module schemas; the kernel and engines
    MUST NEVER import from ``payroll_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through
      ``get_active_config()``.
    - Deterministic checksum: the same YAML content always produces the
      same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration file is missing.
    - ``InvalidPayrollConfigError`` -- the file content fails validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``PAYROLL_CONFIG_TRACE`` log entry containing the config id, version,
    checksum and source, tying each run to the settings that priced it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from payroll_config.loader import load_config_file
from payroll_config.schema import ActivePayrollConfig, PayrollConfigSet

_logger = logging.getLogger("payroll_kernel.config")

# Default configuration set
_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"


def get_active_config(path: Path | str | None = None) -> ActivePayrollConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Configuration file to load.  Defaults to the packaged
            ``payroll_config/sets/default.yaml``.

    Raises:
        FileNotFoundError: If the configuration file does not exist.
        InvalidPayrollConfigError: If the file fails validation.
    """
    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_PATH
    if not config_path.is_file():
        raise FileNotFoundError(f"Payroll configuration not found: {config_path}")

    active = load_config_file(config_path)

    _logger.info(
        "PAYROLL_CONFIG_TRACE",
        extra={
            "trace_type": "PAYROLL_CONFIG_TRACE",
            "config_set_id": active.config_id,
            "config_set_version": active.version,
            "checksum": active.checksum,
            "source": active.source,
            "role_count": len(active.rate_resolver),
            "overtime_mode": active.config.overtime_mode.value,
        },
    )
    return active


__all__ = [
    "ActivePayrollConfig",
    "PayrollConfigSet",
    "get_active_config",
]
