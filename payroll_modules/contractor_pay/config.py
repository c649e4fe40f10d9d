"""
Contractor Pay Configuration Schema.

Defines the structure and sensible defaults for payroll settings.
Actual values are loaded from a YAML config set at runtime
(see ``payroll_config``).
"""

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Self

from payroll_engines.earnings import OvertimeMode, OvertimePolicy
from payroll_kernel.domain.money import to_decimal
from payroll_kernel.logging_config import get_logger
from payroll_modules.contractor_pay.models import BonusType

logger = get_logger("modules.contractor_pay.config")

VALID_CURRENCIES = {"USD", "CAD", "GBP", "EUR"}


@dataclass
class PayrollConfig:
    """
    Configuration schema for the contractor payroll module.

    Field defaults reproduce the production policy:

        config = PayrollConfig(
            overtime_mode=OvertimeMode.PREMIUM_ONLY,
            holidays=(date(2024, 12, 25),),
        )
    """

    currency: str = "USD"

    # Overtime (daily, per shift)
    overtime_threshold_hours: Decimal = Decimal("8")
    overtime_mode: OvertimeMode = OvertimeMode.ADDITIVE

    # Holiday calendar (regular pay uses the role's holiday multiplier)
    holidays: tuple[date, ...] = field(default_factory=tuple)

    # Milestone bonus
    bonus_threshold: int = 30
    bonus_amount: Decimal = Decimal("100")
    bonus_type: BonusType = BonusType.THIRTY_ASSIGNMENTS

    # Permanent-placement eligibility
    placement_min_assignments: int = 30
    placement_min_institutions: int = 3
    placement_min_positive_feedback: int = 10

    # Per-contractor pipelines run on a thread pool when set
    max_workers: int | None = None

    def __post_init__(self):
        if self.currency not in VALID_CURRENCIES:
            raise ValueError(
                f"currency must be one of {sorted(VALID_CURRENCIES)}, got '{self.currency}'"
            )
        if self.overtime_threshold_hours <= 0:
            raise ValueError("overtime_threshold_hours must be positive")
        if not isinstance(self.overtime_mode, OvertimeMode):
            raise ValueError(f"overtime_mode must be an OvertimeMode, got {self.overtime_mode!r}")
        if self.bonus_threshold <= 0:
            raise ValueError("bonus_threshold must be positive")
        if self.bonus_amount < 0:
            raise ValueError("bonus_amount cannot be negative")
        if self.placement_min_assignments < 0:
            raise ValueError("placement_min_assignments cannot be negative")
        if self.placement_min_institutions < 0:
            raise ValueError("placement_min_institutions cannot be negative")
        if self.placement_min_positive_feedback < 0:
            raise ValueError("placement_min_positive_feedback cannot be negative")
        if self.max_workers is not None and self.max_workers < 1:
            raise ValueError("max_workers must be at least 1 when set")

        logger.info(
            "payroll_config_initialized",
            extra={
                "currency": self.currency,
                "overtime_threshold_hours": str(self.overtime_threshold_hours),
                "overtime_mode": self.overtime_mode.value,
                "holiday_count": len(self.holidays),
                "bonus_threshold": self.bonus_threshold,
                "bonus_amount": str(self.bonus_amount),
                "max_workers": self.max_workers,
            },
        )

    @property
    def overtime_policy(self) -> OvertimePolicy:
        return OvertimePolicy(
            threshold_hours=self.overtime_threshold_hours,
            mode=self.overtime_mode,
        )

    @property
    def holiday_dates(self) -> frozenset[date]:
        return frozenset(self.holidays)

    @classmethod
    def with_defaults(cls) -> Self:
        """Create config with the standard policy."""
        logger.info("payroll_config_created_with_defaults")
        return cls()

    @classmethod
    def from_dict(cls, data: dict) -> Self:
        """Create config from dictionary (e.g., the ``settings`` block of a YAML set)."""
        logger.info(
            "payroll_config_loading_from_dict",
            extra={"keys": sorted(data.keys())},
        )
        data = dict(data)
        for key in ("overtime_threshold_hours", "bonus_amount"):
            if key in data:
                data[key] = to_decimal(data[key])
        if "overtime_mode" in data:
            data["overtime_mode"] = OvertimeMode(data["overtime_mode"])
        if "bonus_type" in data:
            data["bonus_type"] = BonusType(data["bonus_type"])
        if "holidays" in data:
            data["holidays"] = tuple(
                d if isinstance(d, date) else date.fromisoformat(str(d))
                for d in (data["holidays"] or ())
            )
        return cls(**data)
