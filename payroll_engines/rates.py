"""
payroll_engines.rates -- Role classification to pay rate resolution.

Responsibility:
    Map a role classification to its ``PayRate`` (base hourly rate,
    overtime multiplier, holiday multiplier).  Called once per shift by the
    earnings calculator.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The rate table is passed
    in at construction (from ``payroll_config`` or ``DEFAULT_ROLE_RATES``).

Invariants enforced:
    - Lookup is side-effect free; the table is frozen at construction.
    - Every rate in the table is a validated ``PayRate``.

Failure modes:
    - ``UnknownRoleError`` when the role has no configured rate.
    - ``ValueError`` from ``from_mapping`` when an entry is malformed.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from decimal import Decimal
from types import MappingProxyType
from typing import Any

from payroll_kernel.domain.money import to_decimal
from payroll_kernel.exceptions import UnknownRoleError
from payroll_kernel.logging_config import get_logger
from payroll_modules.contractor_pay.models import PayRate

logger = get_logger("engines.rates")

DEFAULT_OVERTIME_MULTIPLIER = Decimal("1.5")
DEFAULT_HOLIDAY_MULTIPLIER = Decimal("2.0")


def _catalogue_rate(role: str, base: str) -> PayRate:
    return PayRate(
        role=role,
        base_hourly_rate=Decimal(base),
        overtime_multiplier=DEFAULT_OVERTIME_MULTIPLIER,
        holiday_multiplier=DEFAULT_HOLIDAY_MULTIPLIER,
    )


# Role catalogue used when no rate table is configured.
DEFAULT_ROLE_RATES: tuple[PayRate, ...] = (
    _catalogue_rate("Bus Aide", "18.50"),
    _catalogue_rate("Paraprofessional", "22.00"),
    _catalogue_rate("Cafeteria Staff", "17.50"),
    _catalogue_rate("Substitute Teacher", "25.00"),
    _catalogue_rate("Clinical Staff", "35.00"),
    _catalogue_rate("Administrative Staff", "23.00"),
)


class RateResolver:
    """
    Read-only role -> PayRate lookup.

    Contract:
        ``resolve`` never mutates state and never returns a default for an
        unknown role.
    """

    def __init__(self, rates: Iterable[PayRate]):
        table: dict[str, PayRate] = {}
        for rate in rates:
            if rate.role in table:
                raise ValueError(f"Duplicate pay rate for role: {rate.role!r}")
            table[rate.role] = rate
        self._rates = MappingProxyType(table)

    @classmethod
    def default(cls) -> RateResolver:
        return cls(DEFAULT_ROLE_RATES)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> RateResolver:
        """Build a resolver from ``{role: {base_hourly_rate: .., ...}}``.

        A bare number is accepted as the base rate with default multipliers.
        """
        rates = []
        for role, entry in data.items():
            if isinstance(entry, Mapping):
                if "base_hourly_rate" not in entry:
                    raise ValueError(f"Rate for role {role!r} has no base_hourly_rate")
                rates.append(PayRate(
                    role=str(role),
                    base_hourly_rate=to_decimal(entry["base_hourly_rate"]),
                    overtime_multiplier=to_decimal(
                        entry.get("overtime_multiplier", DEFAULT_OVERTIME_MULTIPLIER)
                    ),
                    holiday_multiplier=to_decimal(
                        entry.get("holiday_multiplier", DEFAULT_HOLIDAY_MULTIPLIER)
                    ),
                ))
            else:
                rates.append(PayRate(
                    role=str(role),
                    base_hourly_rate=to_decimal(entry),
                    overtime_multiplier=DEFAULT_OVERTIME_MULTIPLIER,
                    holiday_multiplier=DEFAULT_HOLIDAY_MULTIPLIER,
                ))
        return cls(rates)

    @property
    def roles(self) -> tuple[str, ...]:
        return tuple(sorted(self._rates))

    def __contains__(self, role: object) -> bool:
        return role in self._rates

    def __len__(self) -> int:
        return len(self._rates)

    def resolve(self, role: str | None) -> PayRate:
        """Return the rate for ``role``.

        Raises:
            UnknownRoleError: if the role has no configured rate.
        """
        rate = self._rates.get(role) if role is not None else None
        if rate is None:
            logger.warning("rate_lookup_miss", extra={"role": role})
            raise UnknownRoleError(role)
        return rate

    def as_dict(self) -> dict[str, dict[str, Decimal]]:
        """Plain-dict form, used for config checksums."""
        return {
            role: {
                "base_hourly_rate": rate.base_hourly_rate,
                "overtime_multiplier": rate.overtime_multiplier,
                "holiday_multiplier": rate.holiday_multiplier,
            }
            for role, rate in sorted(self._rates.items())
        }
