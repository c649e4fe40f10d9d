"""
Money -- Decimal-only monetary helpers.

Responsibility:
    Centralizes conversion into ``Decimal`` and rounding to the currency's
    minor unit.  ``round_money()`` is the ONLY sanctioned rounding function
    for pay amounts.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - No floats: ``to_decimal`` converts via ``str()`` so binary float
      artefacts never leak into amounts.
    - Pay totals round half-to-even to 2 decimal places.
"""

from __future__ import annotations

from decimal import ROUND_HALF_EVEN, Decimal, InvalidOperation

ZERO = Decimal("0")
MONEY_DECIMAL_PLACES = 2
MONEY_QUANTUM = Decimal(1).scaleb(-MONEY_DECIMAL_PLACES)
DEFAULT_ROUNDING = ROUND_HALF_EVEN


def to_decimal(value: Decimal | int | float | str) -> Decimal:
    """
    Convert a number or numeric string to ``Decimal``.

    Raises:
        ValueError: if ``value`` is not numeric or is NaN/infinite.
    """
    if isinstance(value, Decimal):
        result = value
    else:
        try:
            result = Decimal(str(value).strip())
        except (InvalidOperation, ValueError) as e:
            raise ValueError(f"Invalid numeric value: {value!r}") from e
    if not result.is_finite():
        raise ValueError(f"Non-finite numeric value: {value!r}")
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to the currency minor unit using round-half-to-even."""
    return amount.quantize(MONEY_QUANTUM, rounding=DEFAULT_ROUNDING)


def sum_money(amounts) -> Decimal:
    """Sum an iterable of Decimals starting from an exact zero."""
    return sum(amounts, ZERO)
