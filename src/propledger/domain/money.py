"""Money and ratio helpers shared by the ledger and utility billing."""

from decimal import Decimal, ROUND_DOWN, ROUND_HALF_UP
from typing import Union

CENT = Decimal("0.01")
RATIO_PLACES = Decimal("0.000001")
ZERO = Decimal("0.00")

# One cent: the tolerance for every money comparison in the package.
MONETARY_TOLERANCE = Decimal("0.01")
# Ratios are computed quantities, not currency.
RATIO_TOLERANCE = Decimal("0.0001")

Number = Union[Decimal, int, float, str]


def to_decimal(value: Number) -> Decimal:
    """Convert a number to Decimal without float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def to_money(value: Number) -> Decimal:
    """Quantize a value to cents (half up)."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def floor_money(value: Decimal) -> Decimal:
    """Truncate a non-negative value to whole cents."""
    return value.quantize(CENT, rounding=ROUND_DOWN)


def to_ratio(value: Number) -> Decimal:
    """Quantize a ratio to six places."""
    return to_decimal(value).quantize(RATIO_PLACES, rounding=ROUND_HALF_UP)
