"""
Decimal helpers shared by the weight and aggregation modules.

Weights and scores are fixed-point values with two decimal places; floats are
converted through their string form so 33.33 stays 33.33.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[Decimal, int, float, str]

HUNDRED = Decimal("100")
CENT = Decimal("0.01")


def to_decimal(value: Number) -> Decimal:
    """Convert int/float/str to Decimal without binary float artifacts."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round2(value: Number) -> Decimal:
    """Round half-up to 2 decimal places."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)
