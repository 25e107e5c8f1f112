"""Money helpers for the merch engine.

All amounts are USD held as ``Decimal``. Each computed component is rounded
to cents (ROUND_HALF_UP) on its own; totals are sums of rounded components.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Union

Number = Union[Decimal, int, float, str]

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: Number) -> Decimal:
    """Coerce a number to Decimal without float artefacts (``str`` round trip)."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value: Number) -> Decimal:
    """Round to cents, half-up."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Number, percent: Number) -> Decimal:
    """``amount * percent / 100`` rounded to cents."""
    return round_money(to_decimal(amount) * to_decimal(percent) / HUNDRED)


def dollars_to_cents(amount: Number) -> int:
    """Convert dollars to integer cents (provider APIs such as Printify use cents)."""
    return int(round_money(amount) * 100)


def cents_to_dollars(cents: int) -> Decimal:
    return round_money(Decimal(cents) / HUNDRED)


def format_usd(amount: Number) -> str:
    return f"${round_money(amount):,.2f}"
