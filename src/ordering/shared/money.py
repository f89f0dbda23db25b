"""Helpers for monetary amounts.

Amounts are stored as floats on aggregates; arithmetic that must round goes
through Decimal so halves always round up, independent of binary floating
point representation.
"""

from decimal import ROUND_HALF_UP, Decimal


def round_amount(value: float, places: int = 2) -> float:
    """Round to `places` decimals, halves away from zero."""
    quantum = Decimal(1).scaleb(-places)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percentage_of(amount: float, percentage: float) -> float:
    """Whole-unit share of `amount`, e.g. a discount of 12.5% on 999 -> 125."""
    return round_amount(Decimal(str(amount)) * Decimal(str(percentage)) / Decimal(100), places=0)


def format_amount(value: float) -> str:
    """Render an amount the way the payment gateway expects it.

    Whole numbers carry no decimal part (1000.0 -> "1000"); anything else keeps
    its shortest exact representation (99.5 -> "99.5").
    """
    value = round_amount(value)
    if value == int(value):
        return str(int(value))
    return repr(value)
