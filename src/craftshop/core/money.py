"""Decimal helpers for money amounts."""

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

ZERO = Decimal("0.00")


def round_money(amount, places: int = 2) -> Decimal:
    """Round to the given decimal places, halves away from zero."""
    quantize_str = "0." + "0" * places
    return Decimal(amount).quantize(Decimal(quantize_str), rounding=ROUND_HALF_UP)


def to_decimal(value, default=None):
    """Parse a number from JSON input into a Decimal.

    Floats go through str() so 0.1 stays 0.1. Returns `default` for
    None, "" and unparseable values.
    """
    if value is None or value == "":
        return default
    if isinstance(value, bool):
        return default
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default
    if not result.is_finite():
        return default
    return result
