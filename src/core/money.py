"""
Decimal conversion and rounding helpers shared by billing and timesheets.

All rounding is half-up: 0.005 rounds to 0.01 and 0.05 hours to 0.1.
"""

from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")
TENTH = Decimal("0.1")
ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Convert int/str/float/Decimal to Decimal (floats go through str)."""
    if isinstance(value, Decimal):
        return value
    if value is None:
        return ZERO
    if isinstance(value, float):
        return Decimal(str(value))
    return Decimal(value)


def round_money(value) -> Decimal:
    """Round to the cent."""
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def round_hours(value) -> Decimal:
    """Round to a tenth of an hour."""
    return to_decimal(value).quantize(TENTH, rounding=ROUND_HALF_UP)


def round_percent(value) -> Decimal:
    return to_decimal(value).quantize(TENTH, rounding=ROUND_HALF_UP)


def percent_of(amount, rate) -> Decimal:
    """Unrounded `amount * rate / 100`."""
    return to_decimal(amount) * to_decimal(rate) / HUNDRED
