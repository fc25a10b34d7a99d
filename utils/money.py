# utils/money.py
"""
Money helpers.

All amounts are ``Decimal`` with two places. Never pass floats through here
unless they come straight from user input; they are converted via ``str``.
"""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, ROUND_DOWN

from utils.errors import ValidationError

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0.00")


def to_money(value, field="amount"):
    """Parse user/DB input into a 2dp Decimal, raising ValidationError on junk."""
    if value is None or value == "":
        raise ValidationError(f"{field} is required", code="missing_amount", field=field)
    if isinstance(value, bool):
        raise ValidationError(f"{field} must be a number", code="invalid_amount", field=field)
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f"{field} must be a number", code="invalid_amount", field=field)
    if not amount.is_finite():
        raise ValidationError(f"{field} must be a number", code="invalid_amount", field=field)
    return round_money(amount)


def round_money(amount, rounding=ROUND_HALF_UP):
    if amount is None:
        return ZERO
    return Decimal(str(amount)).quantize(TWO_PLACES, rounding=rounding)


def percent_of(amount, rate):
    """``rate`` is a percentage, e.g. 10 for 10%."""
    return round_money(Decimal(str(amount)) * Decimal(str(rate)) / Decimal("100"))


def split_evenly(total, count):
    """
    Split ``total`` into ``count`` cent-exact parts.

    Every part is floored to the cent and the leftover cents go to the last
    part, so ``sum(parts) == total``.
    """
    total = round_money(total)
    if count <= 0:
        return []
    each = (total / count).quantize(TWO_PLACES, rounding=ROUND_DOWN)
    parts = [each] * count
    parts[-1] = total - each * (count - 1)
    return parts


def fmt(amount):
    """Serialize for JSON: two-decimal string, None stays None."""
    if amount is None:
        return None
    return str(round_money(amount))
