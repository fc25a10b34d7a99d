# utils/dates.py
from datetime import date, datetime

from dateutil.relativedelta import relativedelta

from utils.errors import ValidationError

# Loans taken before this day of the month may be repaid in the same month
REPAYMENT_CUTOFF_DAY = 22


def end_of_month(year, month):
    return date(year, month, 1) + relativedelta(day=31)


def repayment_due_date(applied_on, repayment_months):
    """
    Expected repayment date under the 22nd-day rule.

    A one-month loan applied before the 22nd is due at the end of the
    application month. Anything else is due at the end of the month
    ``repayment_months`` after the application month.
    """
    if repayment_months < 1:
        raise ValidationError("repayment period must be at least one month", code="invalid_repayment_months")
    if repayment_months == 1 and applied_on.day < REPAYMENT_CUTOFF_DAY:
        offset = 0
    else:
        offset = repayment_months
    # day=31 clamps to the last day of the target month
    return applied_on + relativedelta(months=offset, day=31)


def whole_months_between(start, end):
    """Whole calendar months from ``start`` to ``end`` (negative if end < start)."""
    delta = relativedelta(end, start)
    return delta.years * 12 + delta.months


def parse_date(value, field="date"):
    """Accept a date, datetime or ISO string."""
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except ValueError:
        raise ValidationError(f"{field} must be an ISO date (YYYY-MM-DD)", code="malformed_date", field=field)
