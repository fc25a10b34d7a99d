# periods/ledger.py
"""
Operating period ledger.

A SACCO year is split into three four-month quarters. Exactly one quarter per
organization may be active at any time; activation flips every sibling off in
the same transaction.
"""
import logging
from datetime import date

from extensions import db
from loans.models import Loan
from periods.models import OperatingPeriod
from savings.models import SavingsEntry, SavingsTarget
from shareout.models import ShareoutDecision
from utils.audit_logger import log_audit_action
from utils.dates import end_of_month
from utils.errors import ConflictError, NotFoundError, StateError, ValidationError
from utils.transactions import atomic

logger = logging.getLogger(__name__)

QUARTERS_PER_YEAR = 3
MONTHS_PER_QUARTER = 12 // QUARTERS_PER_YEAR
MIN_YEAR, MAX_YEAR = 2000, 2100


def quarter_bounds(year, quarter_number):
    """First and last calendar day spanned by the quarter."""
    if not isinstance(year, int) or not MIN_YEAR <= year <= MAX_YEAR:
        raise ValidationError(f"year must be between {MIN_YEAR} and {MAX_YEAR}", code="invalid_year", year=year)
    if not isinstance(quarter_number, int) or not 1 <= quarter_number <= QUARTERS_PER_YEAR:
        raise ValidationError(
            f"quarter_number must be between 1 and {QUARTERS_PER_YEAR}",
            code="invalid_quarter", quarter_number=quarter_number,
        )
    first_month = (quarter_number - 1) * MONTHS_PER_QUARTER + 1
    last_month = first_month + MONTHS_PER_QUARTER - 1
    return date(year, first_month, 1), end_of_month(year, last_month)


def get_period(organization_id, period_id):
    period = db.session.get(OperatingPeriod, period_id) if period_id is not None else None
    if not period or period.organization_id != organization_id:
        raise NotFoundError("Period not found", period_id=period_id)
    return period


def create_period(organization_id, year, quarter_number, actor_id=None):
    start, end = quarter_bounds(year, quarter_number)

    existing = OperatingPeriod.query.filter_by(
        organization_id=organization_id, year=year, quarter_number=quarter_number
    ).first()
    if existing:
        raise ConflictError(f"Q{quarter_number} {year} already exists", code="period_exists", period_id=existing.id)

    with atomic(f"Q{quarter_number} {year} already exists"):
        period = OperatingPeriod(
            organization_id=organization_id,
            year=year,
            quarter_number=quarter_number,
            start_date=start,
            end_date=end,
        )
        db.session.add(period)
        db.session.flush()
        log_audit_action(organization_id, actor_id, "period.create", "operating_periods", period.id,
                         new=period.to_dict())

    logger.info("created period %s for org %s", period.name, organization_id)
    return period


def ensure_year(organization_id, year, actor_id=None):
    """Create whichever quarters of ``year`` are missing. Returns the new ones."""
    created = []
    for quarter_number in range(1, QUARTERS_PER_YEAR + 1):
        exists = OperatingPeriod.query.filter_by(
            organization_id=organization_id, year=year, quarter_number=quarter_number
        ).first()
        if not exists:
            created.append(create_period(organization_id, year, quarter_number, actor_id))
    return created


def activate(organization_id, period_id, actor_id=None):
    period = get_period(organization_id, period_id)
    if period.is_active:
        return period
    if period.is_completed:
        raise StateError(f"{period.name} is completed and cannot be reactivated", code="period_completed")

    previous = current_active(organization_id)
    with atomic():
        # one multi-row UPDATE, then the target; committed together
        OperatingPeriod.query.filter(
            OperatingPeriod.organization_id == organization_id,
            OperatingPeriod.id != period.id,
            OperatingPeriod.is_active.is_(True),
        ).update({OperatingPeriod.is_active: False}, synchronize_session="fetch")
        period.is_active = True
        log_audit_action(organization_id, actor_id, "period.activate", "operating_periods", period.id,
                         old={"active_period_id": previous.id if previous else None},
                         new={"active_period_id": period.id})

    logger.info("org %s active period is now %s", organization_id, period.name)
    return period


def current_active(organization_id):
    return OperatingPeriod.query.filter_by(organization_id=organization_id, is_active=True).first()


def contains(period, on_date):
    return period.contains(on_date)


def period_for_date(organization_id, on_date):
    return OperatingPeriod.query.filter(
        OperatingPeriod.organization_id == organization_id,
        OperatingPeriod.start_date <= on_date,
        OperatingPeriod.end_date >= on_date,
    ).first()


def list_periods(organization_id, year=None):
    query = OperatingPeriod.query.filter_by(organization_id=organization_id)
    if year is not None:
        query = query.filter_by(year=year)
    return query.order_by(OperatingPeriod.year.desc(), OperatingPeriod.quarter_number.desc()).all()


def complete(organization_id, period_id, actor_id=None):
    period = get_period(organization_id, period_id)
    if period.is_completed:
        return period
    with atomic():
        period.is_completed = True
        period.is_active = False
        log_audit_action(organization_id, actor_id, "period.complete", "operating_periods", period.id,
                         new={"is_completed": True})
    return period


def delete_period(organization_id, period_id, actor_id=None):
    period = get_period(organization_id, period_id)
    for model in (Loan, SavingsTarget, SavingsEntry, ShareoutDecision):
        if model.query.filter_by(period_id=period.id).first():
            raise ConflictError(
                f"{period.name} is referenced by {model.__tablename__} and cannot be deleted",
                code="period_in_use",
            )
    with atomic():
        log_audit_action(organization_id, actor_id, "period.delete", "operating_periods", period.id,
                         old=period.to_dict())
        db.session.delete(period)
