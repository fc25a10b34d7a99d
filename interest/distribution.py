# interest/distribution.py
"""
Per-loan interest split.

When a loan is fully repaid half of its interest goes straight back to the
borrower as a ``bearer_return``; the other half accrues into the year pool
that the year-end shareout later divides between committee and members.

These helpers stage rows in the caller's session and never commit.
"""
import logging
from decimal import Decimal

from sqlalchemy import func

from extensions import db
from interest.models import DISTRIBUTION_TYPES, InterestDistribution, YearEndShareout, YearInterestPool
from utils.errors import ConflictError, StateError, ValidationError
from utils.money import ZERO, round_money

logger = logging.getLogger(__name__)

BEARER_SHARE = Decimal("0.5")


def _pool_for(organization_id, year):
    pool = YearInterestPool.query.filter_by(organization_id=organization_id, year=year).first()
    if pool is None:
        pool = YearInterestPool(organization_id=organization_id, year=year, accrued_interest=ZERO)
        db.session.add(pool)
    return pool


def open_pool_year(organization_id, year):
    """First year from ``year`` on whose shareout has not been completed."""
    while YearEndShareout.query.filter_by(organization_id=organization_id, year=year, is_completed=True).first():
        year += 1
    return year


def distribute_loan_interest(loan, on_date):
    """Split a repaid loan's interest. Returns (bearer_distribution, pooled_amount)."""
    if loan.status != "repaid":
        raise StateError(f"Loan {loan.loan_number} is not repaid", code="loan_not_repaid")

    already = InterestDistribution.query.filter_by(loan_id=loan.id, distribution_type="bearer_return").first()
    if already:
        raise ConflictError(f"Interest for loan {loan.loan_number} was already distributed",
                            code="interest_already_distributed", loan_id=loan.id)

    interest = round_money(loan.total_amount - loan.principal)
    bearer = round_money(interest * BEARER_SHARE)
    pooled = interest - bearer

    dist = InterestDistribution(
        organization_id=loan.organization_id,
        year=on_date.year,
        loan_id=loan.id,
        member_id=loan.member_id,
        amount=bearer,
        distribution_type="bearer_return",
        description=f"50% interest return on loan {loan.loan_number}",
        distributed_date=on_date,
    )
    db.session.add(dist)

    pool_year = open_pool_year(loan.organization_id, on_date.year)
    pool = _pool_for(loan.organization_id, pool_year)
    pool.accrued_interest = round_money((pool.accrued_interest or ZERO) + pooled)

    logger.info("loan %s interest %s: bearer %s, pooled %s into %s",
                loan.loan_number, interest, bearer, pooled, pool_year)
    return dist, pooled


def pool_balance(organization_id, year):
    pool = YearInterestPool.query.filter_by(organization_id=organization_id, year=year).first()
    return round_money(pool.accrued_interest) if pool else ZERO


def earnings_for_member(organization_id, member_id, year):
    rows = InterestDistribution.query.filter_by(
        organization_id=organization_id, member_id=member_id, year=year
    ).order_by(InterestDistribution.distributed_date.asc(), InterestDistribution.id.asc()).all()

    by_type = {dtype: ZERO for dtype in DISTRIBUTION_TYPES}
    for row in rows:
        by_type[row.distribution_type] = by_type.get(row.distribution_type, ZERO) + row.amount
    return {
        "member_id": member_id,
        "year": year,
        "total": round_money(sum(by_type.values(), ZERO)),
        "by_type": {k: round_money(v) for k, v in by_type.items()},
        "distributions": rows,
    }


def total_by_type(organization_id, year, distribution_type):
    if distribution_type not in DISTRIBUTION_TYPES:
        raise ValidationError(f"Unknown distribution type '{distribution_type}'", code="invalid_distribution_type")
    total = db.session.query(func.coalesce(func.sum(InterestDistribution.amount), 0)).filter(
        InterestDistribution.organization_id == organization_id,
        InterestDistribution.year == year,
        InterestDistribution.distribution_type == distribution_type,
    ).scalar()
    return round_money(total)
