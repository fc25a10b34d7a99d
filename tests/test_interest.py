from datetime import date
from decimal import Decimal

import pytest

from interest import distribution
from interest.models import InterestDistribution, YearInterestPool
from loans import lifecycle
from tests.conftest import ORG
from utils.errors import ConflictError, StateError, ValidationError


def _repaid_loan(member, amount, applied_on=date(2025, 3, 10), paid_on=date(2025, 4, 20)):
    loan = lifecycle.apply(ORG, member.id, "savings_loan", amount, repayment_months=1, applied_on=applied_on)
    lifecycle.approve(ORG, loan.id, member.id)
    lifecycle.disburse(ORG, loan.id, member.id)
    lifecycle.record_repayment(ORG, loan.id, loan.total_amount, member.id, paid_on=paid_on)
    return lifecycle.get_loan(ORG, loan.id)


def test_half_of_interest_returns_to_bearer(make_member, period):
    member = make_member(category="B")
    loan = _repaid_loan(member, 1000)

    rows = InterestDistribution.query.filter_by(loan_id=loan.id).all()
    assert len(rows) == 1
    assert rows[0].distribution_type == "bearer_return"
    assert rows[0].amount == Decimal("50")
    assert rows[0].year == 2025
    assert distribution.pool_balance(ORG, 2025) == Decimal("50")


def test_odd_cent_interest_is_not_lost(make_member, period):
    member = make_member(category="B")
    _repaid_loan(member, Decimal("1000.05"))  # interest 100.01 (rounded from 100.005)

    bearer = distribution.total_by_type(ORG, 2025, "bearer_return")
    assert bearer == Decimal("50.01")
    assert bearer + distribution.pool_balance(ORG, 2025) == Decimal("100.01")


def test_pool_accumulates_per_repayment_year(make_member, period):
    a, b = make_member(category="B"), make_member(category="B")
    _repaid_loan(a, 1000)
    _repaid_loan(b, 2000, paid_on=date(2026, 1, 5))

    assert distribution.pool_balance(ORG, 2025) == Decimal("50")
    assert distribution.pool_balance(ORG, 2026) == Decimal("100")
    assert YearInterestPool.query.count() == 2


def test_second_distribution_for_same_loan_conflicts(make_member, period):
    loan = _repaid_loan(make_member(category="B"), 1000)
    with pytest.raises(ConflictError):
        distribution.distribute_loan_interest(loan, date(2025, 5, 1))
    assert distribution.pool_balance(ORG, 2025) == Decimal("50")


def test_only_repaid_loans_distribute(make_member, period):
    member = make_member(category="B")
    loan = lifecycle.apply(ORG, member.id, "savings_loan", 1000, repayment_months=1, applied_on=date(2025, 3, 1))
    with pytest.raises(StateError):
        distribution.distribute_loan_interest(loan, date(2025, 3, 2))


def test_earnings_report(make_member, period):
    member = make_member(category="B")
    _repaid_loan(member, 1000)
    report = distribution.earnings_for_member(ORG, member.id, 2025)
    assert report["total"] == Decimal("50")
    assert report["by_type"]["bearer_return"] == Decimal("50")
    assert report["by_type"]["member_share"] == Decimal("0")
    assert len(report["distributions"]) == 1

    with pytest.raises(ValidationError):
        distribution.total_by_type(ORG, 2025, "bonus")
