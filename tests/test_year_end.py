from datetime import date
from decimal import Decimal

import pytest

from interest import year_end
from interest.distribution import pool_balance
from interest.models import IndividualYearShare, InterestDistribution
from loans import lifecycle
from members.committee import assign_role
from tests.conftest import ORG
from utils.errors import ConflictError, NotFoundError, StateError


def _repay(member, amount, paid_on=date(2025, 4, 20)):
    loan = lifecycle.apply(ORG, member.id, "savings_loan", amount, repayment_months=1,
                           applied_on=date(2025, 3, 10))
    lifecycle.approve(ORG, loan.id, member.id)
    lifecycle.disburse(ORG, loan.id, member.id)
    lifecycle.record_repayment(ORG, loan.id, loan.total_amount, member.id, paid_on=paid_on)


@pytest.fixture
def sacco(make_member, period):
    members = [make_member(name=f"M{i}", category="B") for i in range(6)]
    for member, role in zip(members, ("chair", "secretary", "treasurer", "disburser")):
        assign_role(ORG, member.id, role)
    return members


def test_pool_is_split_between_committee_and_members(sacco):
    _repay(sacco[5], 1000)  # interest 100, 50 retained

    shareout = year_end.calculate_and_distribute(ORG, 2025)

    assert shareout.is_completed
    assert shareout.total_interest == Decimal("100")
    assert shareout.available_for_distribution == Decimal("50")
    assert shareout.committee_total_share == Decimal("25")
    assert shareout.members_total_share == Decimal("25")
    assert shareout.undistributed_amount == Decimal("0")
    assert (shareout.committee_count, shareout.member_count) == (4, 6)

    committee = IndividualYearShare.query.filter_by(share_type="committee_member").all()
    regular = IndividualYearShare.query.filter_by(share_type="regular_member").all()
    assert [s.amount for s in committee] == [Decimal("6.25")] * 4
    assert [s.amount for s in regular] == [Decimal("4.16")] * 5 + [Decimal("4.20")]
    assert sum(s.amount for s in committee + regular) == Decimal("50")


def test_committee_members_are_paid_twice(sacco):
    _repay(sacco[5], 1000)
    year_end.calculate_and_distribute(ORG, 2025)

    chair_rows = InterestDistribution.query.filter_by(member_id=sacco[0].id, year=2025).all()
    assert sorted(r.distribution_type for r in chair_rows) == ["committee_share", "member_share"]
    assert all(r.loan_id is None for r in chair_rows)


def test_rerunning_a_completed_year_conflicts(sacco):
    _repay(sacco[5], 1000)
    year_end.calculate_and_distribute(ORG, 2025)
    with pytest.raises(ConflictError):
        year_end.calculate_and_distribute(ORG, 2025)
    assert IndividualYearShare.query.count() == 10


def test_half_without_recipients_stays_undistributed(make_member, period):
    borrower = make_member(category="B")
    _repay(borrower, 1000)

    shareout = year_end.calculate_and_distribute(ORG, 2025)

    assert shareout.committee_count == 0
    assert shareout.undistributed_amount == Decimal("25")
    shares = IndividualYearShare.query.all()
    assert [(s.member_id, s.amount) for s in shares] == [(borrower.id, Decimal("25"))]


def test_only_loans_repaid_in_the_year_count(sacco):
    _repay(sacco[4], 1000)
    _repay(sacco[5], 2000, paid_on=date(2026, 1, 10))
    shareout = year_end.calculate_and_distribute(ORG, 2025)
    assert shareout.total_interest == Decimal("100")
    assert shareout.available_for_distribution == Decimal("50")


def test_mark_share_disbursed(sacco):
    _repay(sacco[5], 1000)
    shareout = year_end.calculate_and_distribute(ORG, 2025)
    share = shareout.shares[0]

    year_end.mark_share_disbursed(ORG, share.id, on_date=date(2026, 1, 3))
    assert share.is_disbursed
    assert share.disbursed_date == date(2026, 1, 3)
    with pytest.raises(StateError):
        year_end.mark_share_disbursed(ORG, share.id)
    with pytest.raises(NotFoundError):
        year_end.mark_share_disbursed(ORG + 1, share.id)


def test_get_shareout(sacco):
    with pytest.raises(NotFoundError):
        year_end.get_shareout(ORG, 2025)
    year_end.calculate_and_distribute(ORG, 2025)
    assert year_end.get_shareout(ORG, 2025).available_for_distribution == Decimal("0")


def test_interest_repaid_after_year_end_goes_to_next_pool(sacco):
    _repay(sacco[5], 1000)
    year_end.calculate_and_distribute(ORG, 2025, on_date=date(2025, 12, 20))

    _repay(sacco[4], 2000, paid_on=date(2025, 12, 28))  # interest 200, 100 retained

    assert pool_balance(ORG, 2025) == Decimal("50")
    assert pool_balance(ORG, 2026) == Decimal("100")

    following = year_end.calculate_and_distribute(ORG, 2026, on_date=date(2026, 12, 31))
    assert following.available_for_distribution == Decimal("100")
    shares = IndividualYearShare.query.filter_by(shareout_id=following.id).all()
    assert sum(s.amount for s in shares) == Decimal("100")
