# interest/year_end.py
"""
Year-end shareout of the retained interest pool.

The pool holds the half of each repaid loan's interest that was not returned
to the borrower. At year end it is split again: half to the active committee
roles, half to every active member (committee members included, so they are
paid twice). Each half is divided cent-exact; a half with nobody to receive it
is kept as ``undistributed_amount``.
"""
import logging
from collections import OrderedDict
from datetime import date, datetime
from decimal import Decimal

from extensions import db
from interest.distribution import pool_balance
from interest.models import IndividualYearShare, InterestDistribution, YearEndShareout
from loans.models import Loan
from members.committee import active_committee, active_members
from notifications.utils import push_notification
from utils.audit_logger import log_audit_action
from utils.errors import ConflictError, NotFoundError, StateError
from utils.money import ZERO, round_money, split_evenly
from utils.transactions import atomic

logger = logging.getLogger(__name__)

COMMITTEE_SHARE = Decimal("0.5")


def total_interest_for_year(organization_id, year):
    loans = Loan.query.filter(
        Loan.organization_id == organization_id,
        Loan.status == "repaid",
        Loan.actual_repayment_date >= date(year, 1, 1),
        Loan.actual_repayment_date <= date(year, 12, 31),
    ).all()
    return round_money(sum((loan.interest_amount for loan in loans), ZERO))


def _write_shares(shareout, recipients, amounts, share_type, distribution_type, on_date):
    """``recipients`` may repeat a member; their parts are summed into one row."""
    per_member = OrderedDict()
    for member_id, amount in zip(recipients, amounts):
        per_member[member_id] = per_member.get(member_id, ZERO) + amount

    for member_id, amount in per_member.items():
        if amount <= 0:
            continue
        db.session.add(IndividualYearShare(
            shareout_id=shareout.id,
            member_id=member_id,
            amount=amount,
            share_type=share_type,
        ))
        db.session.add(InterestDistribution(
            organization_id=shareout.organization_id,
            year=shareout.year,
            loan_id=None,
            member_id=member_id,
            amount=amount,
            distribution_type=distribution_type,
            description=f"{shareout.year} year-end {share_type.replace('_', ' ')} share",
            distributed_date=on_date,
        ))
        push_notification(member_id, f"📈 Your {shareout.year} year-end interest share is {amount}",
                          "year_end_share", {"year": shareout.year, "share_type": share_type})
    return per_member


def calculate_and_distribute(organization_id, year, actor_id=None, on_date=None):
    on_date = on_date or date.today()

    shareout = YearEndShareout.query.filter_by(organization_id=organization_id, year=year).first()
    if shareout and shareout.is_completed:
        raise ConflictError(f"Year {year} was already shared out", code="year_already_shared_out")

    available = pool_balance(organization_id, year)
    committee_roles = active_committee(organization_id)
    members = active_members(organization_id)

    committee_total = round_money(available * COMMITTEE_SHARE)
    members_total = available - committee_total

    undistributed = ZERO
    committee_parts = split_evenly(committee_total, len(committee_roles))
    if not committee_parts:
        undistributed += committee_total
    member_parts = split_evenly(members_total, len(members))
    if not member_parts:
        undistributed += members_total

    with atomic(f"Year {year} was already shared out"):
        if shareout is None:
            shareout = YearEndShareout(organization_id=organization_id, year=year)
            db.session.add(shareout)
        shareout.total_interest = total_interest_for_year(organization_id, year)
        shareout.available_for_distribution = available
        shareout.committee_total_share = committee_total
        shareout.members_total_share = members_total
        shareout.undistributed_amount = undistributed
        shareout.committee_count = len(committee_roles)
        shareout.member_count = len(members)
        db.session.flush()

        _write_shares(shareout, [r.member_id for r in committee_roles], committee_parts,
                      "committee_member", "committee_share", on_date)
        _write_shares(shareout, [m.id for m in members], member_parts,
                      "regular_member", "member_share", on_date)

        shareout.is_completed = True
        shareout.shareout_date = datetime.utcnow()
        shareout.completed_by = actor_id
        log_audit_action(organization_id, actor_id, "year_end.distribute", "year_end_shareouts", shareout.id,
                         new=shareout.to_dict())

    if undistributed:
        logger.warning("year %s shareout left %s undistributed (committee=%d members=%d)",
                       year, undistributed, len(committee_roles), len(members))
    logger.info("year %s shareout: available %s, committee %s, members %s",
                year, available, committee_total, members_total)
    return shareout


def get_shareout(organization_id, year):
    shareout = YearEndShareout.query.filter_by(organization_id=organization_id, year=year).first()
    if not shareout:
        raise NotFoundError(f"No shareout for {year}", year=year)
    return shareout


def mark_share_disbursed(organization_id, share_id, actor_id=None, on_date=None):
    share = db.session.get(IndividualYearShare, share_id)
    if not share or share.shareout.organization_id != organization_id:
        raise NotFoundError("Share not found", share_id=share_id)
    if share.is_disbursed:
        raise StateError("Share already disbursed", code="already_disbursed")
    with atomic():
        share.is_disbursed = True
        share.disbursed_date = on_date or date.today()
        log_audit_action(organization_id, actor_id, "year_end.disburse_share", "individual_year_shares",
                         share.id, new={"amount": share.amount})
    return share
