# shareout/settlement.py
"""
Period-end share-out: members decide whether to take their savings out, and
an operator settles the decisions individually or in bulk.
"""
import logging
from datetime import datetime
from decimal import Decimal

from extensions import db
from members.models import Member
from notifications.utils import push_notification
from periods.ledger import get_period
from savings.contributions import member_balance
from savings.models import SavingsEntry
from shareout.models import ShareoutDecision
from utils.audit_logger import log_audit_action
from utils.errors import ConflictError, NotFoundError, StateError, ValidationError
from utils.money import percent_of
from utils.transactions import atomic

logger = logging.getLogger(__name__)

# interest paid on savings taken out at share-out
SHAREOUT_INTEREST_RATE = Decimal("5")


def activate_shareout(organization_id, period_id, actor_id=None, shareout_date=None):
    period = get_period(organization_id, period_id)
    if period.shareout_activated:
        return period
    with atomic():
        period.shareout_activated = True
        period.shareout_date = shareout_date or period.end_date
        log_audit_action(organization_id, actor_id, "shareout.activate", "operating_periods", period.id,
                         new={"shareout_activated": True, "shareout_date": period.shareout_date})
    logger.info("share-out opened for %s (org %s)", period.name, organization_id)
    return period


def get_decision(organization_id, decision_id):
    decision = db.session.get(ShareoutDecision, decision_id)
    if not decision or decision.organization_id != organization_id:
        raise NotFoundError("Share-out decision not found", decision_id=decision_id)
    return decision


def record_decision(organization_id, member_id, period_id, wants_shareout):
    if not isinstance(wants_shareout, bool):
        raise ValidationError("wants_shareout must be true or false", code="invalid_choice")

    period = get_period(organization_id, period_id)
    if not period.shareout_activated:
        raise StateError(f"Share-out is not open for {period.name}", code="shareout_not_active")

    member = db.session.get(Member, member_id)
    if not member or member.organization_id != organization_id:
        raise NotFoundError("Member not found", member_id=member_id)

    if ShareoutDecision.query.filter_by(member_id=member.id, period_id=period.id).first():
        raise ConflictError(f"A decision for {period.name} was already recorded", code="decision_exists")

    balance = member_balance(organization_id, member.id, period.id)
    with atomic("A decision for this period was already recorded"):
        decision = ShareoutDecision(
            organization_id=organization_id,
            member_id=member.id,
            period_id=period.id,
            wants_shareout=wants_shareout,
            savings_balance=balance,
            interest_amount=percent_of(balance, SHAREOUT_INTEREST_RATE),
            decision_made_at=datetime.utcnow(),
        )
        db.session.add(decision)
        db.session.flush()
        log_audit_action(organization_id, member.id, "shareout.decide", "shareout_decisions", decision.id,
                         new=decision.to_dict())
    return decision


def _settle(decision, actor_id, now):
    if not decision.wants_shareout:
        raise StateError("Member chose to keep their savings", code="shareout_not_requested",
                         decision_id=decision.id)
    if decision.shareout_completed:
        raise StateError("Share-out already completed", code="shareout_completed", decision_id=decision.id)

    SavingsEntry.query.filter_by(
        member_id=decision.member_id, period_id=decision.period_id, shared_out=False
    ).update({SavingsEntry.shared_out: True, SavingsEntry.shared_out_date: now}, synchronize_session="fetch")

    decision.shareout_completed = True
    decision.shareout_completed_at = now
    decision.completed_by = actor_id
    push_notification(decision.member_id, f"💰 Your share-out of {decision.payout_amount} has been paid",
                      "shareout_completed", {"decision_id": decision.id})
    log_audit_action(decision.organization_id, actor_id, "shareout.complete", "shareout_decisions",
                     decision.id, new={"payout": decision.payout_amount})


def complete(organization_id, decision_id, actor_id=None):
    decision = get_decision(organization_id, decision_id)
    with atomic():
        _settle(decision, actor_id, datetime.utcnow())
    return decision


def bulk_complete(organization_id, decision_ids, actor_id=None):
    """Settle every listed decision or none of them."""
    if not decision_ids:
        raise ValidationError("No decisions selected", code="empty_selection")
    decisions = [get_decision(organization_id, did) for did in dict.fromkeys(decision_ids)]
    now = datetime.utcnow()
    with atomic():
        for decision in decisions:
            _settle(decision, actor_id, now)
    logger.info("bulk share-out settled %d decisions", len(decisions))
    return decisions


def list_decisions(organization_id, period_id, pending_only=False):
    period = get_period(organization_id, period_id)
    query = ShareoutDecision.query.filter_by(period_id=period.id)
    if pending_only:
        query = query.filter_by(wants_shareout=True, shareout_completed=False)
    return query.order_by(ShareoutDecision.id.asc()).all()
