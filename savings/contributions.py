# savings/contributions.py
"""
Savings targets and the monthly contribution batch.

A member commits to a monthly amount once per period. Each month an operator
initiates the batch, which writes one entry per member at their target; the
(member, period, month) unique key makes a repeated batch a conflict rather
than a duplicate.
"""
import logging

from sqlalchemy import func

from extensions import db
from loans.rules import monthly_savings_for
from members.committee import active_members
from members.models import Member
from periods.ledger import get_period
from savings.models import SavingsEntry, SavingsTarget
from utils.audit_logger import log_audit_action
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.money import ZERO, round_money, to_money
from utils.transactions import atomic

logger = logging.getLogger(__name__)


def set_target(organization_id, member_id, period_id, monthly_target=None, actor_id=None):
    member = db.session.get(Member, member_id)
    if not member or member.organization_id != organization_id:
        raise NotFoundError("Member not found", member_id=member_id)
    period = get_period(organization_id, period_id)

    if monthly_target is None:
        monthly_target = monthly_savings_for(member.category)
        if monthly_target is None:
            raise ValidationError("Member has no category; a monthly target is required", code="no_category")
    amount = to_money(monthly_target, "monthly_target")
    if amount <= 0:
        raise ValidationError("Monthly target must be positive", code="non_positive_amount")

    if SavingsTarget.query.filter_by(member_id=member.id, period_id=period.id).first():
        raise ConflictError(f"Target for {period.name} is already set and cannot be changed",
                            code="target_exists")

    with atomic("Target already set for this period"):
        target = SavingsTarget(
            organization_id=organization_id,
            member_id=member.id,
            period_id=period.id,
            monthly_target=amount,
        )
        db.session.add(target)
        db.session.flush()
        log_audit_action(organization_id, actor_id or member.id, "savings.set_target", "savings_targets",
                         target.id, new=target.to_dict())
    return target


def _check_month(period, month):
    try:
        month = int(month)
    except (TypeError, ValueError):
        raise ValidationError("month must be a calendar month number", code="invalid_month")
    if month not in period.months():
        raise ValidationError(f"Month {month} is outside {period.name}", code="month_outside_period",
                              months=period.months())
    return month


def preview_initiation(organization_id, period_id, month):
    """What ``initiate`` would write, without writing anything."""
    period = get_period(organization_id, period_id)
    month = _check_month(period, month)

    targets = {t.member_id: t for t in SavingsTarget.query.filter_by(period_id=period.id).all()}
    existing = {e.member_id for e in SavingsEntry.query.filter_by(period_id=period.id, month=month).all()}

    rows, missing = [], []
    total = ZERO
    for member in active_members(organization_id):
        target = targets.get(member.id)
        if target is None:
            missing.append({"member_id": member.id, "name": member.name})
            continue
        if member.id in existing:
            continue
        rows.append({"member_id": member.id, "name": member.name, "amount": target.monthly_target})
        total += target.monthly_target

    return {
        "period_id": period.id,
        "month": month,
        "entries": rows,
        "total": round_money(total),
        "already_initiated": len(existing),
        "missing_targets": missing,
    }


def initiate(organization_id, period_id, month, actor_id=None):
    period = get_period(organization_id, period_id)
    month = _check_month(period, month)

    members = active_members(organization_id)
    if not members:
        raise ValidationError(f"{period.name} has no active members to initiate savings for",
                              code="no_active_members")
    targets = {t.member_id: t for t in SavingsTarget.query.filter_by(period_id=period.id).all()}
    missing = [m.id for m in members if m.id not in targets]
    if missing:
        raise ConflictError(f"{len(missing)} member(s) have no savings target for {period.name}",
                            code="missing_targets", member_ids=missing)

    if SavingsEntry.query.filter_by(period_id=period.id, month=month).first():
        raise ConflictError(f"Savings for month {month} of {period.name} were already initiated",
                            code="already_initiated")

    with atomic(f"Savings for month {month} of {period.name} were already initiated"):
        entries = []
        for member in members:
            entry = SavingsEntry(
                organization_id=organization_id,
                member_id=member.id,
                period_id=period.id,
                amount=targets[member.id].monthly_target,
                month=month,
                recorded_by=actor_id,
            )
            db.session.add(entry)
            entries.append(entry)
        db.session.flush()
        log_audit_action(organization_id, actor_id, "savings.initiate", "savings_entries", None,
                         new={"period_id": period.id, "month": month, "count": len(entries)})

    logger.info("initiated %d savings entries for %s month %s", len(entries), period.name, month)
    return entries


def member_balance(organization_id, member_id, period_id=None):
    """Sum of the member's entries not yet shared out."""
    query = db.session.query(func.coalesce(func.sum(SavingsEntry.amount), 0)).filter(
        SavingsEntry.organization_id == organization_id,
        SavingsEntry.member_id == member_id,
        SavingsEntry.shared_out.is_(False),
    )
    if period_id is not None:
        query = query.filter(SavingsEntry.period_id == period_id)
    return round_money(query.scalar())


def period_summary(organization_id, period_id):
    period = get_period(organization_id, period_id)
    entries = SavingsEntry.query.filter_by(period_id=period.id).all()

    by_month = {m: ZERO for m in period.months()}
    outstanding = ZERO
    for e in entries:
        by_month[e.month] = by_month.get(e.month, ZERO) + e.amount
        if not e.shared_out:
            outstanding += e.amount

    return {
        "period": period.to_dict(),
        "targets": SavingsTarget.query.filter_by(period_id=period.id).count(),
        "entries": len(entries),
        "total_saved": round_money(sum(by_month.values(), ZERO)),
        "not_shared_out": round_money(outstanding),
        "by_month": {str(m): str(round_money(v)) for m, v in by_month.items()},
    }
