# loans/lifecycle.py
"""
Loan state machine.

    pending -> approved -> disbursed -> repaid | defaulted
    pending -> rejected

Every transition commits in one transaction together with its audit row and
the notifications it queues.
"""
import logging
from datetime import date
from decimal import Decimal

from sqlalchemy import func

from extensions import db
from interest.distribution import distribute_loan_interest
from loans import rules
from loans.models import Loan, LoanRepayment
from members.committee import active_committee
from members.models import Member
from notifications.utils import push_notification, push_to_many
from periods.ledger import current_active
from utils.audit_logger import log_audit_action
from utils.dates import repayment_due_date, whole_months_between
from utils.errors import ConflictError, NotFoundError, StateError, ValidationError
from utils.money import ZERO, percent_of, round_money, to_money
from utils.transactions import atomic

logger = logging.getLogger(__name__)


def _today():
    return date.today()


def next_loan_number(organization_id, year):
    prefix = f"L{year}"
    last = Loan.query.filter(
        Loan.organization_id == organization_id,
        Loan.loan_number.like(f"{prefix}%"),
    ).order_by(func.length(Loan.loan_number).desc(), Loan.loan_number.desc()).first()
    seq = int(last.loan_number[len(prefix):]) + 1 if last else 1
    return f"{prefix}{seq:04d}"


def get_loan(organization_id, loan_id):
    loan = db.session.get(Loan, loan_id)
    if not loan or loan.organization_id != organization_id:
        raise NotFoundError("Loan not found", loan_id=loan_id)
    return loan


def list_loans(organization_id, member_id=None, status=None):
    query = Loan.query.filter_by(organization_id=organization_id)
    if member_id is not None:
        query = query.filter_by(member_id=member_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(Loan.applied_date.desc(), Loan.id.desc()).all()


def _require_status(loan, *allowed):
    if loan.status not in allowed:
        raise StateError(
            f"Loan {loan.loan_number} is {loan.status}; expected {' or '.join(allowed)}",
            code="invalid_loan_state", status=loan.status,
        )


def apply(organization_id, member_id, loan_type, amount, purpose=None, repayment_months=1, applied_on=None):
    applied_on = applied_on or _today()

    member = db.session.get(Member, member_id)
    if not member or member.organization_id != organization_id:
        raise ValidationError("Member not found in this organization", code="unknown_member", member_id=member_id)
    if not member.is_active:
        raise ValidationError("Member is not active", code="inactive_member")
    if not member.has_category:
        raise ValidationError("Member has no category assigned", code="no_category")

    rule = rules.limits_for(member.category, loan_type)
    if rule is None:
        raise ValidationError(f"Loan type '{loan_type}' is not available to category {member.category}",
                              code="unknown_loan_type")

    principal = to_money(amount, "amount")
    if principal < rule.min_amount or principal > rule.max_amount:
        raise ValidationError(
            f"Amount must be between {rule.min_amount} and {rule.max_amount}",
            code="amount_out_of_range", min=str(rule.min_amount), max=str(rule.max_amount),
        )

    try:
        months = int(repayment_months)
    except (TypeError, ValueError):
        raise ValidationError("repayment_months must be a whole number", code="invalid_repayment_months")
    cap = rules.max_repayment_months(loan_type, member.category, applied_on)
    if cap < 1:
        raise ValidationError("Savings loans cannot be taken after the 22nd of December",
                              code="borrowing_closed")
    if not 1 <= months <= cap:
        raise ValidationError(f"Repayment period must be between 1 and {cap} months",
                              code="invalid_repayment_months", max=cap)

    if applied_on.month < rule.start_month:
        raise ValidationError(f"{rules.LOAN_TYPES[loan_type]} opens in month {rule.start_month}",
                              code="too_early_in_year", start_month=rule.start_month)

    blocking = rules.active_conflict(member.id, loan_type)
    if blocking:
        raise ConflictError(
            f"Member already has an active {blocking.loan_type} ({blocking.loan_number})",
            code="conflicting_loan", loan_id=blocking.id,
        )

    period = current_active(organization_id)
    if period is None:
        raise StateError("No active period", code="no_active_period")

    total = principal + percent_of(principal, rule.interest_rate)

    with atomic("Loan number already taken, retry"):
        loan = Loan(
            organization_id=organization_id,
            member_id=member.id,
            period_id=period.id,
            loan_number=next_loan_number(organization_id, applied_on.year),
            loan_type=loan_type,
            principal=principal,
            interest_rate=rule.interest_rate,
            total_amount=total,
            amount_paid=ZERO,
            outstanding_balance=total,
            status="pending",
            purpose=purpose,
            applied_date=applied_on,
            expected_repayment_date=repayment_due_date(applied_on, months),
            repayment_period_months=months,
        )
        db.session.add(loan)
        db.session.flush()

        chairs = [r.member_id for r in active_committee(organization_id) if r.role == "chair"]
        push_to_many(chairs, f"📝 {member.name} applied for {loan.loan_number} ({principal})",
                     "loan_application", {"loan_id": loan.id})
        log_audit_action(organization_id, member.id, "loan.apply", "loans", loan.id, new=loan.to_dict())

    logger.info("loan %s applied: member=%s type=%s principal=%s due=%s",
                loan.loan_number, member.id, loan_type, principal, loan.expected_repayment_date)
    return loan


def approve(organization_id, loan_id, approver_id, notes=None, on_date=None):
    loan = get_loan(organization_id, loan_id)
    _require_status(loan, "pending")
    with atomic():
        loan.status = "approved"
        loan.approved_date = on_date or _today()
        loan.approved_by = approver_id
        if notes:
            loan.admin_notes = notes
        push_notification(loan.member_id, f"✅ Your loan {loan.loan_number} was approved", "loan_approved",
                          {"loan_id": loan.id})
        log_audit_action(organization_id, approver_id, "loan.approve", "loans", loan.id,
                         old={"status": "pending"}, new={"status": "approved"})
    return loan


def reject(organization_id, loan_id, actor_id, reason):
    if not reason or not str(reason).strip():
        raise ValidationError("A rejection reason is required", code="missing_reason")
    loan = get_loan(organization_id, loan_id)
    _require_status(loan, "pending")
    with atomic():
        loan.status = "rejected"
        loan.admin_notes = reason
        push_notification(loan.member_id, f"❌ Your loan {loan.loan_number} was rejected: {reason}",
                          "loan_rejected", {"loan_id": loan.id})
        log_audit_action(organization_id, actor_id, "loan.reject", "loans", loan.id,
                         old={"status": "pending"}, new={"status": "rejected", "reason": reason})
    return loan


def disburse(organization_id, loan_id, actor_id, on_date=None):
    loan = get_loan(organization_id, loan_id)
    _require_status(loan, "approved")
    with atomic():
        loan.status = "disbursed"
        loan.disbursed_date = on_date or _today()
        push_notification(loan.member_id, f"💸 Loan {loan.loan_number} has been disbursed", "loan_disbursed",
                          {"loan_id": loan.id})
        log_audit_action(organization_id, actor_id, "loan.disburse", "loans", loan.id,
                         old={"status": "approved"}, new={"status": "disbursed"})
    return loan


def record_repayment(organization_id, loan_id, amount, actor_id, method=None, notes=None, paid_on=None):
    """Apply a payment; interest is settled first. Completes the loan at zero balance."""
    paid_on = paid_on or _today()
    loan = get_loan(organization_id, loan_id)
    _require_status(loan, "disbursed")

    amount = to_money(amount, "amount")
    if amount <= 0:
        raise ValidationError("Repayment must be positive", code="non_positive_amount")
    if amount > loan.outstanding_balance:
        raise ValidationError(
            f"Repayment exceeds the outstanding balance of {loan.outstanding_balance}",
            code="overpayment", outstanding=str(loan.outstanding_balance),
        )

    interest_paid = sum((r.interest_portion for r in loan.repayments), ZERO)
    interest_left = max(ZERO, loan.interest_amount - interest_paid)
    interest_portion = min(amount, interest_left)

    with atomic():
        repayment = LoanRepayment(
            loan_id=loan.id,
            amount=amount,
            principal_portion=amount - interest_portion,
            interest_portion=interest_portion,
            payment_date=paid_on,
            payment_method=method,
            notes=notes,
            recorded_by=actor_id,
        )
        db.session.add(repayment)

        loan.amount_paid = round_money(loan.amount_paid + amount)
        loan.outstanding_balance = round_money(loan.total_amount - loan.amount_paid)

        if loan.outstanding_balance == ZERO:
            loan.status = "repaid"
            loan.actual_repayment_date = paid_on
            db.session.flush()
            distribute_loan_interest(loan, paid_on)
            push_notification(loan.member_id, f"🎉 Loan {loan.loan_number} is fully repaid", "loan_repaid",
                              {"loan_id": loan.id})
        log_audit_action(organization_id, actor_id, "loan.repayment", "loans", loan.id,
                         new={"amount": amount, "outstanding_balance": loan.outstanding_balance,
                              "status": loan.status})

    logger.info("loan %s repayment %s, outstanding %s", loan.loan_number, amount, loan.outstanding_balance)
    return repayment


def overdue_loans(organization_id, as_of=None):
    as_of = as_of or _today()
    return Loan.query.filter(
        Loan.organization_id == organization_id,
        Loan.status == "disbursed",
        Loan.expected_repayment_date < as_of,
        Loan.outstanding_balance > 0,
    ).order_by(Loan.expected_repayment_date.asc()).all()


def mark_defaulted(organization_id, loan_id, actor_id, reason=None):
    loan = get_loan(organization_id, loan_id)
    _require_status(loan, "disbursed")
    if loan.outstanding_balance <= 0:
        raise StateError("Loan has no outstanding balance", code="nothing_outstanding")
    with atomic():
        loan.status = "defaulted"
        if reason:
            loan.admin_notes = reason
        push_notification(loan.member_id, f"⚠️ Loan {loan.loan_number} was marked as defaulted", "loan_defaulted",
                          {"loan_id": loan.id})
        log_audit_action(organization_id, actor_id, "loan.default", "loans", loan.id,
                         old={"status": "disbursed"}, new={"status": "defaulted", "reason": reason})
    logger.warning("loan %s defaulted with %s outstanding", loan.loan_number, loan.outstanding_balance)
    return loan


def suggested_installment(loan, as_of=None):
    as_of = as_of or _today()
    balance = loan.outstanding_balance
    if balance <= 0:
        return ZERO
    if loan.repayment_period_months == 1 or as_of >= loan.expected_repayment_date:
        return balance
    months_left = max(1, whole_months_between(as_of, loan.expected_repayment_date))
    return min(balance, round_money(balance / Decimal(months_left)))
