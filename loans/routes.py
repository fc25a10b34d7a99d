from datetime import date

from flask import Blueprint, current_app, jsonify, request

from extensions import db
from loans import lifecycle, rules
from members.models import Member
from utils.auth import actor_required, operator_required
from utils.dates import parse_date
from utils.money import fmt

loans_bp = Blueprint("loans", __name__, url_prefix="/api/loans")


def _owned_or_operator(loan, actor):
    return actor.is_operator or loan.member_id == actor.member_id


# -------- Loan types the caller can apply for today --------
@loans_bp.route("/options", methods=["GET"])
@actor_required
def loan_options(actor):
    member = db.session.get(Member, actor.member_id)
    as_of = parse_date(request.args.get("as_of"), "as_of") or date.today()
    return jsonify(rules.available_loan_types(member, as_of)), 200


# -------- Apply (self, or on behalf of a member for operators) --------
@loans_bp.route("", methods=["POST"])
@actor_required
def apply_for_loan(actor):
    data = request.get_json() or {}
    member_id = data.get("member_id") if actor.is_operator and data.get("member_id") else actor.member_id
    loan = lifecycle.apply(
        actor.organization_id,
        member_id,
        data.get("loan_type"),
        data.get("amount"),
        purpose=data.get("purpose"),
        repayment_months=data.get("repayment_months", 1),
        applied_on=parse_date(data.get("applied_on"), "applied_on"),
    )
    current_app.logger.info("loan %s applied by actor %s", loan.loan_number, actor.member_id)
    return jsonify(loan.to_dict()), 201


@loans_bp.route("", methods=["GET"])
@actor_required
def list_loans(actor):
    member_id = request.args.get("member_id", type=int) if actor.is_operator else actor.member_id
    loans = lifecycle.list_loans(actor.organization_id, member_id=member_id, status=request.args.get("status"))
    return jsonify([loan.to_dict() for loan in loans]), 200


@loans_bp.route("/overdue", methods=["GET"])
@operator_required
def overdue(actor):
    as_of = parse_date(request.args.get("as_of"), "as_of")
    loans = lifecycle.overdue_loans(actor.organization_id, as_of)
    return jsonify([loan.to_dict() for loan in loans]), 200


@loans_bp.route("/<int:loan_id>", methods=["GET"])
@actor_required
def get_loan(loan_id, actor):
    loan = lifecycle.get_loan(actor.organization_id, loan_id)
    if not _owned_or_operator(loan, actor):
        return jsonify({"error": "Forbidden"}), 403
    data = loan.to_dict()
    data["repayments"] = [r.to_dict() for r in loan.repayments]
    data["suggested_installment"] = fmt(lifecycle.suggested_installment(loan))
    return jsonify(data), 200


@loans_bp.route("/<int:loan_id>/approve", methods=["POST"])
@operator_required
def approve_loan(loan_id, actor):
    data = request.get_json(silent=True) or {}
    loan = lifecycle.approve(actor.organization_id, loan_id, actor.member_id, notes=data.get("notes"))
    current_app.logger.info("loan %s approved by %s", loan.loan_number, actor.member_id)
    return jsonify(loan.to_dict()), 200


@loans_bp.route("/<int:loan_id>/reject", methods=["POST"])
@operator_required
def reject_loan(loan_id, actor):
    data = request.get_json(silent=True) or {}
    loan = lifecycle.reject(actor.organization_id, loan_id, actor.member_id, data.get("reason"))
    return jsonify(loan.to_dict()), 200


@loans_bp.route("/<int:loan_id>/disburse", methods=["POST"])
@operator_required
def disburse_loan(loan_id, actor):
    loan = lifecycle.disburse(actor.organization_id, loan_id, actor.member_id)
    current_app.logger.info("loan %s disbursed by %s", loan.loan_number, actor.member_id)
    return jsonify(loan.to_dict()), 200


# -------- Record a repayment --------
@loans_bp.route("/<int:loan_id>/repayments", methods=["POST"])
@operator_required
def record_repayment(loan_id, actor):
    data = request.get_json() or {}
    repayment = lifecycle.record_repayment(
        actor.organization_id,
        loan_id,
        data.get("amount"),
        actor.member_id,
        method=data.get("payment_method"),
        notes=data.get("notes"),
        paid_on=parse_date(data.get("payment_date"), "payment_date"),
    )
    loan = lifecycle.get_loan(actor.organization_id, loan_id)
    return jsonify({"repayment": repayment.to_dict(), "loan": loan.to_dict()}), 201


@loans_bp.route("/<int:loan_id>/default", methods=["POST"])
@operator_required
def default_loan(loan_id, actor):
    data = request.get_json(silent=True) or {}
    loan = lifecycle.mark_defaulted(actor.organization_id, loan_id, actor.member_id, data.get("reason"))
    return jsonify(loan.to_dict()), 200
