from flask import Blueprint, current_app, jsonify, request

from loans.rules import fund_breakdown
from savings import contributions
from utils.auth import actor_required, operator_required
from utils.money import fmt, to_money

savings_bp = Blueprint("savings", __name__, url_prefix="/api/savings")


# -------- Set my monthly target for a period --------
@savings_bp.route("/targets", methods=["POST"])
@actor_required
def set_target(actor):
    data = request.get_json() or {}
    member_id = data.get("member_id") if actor.is_operator and data.get("member_id") else actor.member_id
    target = contributions.set_target(
        actor.organization_id, member_id, data.get("period_id"),
        data.get("monthly_target"), actor.member_id,
    )
    return jsonify(target.to_dict()), 201


@savings_bp.route("/periods/<int:period_id>/months/<int:month>/preview", methods=["GET"])
@operator_required
def preview(period_id, month, actor):
    result = contributions.preview_initiation(actor.organization_id, period_id, month)
    result["total"] = fmt(result["total"])
    for row in result["entries"]:
        row["amount"] = fmt(row["amount"])
    return jsonify(result), 200


# -------- Initiate the monthly batch --------
@savings_bp.route("/periods/<int:period_id>/months/<int:month>/initiate", methods=["POST"])
@operator_required
def initiate(period_id, month, actor):
    entries = contributions.initiate(actor.organization_id, period_id, month, actor.member_id)
    current_app.logger.info("savings batch month %s period %s: %d entries", month, period_id, len(entries))
    return jsonify({"created": len(entries), "entries": [e.to_dict() for e in entries]}), 201


@savings_bp.route("/balance", methods=["GET"])
@actor_required
def balance(actor):
    member_id = request.args.get("member_id", type=int) if actor.is_operator else None
    member_id = member_id or actor.member_id
    period_id = request.args.get("period_id", type=int)
    amount = contributions.member_balance(actor.organization_id, member_id, period_id)
    return jsonify({"member_id": member_id, "period_id": period_id, "balance": fmt(amount)}), 200


@savings_bp.route("/periods/<int:period_id>/summary", methods=["GET"])
@operator_required
def summary(period_id, actor):
    result = contributions.period_summary(actor.organization_id, period_id)
    result["total_saved"] = fmt(result["total_saved"])
    result["not_shared_out"] = fmt(result["not_shared_out"])
    return jsonify(result), 200


# -------- How a contribution is split between funds --------
@savings_bp.route("/breakdown", methods=["GET"])
@actor_required
def breakdown(actor):
    amount = to_money(request.args.get("amount"), "amount")
    return jsonify({name: fmt(value) for name, value in fund_breakdown(amount).items()}), 200
