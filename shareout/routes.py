from flask import Blueprint, current_app, jsonify, request

from shareout import settlement
from utils.auth import actor_required, operator_required
from utils.dates import parse_date

shareout_bp = Blueprint("shareout", __name__, url_prefix="/api/shareout")


@shareout_bp.route("/periods/<int:period_id>/activate", methods=["POST"])
@operator_required
def activate(period_id, actor):
    data = request.get_json(silent=True) or {}
    period = settlement.activate_shareout(
        actor.organization_id, period_id, actor.member_id,
        parse_date(data.get("shareout_date"), "shareout_date"),
    )
    return jsonify(period.to_dict()), 200


# -------- Member records their choice --------
@shareout_bp.route("/periods/<int:period_id>/decision", methods=["POST"])
@actor_required
def decide(period_id, actor):
    data = request.get_json() or {}
    decision = settlement.record_decision(
        actor.organization_id, actor.member_id, period_id, data.get("wants_shareout")
    )
    return jsonify(decision.to_dict()), 201


@shareout_bp.route("/periods/<int:period_id>/decisions", methods=["GET"])
@operator_required
def list_decisions(period_id, actor):
    pending = request.args.get("pending") in ("1", "true")
    decisions = settlement.list_decisions(actor.organization_id, period_id, pending_only=pending)
    return jsonify([d.to_dict() for d in decisions]), 200


@shareout_bp.route("/decisions/<int:decision_id>/complete", methods=["POST"])
@operator_required
def complete(decision_id, actor):
    decision = settlement.complete(actor.organization_id, decision_id, actor.member_id)
    return jsonify(decision.to_dict()), 200


# -------- Settle many at once (all or nothing) --------
@shareout_bp.route("/decisions/bulk-complete", methods=["POST"])
@operator_required
def bulk_complete(actor):
    data = request.get_json() or {}
    decisions = settlement.bulk_complete(actor.organization_id, data.get("decision_ids") or [], actor.member_id)
    current_app.logger.info("bulk share-out of %d decisions by %s", len(decisions), actor.member_id)
    return jsonify({"completed": [d.to_dict() for d in decisions]}), 200
