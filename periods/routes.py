from flask import Blueprint, current_app, jsonify, request

from periods import ledger
from utils.auth import actor_required, operator_required
from utils.dates import parse_date

periods_bp = Blueprint("periods", __name__, url_prefix="/api/periods")


# -------- List periods (optionally one year) --------
@periods_bp.route("", methods=["GET"])
@actor_required
def list_periods(actor):
    year = request.args.get("year", type=int)
    periods = ledger.list_periods(actor.organization_id, year)
    return jsonify([p.to_dict() for p in periods]), 200


# -------- Create a quarter --------
@periods_bp.route("", methods=["POST"])
@operator_required
def create_period(actor):
    data = request.get_json() or {}
    period = ledger.create_period(
        actor.organization_id, data.get("year"), data.get("quarter_number"), actor.member_id
    )
    current_app.logger.info("period %s created by %s", period.name, actor.member_id)
    return jsonify(period.to_dict()), 201


# -------- Seed every missing quarter of a year --------
@periods_bp.route("/ensure-year", methods=["POST"])
@operator_required
def ensure_year(actor):
    data = request.get_json() or {}
    created = ledger.ensure_year(actor.organization_id, data.get("year"), actor.member_id)
    return jsonify({"created": [p.to_dict() for p in created]}), 200


@periods_bp.route("/current", methods=["GET"])
@actor_required
def current_period(actor):
    period = ledger.current_active(actor.organization_id)
    if not period:
        return jsonify({"error": "No active period", "code": "no_active_period"}), 404
    return jsonify(period.to_dict()), 200


# -------- Which period holds a date --------
@periods_bp.route("/for-date", methods=["GET"])
@actor_required
def period_for_date(actor):
    on_date = parse_date(request.args.get("date"), "date")
    if on_date is None:
        return jsonify({"error": "date is required", "code": "missing_date"}), 400
    period = ledger.period_for_date(actor.organization_id, on_date)
    if not period:
        return jsonify({"error": "No period contains that date", "code": "no_period"}), 404
    return jsonify(period.to_dict()), 200


@periods_bp.route("/<int:period_id>/activate", methods=["POST"])
@operator_required
def activate_period(period_id, actor):
    period = ledger.activate(actor.organization_id, period_id, actor.member_id)
    current_app.logger.info("period %s activated by %s", period.name, actor.member_id)
    return jsonify(period.to_dict()), 200


@periods_bp.route("/<int:period_id>/complete", methods=["POST"])
@operator_required
def complete_period(period_id, actor):
    period = ledger.complete(actor.organization_id, period_id, actor.member_id)
    return jsonify(period.to_dict()), 200


@periods_bp.route("/<int:period_id>", methods=["DELETE"])
@operator_required
def delete_period(period_id, actor):
    ledger.delete_period(actor.organization_id, period_id, actor.member_id)
    return jsonify({"message": "Period deleted", "id": period_id}), 200
