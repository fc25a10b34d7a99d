from flask import Blueprint, current_app, jsonify, request

from interest import distribution, year_end
from interest.models import DISTRIBUTION_TYPES
from utils.auth import actor_required, operator_required
from utils.money import fmt

interest_bp = Blueprint("interest", __name__, url_prefix="/api/interest")


# -------- A member's interest earnings for a year --------
@interest_bp.route("/earnings/<int:year>", methods=["GET"])
@actor_required
def my_earnings(year, actor):
    member_id = request.args.get("member_id", type=int) if actor.is_operator else None
    report = distribution.earnings_for_member(actor.organization_id, member_id or actor.member_id, year)
    return jsonify({
        "member_id": report["member_id"],
        "year": year,
        "total": fmt(report["total"]),
        "by_type": {k: fmt(v) for k, v in report["by_type"].items()},
        "distributions": [d.to_dict() for d in report["distributions"]],
    }), 200


@interest_bp.route("/summary/<int:year>", methods=["GET"])
@operator_required
def year_summary(year, actor):
    totals = {dtype: fmt(distribution.total_by_type(actor.organization_id, year, dtype))
              for dtype in DISTRIBUTION_TYPES}
    return jsonify({
        "year": year,
        "pool": fmt(distribution.pool_balance(actor.organization_id, year)),
        "totals": totals,
    }), 200


# -------- Year-end shareout --------
@interest_bp.route("/year-end/<int:year>", methods=["POST"])
@operator_required
def run_year_end(year, actor):
    shareout = year_end.calculate_and_distribute(actor.organization_id, year, actor.member_id)
    current_app.logger.info("year-end %s distributed by %s", year, actor.member_id)
    return jsonify(shareout.to_dict(with_shares=True)), 201


@interest_bp.route("/year-end/<int:year>", methods=["GET"])
@actor_required
def get_year_end(year, actor):
    shareout = year_end.get_shareout(actor.organization_id, year)
    return jsonify(shareout.to_dict(with_shares=actor.is_operator)), 200


@interest_bp.route("/year-end/shares/<int:share_id>/disburse", methods=["POST"])
@operator_required
def disburse_share(share_id, actor):
    share = year_end.mark_share_disbursed(actor.organization_id, share_id, actor.member_id)
    return jsonify(share.to_dict()), 200
