from flask import Blueprint, jsonify, request

from members import committee
from utils.auth import actor_required, operator_required

members_bp = Blueprint("members", __name__, url_prefix="/api/members")


@members_bp.route("", methods=["GET"])
@operator_required
def list_members(actor):
    return jsonify([m.to_dict() for m in committee.active_members(actor.organization_id)]), 200


# -------- Committee roster --------
@members_bp.route("/committee", methods=["GET"])
@actor_required
def list_committee(actor):
    return jsonify([r.to_dict() for r in committee.active_committee(actor.organization_id)]), 200


@members_bp.route("/committee", methods=["POST"])
@operator_required
def assign(actor):
    data = request.get_json() or {}
    row = committee.assign_role(actor.organization_id, data.get("member_id"), data.get("role"), actor.member_id)
    return jsonify(row.to_dict()), 201


@members_bp.route("/committee/<int:role_id>/deactivate", methods=["POST"])
@operator_required
def deactivate(role_id, actor):
    row = committee.deactivate_role(actor.organization_id, role_id, actor.member_id)
    return jsonify(row.to_dict()), 200
