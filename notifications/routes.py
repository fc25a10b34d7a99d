# notifications/routes.py
from flask import Blueprint, jsonify, request
from extensions import db
from notifications.models import Notification
from utils.auth import actor_required

notifications_bp = Blueprint("notifications", __name__)

# -------- Get notifications for the logged-in member --------
@notifications_bp.route("", methods=["GET"])
@actor_required
def get_notifications(actor):
    query = Notification.query.filter_by(member_id=actor.member_id)
    if request.args.get("unread") in ("1", "true"):
        query = query.filter_by(is_read=False)
    notes = query.order_by(Notification.created_at.desc(), Notification.id.desc()).all()
    return jsonify([n.to_dict() for n in notes]), 200


# -------- Mark notification as read --------
@notifications_bp.route("/<int:note_id>/read", methods=["POST"])
@actor_required
def mark_as_read(note_id, actor):
    note = db.session.get(Notification, note_id)
    if not note:
        return jsonify({"error": "Notification not found"}), 404

    if note.member_id != actor.member_id:
        return jsonify({"error": "Forbidden"}), 403

    note.is_read = True
    db.session.commit()
    return jsonify({"message": "Notification marked as read", "id": note.id}), 200
