from flask import Blueprint, jsonify, request
from audit.models import AuditLog
from utils.auth import operator_required

audit_bp = Blueprint('audit', __name__, url_prefix='/api/audit')

@audit_bp.route('/logs', methods=['GET'])
@operator_required
def get_all_logs(actor):
    query = AuditLog.query.filter_by(organization_id=actor.organization_id)
    table = request.args.get("table")
    if table:
        query = query.filter_by(table_name=table)
    record_id = request.args.get("record_id", type=int)
    if record_id is not None:
        query = query.filter_by(record_id=record_id)
    logs = query.order_by(AuditLog.timestamp.desc(), AuditLog.id.desc()).limit(500).all()
    return jsonify([log.to_dict() for log in logs]), 200
