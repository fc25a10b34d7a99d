# utils/audit_logger.py
import json
import logging
from datetime import datetime

from audit.models import AuditLog
from extensions import db

logger = logging.getLogger(__name__)


def log_audit_action(organization_id, actor_id, action, table_name, record_id=None, old=None, new=None):
    """
    Stage an audit row in the current session.

    Nothing is committed here: the row lands (or is rolled back) together
    with the change it describes.
    """
    old_json = json.dumps(old, default=str) if old else None
    new_json = json.dumps(new, default=str) if new else None

    entry = AuditLog(
        organization_id=organization_id,
        actor_id=actor_id,
        action=action,
        table_name=table_name,
        record_id=record_id,
        old_value=old_json,
        new_value=new_json,
        timestamp=datetime.utcnow(),
    )
    db.session.add(entry)
    logger.info("audit org=%s actor=%s %s %s#%s", organization_id, actor_id, action, table_name, record_id)
    return entry
