# notifications/utils.py
import json

from extensions import db
from notifications.models import Notification

# Callers own the transaction: these helpers only stage rows in the session.

def push_notification(member_id: int, message: str, ntype: str = "info", meta: dict | None = None):
    n = Notification(member_id=member_id, message=message, type=ntype,
                     meta=json.dumps(meta, default=str) if meta else None)
    db.session.add(n)
    return n

def push_to_many(member_ids: list[int], message: str, ntype: str = "info", meta: dict | None = None):
    if not member_ids:
        return []
    payload = json.dumps(meta, default=str) if meta else None
    notif_objs = [Notification(member_id=mid, message=message, type=ntype, meta=payload) for mid in member_ids]
    db.session.add_all(notif_objs)
    return notif_objs
