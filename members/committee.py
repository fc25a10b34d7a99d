# members/committee.py
import logging
from datetime import date

from extensions import db
from members.models import COMMITTEE_ROLES, MAX_ACTIVE_COMMITTEE_ROLES, CommitteeRole, Member
from utils.audit_logger import log_audit_action
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.transactions import atomic

logger = logging.getLogger(__name__)


def active_committee(organization_id):
    """Active role rows; a member holding two roles appears twice."""
    return CommitteeRole.query.filter_by(organization_id=organization_id, is_active=True) \
        .order_by(CommitteeRole.id.asc()).all()


def active_members(organization_id):
    return Member.query.filter_by(organization_id=organization_id, is_active=True) \
        .order_by(Member.id.asc()).all()


def assign_role(organization_id, member_id, role, actor_id=None, on_date=None):
    if role not in COMMITTEE_ROLES:
        raise ValidationError(f"Unknown committee role '{role}'", code="invalid_role",
                              allowed=list(COMMITTEE_ROLES))

    member = db.session.get(Member, member_id) if member_id is not None else None
    if not member or member.organization_id != organization_id:
        raise NotFoundError("Member not found", member_id=member_id)

    current = active_committee(organization_id)
    if any(r.role == role for r in current):
        raise ConflictError(f"The {role} role is already held", code="role_taken")
    if len(current) >= MAX_ACTIVE_COMMITTEE_ROLES:
        raise ConflictError(f"At most {MAX_ACTIVE_COMMITTEE_ROLES} committee roles may be active",
                            code="committee_full")

    with atomic():
        row = CommitteeRole(
            organization_id=organization_id,
            member_id=member.id,
            role=role,
            is_active=True,
            assigned_date=on_date or date.today(),
        )
        db.session.add(row)
        db.session.flush()
        log_audit_action(organization_id, actor_id, "committee.assign", "committee_roles", row.id,
                         new=row.to_dict())

    logger.info("member %s is now %s of org %s", member.id, role, organization_id)
    return row


def deactivate_role(organization_id, role_id, actor_id=None, on_date=None):
    row = db.session.get(CommitteeRole, role_id)
    if not row or row.organization_id != organization_id:
        raise NotFoundError("Committee role not found", role_id=role_id)
    if not row.is_active:
        return row
    with atomic():
        row.is_active = False
        row.end_date = on_date or date.today()
        log_audit_action(organization_id, actor_id, "committee.deactivate", "committee_roles", row.id,
                         old={"is_active": True}, new={"is_active": False})
    return row
