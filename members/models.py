# members/models.py
from datetime import datetime
from extensions import db

CATEGORIES = ("A", "B", "C")
COMMITTEE_ROLES = ("chair", "secretary", "treasurer", "disburser")
MAX_ACTIVE_COMMITTEE_ROLES = 4


class Member(db.Model):
    """Local projection of an organization member (identity lives elsewhere)."""
    __tablename__ = "members"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    name = db.Column(db.String(120), nullable=False)
    email = db.Column(db.String(120), nullable=True)
    category = db.Column(db.String(1), nullable=True)  # A | B | C, assigned by an admin
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    joined_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint("organization_id", "email", name="uq_org_member_email"),)

    @property
    def has_category(self):
        return self.category in CATEGORIES

    def to_dict(self):
        return {
            "id": self.id,
            "organization_id": self.organization_id,
            "name": self.name,
            "email": self.email,
            "category": self.category,
            "is_active": self.is_active,
            "joined_at": self.joined_at.strftime("%Y-%m-%d %H:%M:%S") if self.joined_at else None,
        }

    def __repr__(self):
        return f"<Member {self.id} {self.name} cat={self.category}>"


class CommitteeRole(db.Model):
    __tablename__ = "committee_roles"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    role = db.Column(db.String(20), nullable=False)  # chair | secretary | treasurer | disburser
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    assigned_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=True)

    member = db.relationship("Member")

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "role": self.role,
            "is_active": self.is_active,
            "assigned_date": self.assigned_date.isoformat() if self.assigned_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
        }
