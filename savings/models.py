# savings/models.py
from datetime import datetime
from sqlalchemy import Numeric
from extensions import db
from utils.money import fmt


class SavingsTarget(db.Model):
    """A member's monthly savings commitment; set once per period."""
    __tablename__ = "savings_targets"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    period_id = db.Column(db.Integer, db.ForeignKey("operating_periods.id"), nullable=False, index=True)
    monthly_target = db.Column(Numeric(18, 2), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint("member_id", "period_id", name="uq_member_period_target"),)

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "period_id": self.period_id,
            "monthly_target": fmt(self.monthly_target),
        }


class SavingsEntry(db.Model):
    __tablename__ = "savings_entries"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    period_id = db.Column(db.Integer, db.ForeignKey("operating_periods.id"), nullable=False, index=True)
    amount = db.Column(Numeric(18, 2), nullable=False)
    month = db.Column(db.Integer, nullable=False)  # calendar month, inside the period
    shared_out = db.Column(db.Boolean, nullable=False, default=False, index=True)
    shared_out_date = db.Column(db.DateTime, nullable=True)
    recorded_by = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # idempotency key for batch initiation
    __table_args__ = (db.UniqueConstraint("member_id", "period_id", "month", name="uq_member_period_month"),)

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "period_id": self.period_id,
            "amount": fmt(self.amount),
            "month": self.month,
            "shared_out": self.shared_out,
            "shared_out_date": self.shared_out_date.strftime("%Y-%m-%d %H:%M:%S") if self.shared_out_date else None,
        }
