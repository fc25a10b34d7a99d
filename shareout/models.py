# shareout/models.py
from datetime import datetime
from sqlalchemy import Numeric
from extensions import db
from utils.money import fmt


class ShareoutDecision(db.Model):
    __tablename__ = "shareout_decisions"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    period_id = db.Column(db.Integer, db.ForeignKey("operating_periods.id"), nullable=False, index=True)
    wants_shareout = db.Column(db.Boolean, nullable=False, default=False)
    savings_balance = db.Column(Numeric(18, 2), nullable=False, default=0)
    interest_amount = db.Column(Numeric(18, 2), nullable=False, default=0)
    shareout_completed = db.Column(db.Boolean, nullable=False, default=False)
    decision_made_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    shareout_completed_at = db.Column(db.DateTime, nullable=True)
    completed_by = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=True)

    __table_args__ = (db.UniqueConstraint("member_id", "period_id", name="uq_member_period_decision"),)

    @property
    def payout_amount(self):
        return self.savings_balance + self.interest_amount

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "period_id": self.period_id,
            "wants_shareout": self.wants_shareout,
            "savings_balance": fmt(self.savings_balance),
            "interest_amount": fmt(self.interest_amount),
            "payout_amount": fmt(self.payout_amount),
            "shareout_completed": self.shareout_completed,
            "decision_made_at": self.decision_made_at.strftime("%Y-%m-%d %H:%M:%S") if self.decision_made_at else None,
            "shareout_completed_at": (
                self.shareout_completed_at.strftime("%Y-%m-%d %H:%M:%S") if self.shareout_completed_at else None
            ),
            "completed_by": self.completed_by,
        }
