# loans/models.py
from datetime import datetime
from sqlalchemy import Numeric
from extensions import db
from utils.money import fmt

LOAN_STATUSES = {
    "pending": "Pending Approval",
    "approved": "Approved",
    "disbursed": "Disbursed",
    "repaid": "Fully Repaid",
    "defaulted": "Defaulted",
    "rejected": "Rejected",
}
TERMINAL_STATUSES = ("repaid", "defaulted", "rejected")
ACTIVE_STATUSES = ("approved", "disbursed")


class Loan(db.Model):
    __tablename__ = "loans"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    period_id = db.Column(db.Integer, db.ForeignKey("operating_periods.id"), nullable=False, index=True)
    loan_number = db.Column(db.String(20), nullable=False)
    loan_type = db.Column(db.String(40), nullable=False)

    principal = db.Column(Numeric(18, 2), nullable=False)
    interest_rate = db.Column(Numeric(5, 2), nullable=False, default=0)  # flat % over the loan's life
    total_amount = db.Column(Numeric(18, 2), nullable=False)
    amount_paid = db.Column(Numeric(18, 2), nullable=False, default=0)
    outstanding_balance = db.Column(Numeric(18, 2), nullable=False)

    status = db.Column(db.String(20), nullable=False, default="pending", index=True)
    purpose = db.Column(db.String(500), nullable=True)
    admin_notes = db.Column(db.String(500), nullable=True)

    applied_date = db.Column(db.Date, nullable=False)
    approved_date = db.Column(db.Date, nullable=True)
    approved_by = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=True)
    disbursed_date = db.Column(db.Date, nullable=True)
    expected_repayment_date = db.Column(db.Date, nullable=False, index=True)
    actual_repayment_date = db.Column(db.Date, nullable=True)
    repayment_period_months = db.Column(db.Integer, nullable=False)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    repayments = db.relationship("LoanRepayment", backref="loan", order_by="LoanRepayment.id")

    __table_args__ = (db.UniqueConstraint("organization_id", "loan_number", name="uq_org_loan_number"),)

    @property
    def interest_amount(self):
        return self.total_amount - self.principal

    @property
    def status_display(self):
        return LOAN_STATUSES.get(self.status, self.status)

    def to_dict(self):
        return {
            "id": self.id,
            "loan_number": self.loan_number,
            "member_id": self.member_id,
            "period_id": self.period_id,
            "loan_type": self.loan_type,
            "principal": fmt(self.principal),
            "interest_rate": fmt(self.interest_rate),
            "interest_amount": fmt(self.interest_amount),
            "total_amount": fmt(self.total_amount),
            "amount_paid": fmt(self.amount_paid),
            "outstanding_balance": fmt(self.outstanding_balance),
            "status": self.status,
            "status_display": self.status_display,
            "purpose": self.purpose,
            "admin_notes": self.admin_notes,
            "applied_date": self.applied_date.isoformat() if self.applied_date else None,
            "approved_date": self.approved_date.isoformat() if self.approved_date else None,
            "approved_by": self.approved_by,
            "disbursed_date": self.disbursed_date.isoformat() if self.disbursed_date else None,
            "expected_repayment_date": self.expected_repayment_date.isoformat(),
            "actual_repayment_date": self.actual_repayment_date.isoformat() if self.actual_repayment_date else None,
            "repayment_period_months": self.repayment_period_months,
        }

    def __repr__(self):
        return f"<Loan {self.loan_number} {self.loan_type} {self.status}>"


class LoanRepayment(db.Model):
    """Immutable once written."""
    __tablename__ = "loan_repayments"

    id = db.Column(db.Integer, primary_key=True)
    loan_id = db.Column(db.Integer, db.ForeignKey("loans.id"), nullable=False, index=True)
    amount = db.Column(Numeric(18, 2), nullable=False)
    principal_portion = db.Column(Numeric(18, 2), nullable=False, default=0)
    interest_portion = db.Column(Numeric(18, 2), nullable=False, default=0)
    payment_date = db.Column(db.Date, nullable=False)
    payment_method = db.Column(db.String(100), nullable=True)
    notes = db.Column(db.String(500), nullable=True)
    recorded_by = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=True)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "loan_id": self.loan_id,
            "amount": fmt(self.amount),
            "principal_portion": fmt(self.principal_portion),
            "interest_portion": fmt(self.interest_portion),
            "payment_date": self.payment_date.isoformat(),
            "payment_method": self.payment_method,
            "notes": self.notes,
            "recorded_by": self.recorded_by,
        }
