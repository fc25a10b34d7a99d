# interest/models.py
from datetime import datetime
from sqlalchemy import Numeric
from extensions import db
from utils.money import fmt

DISTRIBUTION_TYPES = {
    "bearer_return": "Loan Bearer Return (50%)",
    "committee_share": "Committee Member Share",
    "member_share": "Regular Member Share",
}
SHARE_TYPES = {
    "committee_member": "Committee Member Share",
    "regular_member": "Regular Member Share",
}


class InterestDistribution(db.Model):
    """Append-only record of interest paid out to a member."""
    __tablename__ = "interest_distributions"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False, index=True)
    loan_id = db.Column(db.Integer, db.ForeignKey("loans.id"), nullable=True, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    amount = db.Column(Numeric(18, 2), nullable=False)
    distribution_type = db.Column(db.String(30), nullable=False)
    description = db.Column(db.String(255), nullable=True)
    distributed_date = db.Column(db.Date, nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    # year-end rows carry loan_id NULL, which unique indexes treat as distinct
    __table_args__ = (db.UniqueConstraint("loan_id", "distribution_type", name="uq_loan_distribution_type"),)

    def to_dict(self):
        return {
            "id": self.id,
            "year": self.year,
            "loan_id": self.loan_id,
            "member_id": self.member_id,
            "amount": fmt(self.amount),
            "distribution_type": self.distribution_type,
            "distribution_type_display": DISTRIBUTION_TYPES.get(self.distribution_type, self.distribution_type),
            "description": self.description,
            "distributed_date": self.distributed_date.isoformat(),
        }


class YearInterestPool(db.Model):
    """Retained half of repaid-loan interest, awaiting year-end distribution."""
    __tablename__ = "year_interest_pools"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False)
    accrued_interest = db.Column(Numeric(18, 2), nullable=False, default=0)
    updated_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (db.UniqueConstraint("organization_id", "year", name="uq_org_year_pool"),)

    def to_dict(self):
        return {
            "year": self.year,
            "accrued_interest": fmt(self.accrued_interest),
            "updated_at": self.updated_at.strftime("%Y-%m-%d %H:%M:%S") if self.updated_at else None,
        }


class YearEndShareout(db.Model):
    __tablename__ = "year_end_shareouts"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False)
    total_interest = db.Column(Numeric(18, 2), nullable=False, default=0)
    available_for_distribution = db.Column(Numeric(18, 2), nullable=False, default=0)
    committee_total_share = db.Column(Numeric(18, 2), nullable=False, default=0)
    members_total_share = db.Column(Numeric(18, 2), nullable=False, default=0)
    undistributed_amount = db.Column(Numeric(18, 2), nullable=False, default=0)
    committee_count = db.Column(db.Integer, nullable=False, default=0)
    member_count = db.Column(db.Integer, nullable=False, default=0)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)
    shareout_date = db.Column(db.DateTime, nullable=True)
    completed_by = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=True)

    shares = db.relationship("IndividualYearShare", backref="shareout", order_by="IndividualYearShare.id")

    __table_args__ = (db.UniqueConstraint("organization_id", "year", name="uq_org_year_shareout"),)

    def to_dict(self, with_shares=False):
        data = {
            "id": self.id,
            "year": self.year,
            "total_interest": fmt(self.total_interest),
            "available_for_distribution": fmt(self.available_for_distribution),
            "committee_total_share": fmt(self.committee_total_share),
            "members_total_share": fmt(self.members_total_share),
            "undistributed_amount": fmt(self.undistributed_amount),
            "committee_count": self.committee_count,
            "member_count": self.member_count,
            "is_completed": self.is_completed,
            "shareout_date": self.shareout_date.strftime("%Y-%m-%d %H:%M:%S") if self.shareout_date else None,
        }
        if with_shares:
            data["shares"] = [s.to_dict() for s in self.shares]
        return data


class IndividualYearShare(db.Model):
    __tablename__ = "individual_year_shares"

    id = db.Column(db.Integer, primary_key=True)
    shareout_id = db.Column(db.Integer, db.ForeignKey("year_end_shareouts.id"), nullable=False, index=True)
    member_id = db.Column(db.Integer, db.ForeignKey("members.id"), nullable=False, index=True)
    amount = db.Column(Numeric(18, 2), nullable=False)
    share_type = db.Column(db.String(30), nullable=False)  # committee_member | regular_member
    is_disbursed = db.Column(db.Boolean, nullable=False, default=False)
    disbursed_date = db.Column(db.Date, nullable=True)

    __table_args__ = (
        db.UniqueConstraint("shareout_id", "member_id", "share_type", name="uq_shareout_member_type"),
    )

    def to_dict(self):
        return {
            "id": self.id,
            "member_id": self.member_id,
            "amount": fmt(self.amount),
            "share_type": self.share_type,
            "share_type_display": SHARE_TYPES.get(self.share_type, self.share_type),
            "is_disbursed": self.is_disbursed,
            "disbursed_date": self.disbursed_date.isoformat() if self.disbursed_date else None,
        }
