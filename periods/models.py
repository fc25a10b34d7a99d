# periods/models.py
from datetime import datetime
from extensions import db


class OperatingPeriod(db.Model):
    """A SACCO quarter: one of the three four-month thirds of a year."""
    __tablename__ = "operating_periods"

    id = db.Column(db.Integer, primary_key=True)
    organization_id = db.Column(db.Integer, nullable=False, index=True)
    year = db.Column(db.Integer, nullable=False, index=True)
    quarter_number = db.Column(db.Integer, nullable=False)  # 1..3
    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)
    is_active = db.Column(db.Boolean, nullable=False, default=False, index=True)
    is_completed = db.Column(db.Boolean, nullable=False, default=False)

    # members may record share-out decisions once this is flipped
    shareout_activated = db.Column(db.Boolean, nullable=False, default=False)
    shareout_date = db.Column(db.Date, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    __table_args__ = (
        db.UniqueConstraint("organization_id", "year", "quarter_number", name="uq_org_year_quarter"),
    )

    @property
    def name(self):
        return f"Q{self.quarter_number} {self.year}"

    def contains(self, on_date):
        return self.start_date <= on_date <= self.end_date

    def months(self):
        return list(range(self.start_date.month, self.end_date.month + 1))

    def to_dict(self):
        return {
            "id": self.id,
            "name": self.name,
            "year": self.year,
            "quarter_number": self.quarter_number,
            "start_date": self.start_date.isoformat(),
            "end_date": self.end_date.isoformat(),
            "is_active": self.is_active,
            "is_completed": self.is_completed,
            "shareout_activated": self.shareout_activated,
            "shareout_date": self.shareout_date.isoformat() if self.shareout_date else None,
        }

    def __repr__(self):
        return f"<OperatingPeriod {self.name} active={self.is_active}>"
