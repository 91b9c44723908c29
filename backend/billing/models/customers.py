from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Contact(db.Model):
    """
    Customer contact keyed by mobile number.

    One row per number. Recorded opportunistically when a bill is issued and
    never overwritten by later bills for the same number.
    """
    __tablename__ = "contacts"
    __table_args__ = (
        db.UniqueConstraint("mobile_number", name="uq_contacts_mobile_number"),
        db.Index("ix_contacts_last_used", "last_used"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    mobile_number = db.Column(db.String(10), nullable=False)
    last_used = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "mobileNumber": self.mobile_number,
            "lastUsed": to_utc_z(self.last_used),
        }
