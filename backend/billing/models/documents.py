from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z, utcnow


class Counter(db.Model):
    """
    Named monotonic sequences ("productId", "billNumber").

    WHY: Prevent race conditions when minting ids and bill numbers. A counter
    is only ever incremented in place (UPDATE ... SET seq = seq + 1), never
    read-then-written, and never decremented.
    """
    __tablename__ = "counters"
    __table_args__ = (
        db.CheckConstraint("seq >= 0", name="ck_counters_seq_non_negative"),
    )

    name = db.Column(db.String(64), primary_key=True)
    seq = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "sequence": self.seq,
            "updatedAt": to_utc_z(self.updated_at),
        }
