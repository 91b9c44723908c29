from __future__ import annotations

from sqlalchemy import event

from ..extensions import db
from ..money import cents_to_amount
from ..time_utils import to_utc_z, utcnow


class Bill(db.Model):
    """
    Committed bill (immutable historical record).

    WHY: A bill is what the customer was charged, so it stores snapshots of
    name and price per line instead of pointing at live product rows.
    Bills are never updated or deleted.
    """
    __tablename__ = "bills"
    __table_args__ = (
        db.CheckConstraint("grand_total_cents >= 0", name="ck_bills_grand_total_non_negative"),
        db.Index("ix_bills_mobile_number", "mobile_number"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    # Human-readable number (e.g., "BILL-2026-000042")
    bill_number = db.Column(db.String(32), nullable=False, unique=True)

    customer_name = db.Column(db.String(255), nullable=False)
    mobile_number = db.Column(db.String(10), nullable=False)

    # Totals can exceed the 32-bit range even when each price fits
    grand_total_cents = db.Column(db.BigInteger, nullable=False)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, index=True)

    items = db.relationship(
        "BillItem",
        back_populates="bill",
        order_by="BillItem.position",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def to_dict(self) -> dict:
        return {
            "billNumber": self.bill_number,
            "customerName": self.customer_name,
            "mobileNumber": self.mobile_number,
            "items": [item.to_dict() for item in self.items],
            "grandTotal": cents_to_amount(self.grand_total_cents),
            "grandTotalCents": self.grand_total_cents,
            "createdAt": to_utc_z(self.created_at),
        }


class BillItem(db.Model):
    """
    One line of a bill.

    product_id is a soft reference: no foreign key, because the product may be
    edited or deleted later and the bill must still display as issued.
    """
    __tablename__ = "bill_items"
    __table_args__ = (
        db.UniqueConstraint("bill_id", "position", name="uq_bill_items_bill_position"),
        db.CheckConstraint("quantity >= 1", name="ck_bill_items_quantity_positive"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    bill_id = db.Column(db.Integer, db.ForeignKey("bills.id"), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False)

    product_id = db.Column(db.Integer, nullable=False, index=True)
    localized_name = db.Column(db.String(255), nullable=False)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price_cents = db.Column(db.Integer, nullable=False)
    line_total_cents = db.Column(db.BigInteger, nullable=False)

    bill = db.relationship("Bill", back_populates="items")

    def to_dict(self) -> dict:
        return {
            "productId": self.product_id,
            "localizedName": self.localized_name,
            "quantity": self.quantity,
            "unitPrice": cents_to_amount(self.unit_price_cents),
            "unitPriceCents": self.unit_price_cents,
            "lineTotal": cents_to_amount(self.line_total_cents),
            "lineTotalCents": self.line_total_cents,
        }


@event.listens_for(Bill, "before_update")
@event.listens_for(BillItem, "before_update")
def _reject_bill_mutation(mapper, connection, target):
    raise ValueError(f"{type(target).__name__} rows are immutable once written")
