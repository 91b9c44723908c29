from __future__ import annotations

from ..extensions import db
from ..money import cents_to_amount
from ..time_utils import to_utc_z, utcnow


class Product(db.Model):
    """
    Product master data.

    ID DESIGN DECISION:
    Product.id is minted by the "productId" counter (see sequence_service), not
    by database autoincrement, so ids stay dense and are never reused even
    after a product is deleted.

    STOCK:
    stock is a stored quantity, changed only through products_service
    (adjust_stock, bulk_adjust_stock) and bill_service. The CHECK constraint is
    the last line of defence; services reject negative results before they
    reach the database.
    """
    __tablename__ = "products"
    __table_args__ = (
        db.CheckConstraint("stock >= 0", name="ck_products_stock_non_negative"),
        db.CheckConstraint("price_cents >= 0", name="ck_products_price_non_negative"),
        db.Index("ix_products_stock_level", "stock", "min_stock_level"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=False)

    name = db.Column(db.String(255), nullable=False)
    # Name printed on bills (e.g. Tamil)
    localized_name = db.Column(db.String(255), nullable=False)

    # Authoritative storage in cents (frontend may only format for display)
    price_cents = db.Column(db.Integer, nullable=False)

    stock = db.Column(db.Integer, nullable=False, default=0)
    min_stock_level = db.Column(db.Integer, nullable=False, default=5)

    version_id = db.Column(db.Integer, nullable=False, default=1)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    __mapper_args__ = {"version_id_col": version_id}

    @property
    def is_low_stock(self) -> bool:
        return self.stock < self.min_stock_level

    def __repr__(self) -> str:
        return f"<Product id={self.id} name={self.name!r} stock={self.stock}>"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "localizedName": self.localized_name,
            "price": cents_to_amount(self.price_cents),
            "priceCents": self.price_cents,
            "stock": self.stock,
            "minStockLevel": self.min_stock_level,
            "lowStock": self.is_low_stock,
            "createdAt": to_utc_z(self.created_at),
            "updatedAt": to_utc_z(self.updated_at),
        }
