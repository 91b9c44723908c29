# backend/billing/services/products_service.py
"""
Product catalog store.

STOCK INVARIANT: products.stock never goes negative. Every stock change is a
single conditional UPDATE (stock = stock + delta WHERE stock + delta >= 0), so
a concurrent writer can never push a row below zero even without locks.
"""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import update

from ..extensions import db
from ..errors import BillingError, InsufficientStock, NotFound, ValidationError
from ..models import Product
from ..money import parse_amount_to_cents
from ..validation import (
    ModelValidationPolicy,
    parse_int,
    parse_non_negative_int,
    validate_payload,
)
from .concurrency import begin_write_transaction, run_with_retry
from .sequence_service import PRODUCT_ID_COUNTER, next_sequence


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={"name", "localizedName", "price", "minStockLevel"},
    required_on_create={"name", "localizedName", "price"},
    field_map={
        "localizedName": "localized_name",
        "price": "price_cents",
        "minStockLevel": "min_stock_level",
    },
    converters={
        "price": parse_amount_to_cents,
        "minStockLevel": lambda v: parse_non_negative_int(v, field="minStockLevel"),
    },
)

PRODUCT_MUTABLE_FIELDS = {"name", "localized_name", "price_cents", "min_stock_level"}


@dataclass(frozen=True)
class StockAdjustmentResult:
    """Outcome of one entry of a bulk stock adjustment."""
    index: int
    product_id: int | None
    success: bool
    stock: int | None = None
    error_type: str | None = None
    reason: str | None = None

    def to_dict(self) -> dict:
        body = {
            "index": self.index,
            "productId": self.product_id,
            "success": self.success,
        }
        if self.success:
            body["stock"] = self.stock
        else:
            body["errorType"] = self.error_type
            body["reason"] = self.reason
        return body


def apply_product_patch(p: Product, patch: dict) -> None:
    for k, v in patch.items():
        if k not in PRODUCT_MUTABLE_FIELDS:
            continue
        setattr(p, k, v)


def _require_product(product_id: int) -> Product:
    product = db.session.get(Product, product_id)
    if product is None:
        raise NotFound(f"Product {product_id} not found", details={"productId": product_id})
    return product


def create_product(payload: dict) -> Product:
    """
    Create a product from client JSON ({name, localizedName, price, minStockLevel?}).

    The id comes from the "productId" counter; stock starts at 0.
    """
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)

    def _op() -> Product:
        begin_write_transaction()
        product = Product(
            id=next_sequence(PRODUCT_ID_COUNTER),
            stock=0,
            min_stock_level=current_app.config["DEFAULT_MIN_STOCK_LEVEL"],
        )
        apply_product_patch(product, patch)
        db.session.add(product)
        db.session.commit()
        return product

    product = run_with_retry(_op)
    current_app.logger.info("Created product %s (%s)", product.id, product.name)
    return product


def get_product(product_id: int) -> Product | None:
    return db.session.get(Product, product_id)


def list_products() -> list[Product]:
    return db.session.query(Product).order_by(Product.id.asc()).all()


def update_product(product_id: int, payload: dict) -> Product:
    """Edit name, localizedName, price or minStockLevel. Stock is not editable here."""
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)

    def _op() -> Product:
        product = _require_product(product_id)
        apply_product_patch(product, patch)
        db.session.commit()
        return product

    return run_with_retry(_op)


def delete_product(product_id: int) -> None:
    """
    Delete a product. Bills that reference it keep their snapshots; the
    productId counter is not rewound.
    """
    product = _require_product(product_id)
    db.session.delete(product)
    db.session.commit()


def list_low_stock_products() -> list[Product]:
    return (
        db.session.query(Product)
        .filter(Product.stock < Product.min_stock_level)
        .order_by(Product.stock.asc(), Product.id.asc())
        .all()
    )


def _apply_stock_delta(product_id: int, delta: int) -> bool:
    """
    Conditional in-place stock change. Returns False when no row matched,
    i.e. the product is missing or the result would be negative.
    """
    stmt = (
        update(Product)
        .where(Product.id == product_id, Product.stock + delta >= 0)
        .values(stock=Product.stock + delta, version_id=Product.version_id + 1)
        .execution_options(synchronize_session=False)
    )
    return db.session.execute(stmt).rowcount == 1


def _explain_failed_delta(product_id: int, delta: int, *, item_index: int | None = None) -> BillingError:
    current = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
    if current is None:
        return NotFound(f"Product {product_id} not found", details={"productId": product_id})
    return InsufficientStock(product_id, available=current, requested=-delta, item_index=item_index)


def adjust_stock(product_id, delta) -> Product:
    """
    Apply stock += delta atomically.

    Raises NotFound for an unknown id and InsufficientStock when the result
    would be negative (the row is left unchanged).
    """
    product_id = parse_int(product_id, field="productId")
    delta = parse_int(delta, field="quantity")
    if delta == 0:
        raise ValidationError("quantity must be non-zero")

    def _op() -> Product:
        begin_write_transaction()
        if not _apply_stock_delta(product_id, delta):
            error = _explain_failed_delta(product_id, delta)
            db.session.rollback()
            raise error
        db.session.commit()
        return db.session.get(Product, product_id)

    return run_with_retry(_op)


def _parse_bulk_delta(entry: dict) -> int:
    delta = parse_int(entry.get("quantity"), field="quantity")
    if delta == 0:
        raise ValidationError("quantity must be non-zero")
    return delta


def bulk_adjust_stock(entries) -> list[StockAdjustmentResult]:
    """
    Apply a batch of independent stock deltas in one transaction.

    Each entry succeeds or fails on its own (unknown id, malformed data, or a
    negative result); failures never undo the other entries. The batch as a
    whole commits once.
    """
    if not isinstance(entries, list):
        raise ValidationError("items must be a list")
    if not entries:
        raise ValidationError("items must not be empty")

    def _op() -> list[StockAdjustmentResult]:
        begin_write_transaction()
        results: list[StockAdjustmentResult] = []
        for index, entry in enumerate(entries):
            product_id = None
            try:
                if not isinstance(entry, dict):
                    raise ValidationError("entry must be an object with productId and quantity")
                product_id = parse_int(entry.get("productId"), field="productId")
                delta = _parse_bulk_delta(entry)
                if not _apply_stock_delta(product_id, delta):
                    raise _explain_failed_delta(product_id, delta, item_index=index)
            except BillingError as exc:
                current_app.logger.info("Bulk stock entry %d rejected: %s", index, exc.message)
                results.append(StockAdjustmentResult(
                    index=index,
                    product_id=product_id,
                    success=False,
                    error_type=exc.error_type,
                    reason=exc.message,
                ))
                continue

            stock = db.session.query(Product.stock).filter(Product.id == product_id).scalar()
            results.append(StockAdjustmentResult(index=index, product_id=product_id, success=True, stock=stock))

        db.session.commit()
        return results

    return run_with_retry(_op)
