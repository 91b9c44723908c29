# Overview: Validates requested bill lines against live stock before anything is written.

"""
Order validation.

Lines are checked in request order and validation stops at the first bad
line (fail-fast), reporting its zero-based index.

Stock is checked against the *cumulative* quantity requested per product, so
[{productId: 1, quantity: 2}, {productId: 1, quantity: 2}] against stock 3 is
rejected at index 1 even though neither line alone exceeds 3.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ..extensions import db
from ..errors import InsufficientStock, InvalidLine, NotFound, ValidationError
from ..models import Product
from ..validation import parse_positive_int
from .concurrency import lock_for_update


@dataclass(frozen=True)
class OrderLine:
    index: int
    product: Product
    quantity: int


@dataclass
class ValidatedOrder:
    lines: list[OrderLine]
    # product_id -> total quantity across all lines, in first-seen order
    reserved: dict[int, int] = field(default_factory=dict)


def _parse_line(index: int, raw) -> tuple[int, int]:
    if not isinstance(raw, dict):
        raise InvalidLine(index, "item must be an object with productId and quantity")
    try:
        product_id = parse_positive_int(raw.get("productId"), field="productId")
        quantity = parse_positive_int(raw.get("quantity"), field="quantity")
    except ValidationError as exc:
        raise InvalidLine(index, exc.message) from None
    return product_id, quantity


def validate_order(lines: list, *, lock: bool = True) -> ValidatedOrder:
    """
    Check every requested line against the catalog.

    Raises InvalidLine, NotFound (with item_index) or InsufficientStock for the
    first failing line. With lock=True product rows are read FOR UPDATE so the
    checked stock cannot change before the caller decrements it.
    """
    # Per-call cache: each product is fetched (and locked) at most once
    products: dict[int, Product | None] = {}
    reserved: dict[int, int] = {}
    validated: list[OrderLine] = []

    for index, raw in enumerate(lines):
        product_id, quantity = _parse_line(index, raw)

        if product_id not in products:
            query = db.session.query(Product).filter(Product.id == product_id)
            if lock:
                query = lock_for_update(query)
            products[product_id] = query.populate_existing().one_or_none()

        product = products[product_id]
        if product is None:
            raise NotFound(
                f"Product {product_id} not found",
                item_index=index,
                details={"productId": product_id},
            )

        requested = reserved.get(product_id, 0) + quantity
        if requested > product.stock:
            raise InsufficientStock(
                product_id,
                available=product.stock,
                requested=requested,
                item_index=index,
                product_name=product.name,
            )

        reserved[product_id] = requested
        validated.append(OrderLine(index=index, product=product, quantity=quantity))

    return ValidatedOrder(lines=validated, reserved=reserved)
