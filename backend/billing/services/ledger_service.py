# Overview: Bill ledger; append-only storage of committed bills.

"""
Bill Ledger Invariants (authoritative)

- Append-only: bills and their items are never updated or deleted.
- grand_total_cents == sum(line_total_cents); line_total_cents == quantity * unit_price_cents.
- Items are snapshots (name, price) taken when the bill was issued.
- Bill numbers are "BILL-<year>-<6-digit sequence>" from the single
  "billNumber" counter, minted inside the caller's transaction.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from ..extensions import db
from ..models import Bill, BillItem, Product
from ..time_utils import utcnow
from .sequence_service import BILL_NUMBER_COUNTER, next_sequence


@dataclass(frozen=True)
class LineSnapshot:
    product_id: int
    localized_name: str
    quantity: int
    unit_price_cents: int

    @property
    def line_total_cents(self) -> int:
        return self.quantity * self.unit_price_cents


@dataclass
class BillDraft:
    customer_name: str
    mobile_number: str
    items: list[LineSnapshot] = field(default_factory=list)

    @property
    def grand_total_cents(self) -> int:
        return sum(item.line_total_cents for item in self.items)


def format_bill_number(sequence: int, year: int) -> str:
    return f"BILL-{year}-{sequence:06d}"


def append_bill(draft: BillDraft, *, created_at: datetime | None = None) -> Bill:
    """
    Persist a bill draft and assign its number.

    Joins the caller's transaction and only flushes; the caller commits.
    """
    if not draft.items:
        raise ValueError("cannot append a bill without items")

    created_at = created_at or utcnow()
    bill = Bill(
        bill_number=format_bill_number(next_sequence(BILL_NUMBER_COUNTER), created_at.year),
        customer_name=draft.customer_name,
        mobile_number=draft.mobile_number,
        grand_total_cents=draft.grand_total_cents,
        created_at=created_at,
    )
    for position, line in enumerate(draft.items, start=1):
        bill.items.append(BillItem(
            position=position,
            product_id=line.product_id,
            localized_name=line.localized_name,
            quantity=line.quantity,
            unit_price_cents=line.unit_price_cents,
            line_total_cents=line.line_total_cents,
        ))

    db.session.add(bill)
    db.session.flush()
    return bill


def get_bill_by_number(bill_number: str) -> Bill | None:
    return db.session.query(Bill).filter(Bill.bill_number == bill_number).one_or_none()


def bill_with_product_details(bill: Bill) -> dict:
    """
    Bill as stored, with each item joined to the product as it is *now*.

    productDetails is None (not omitted) when the product has since been deleted.
    """
    product_ids = {item.product_id for item in bill.items}
    products = {
        p.id: p
        for p in db.session.query(Product).filter(Product.id.in_(product_ids)).all()
    } if product_ids else {}

    body = bill.to_dict()
    for item_dict, item in zip(body["items"], bill.items):
        product = products.get(item.product_id)
        item_dict["productDetails"] = product.to_dict() if product else None
    return body
