"""
Bill creation - one atomic unit of work.

WHY: A bill reserves stock, snapshots prices, mints a bill number and records
the customer. Either all of the durable parts happen or none do:

1. customer fields and the item list are checked before any transaction opens
2. every line is validated against locked product rows (fail-fast, indexed)
3. stock decrements for all products are applied as one batch
4. the bill and its number are written
5. the contact is recorded best-effort inside a savepoint; failure is logged
   and never aborts the bill
6. commit; storage failures surface as TransactionFailure

Concurrent bills for the last units of a product serialize on the row locks
(or BEGIN IMMEDIATE on SQLite). The decrement itself is guarded
(stock >= qty), so a lost race is retried and re-validated rather than
overselling.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy import bindparam, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db
from ..errors import EmptyOrder, TransactionFailure, ValidationError
from ..models import Bill, Product
from ..validation import require_text, validate_mobile_number
from . import contacts_service
from .concurrency import begin_write_transaction, run_with_retry
from .ledger_service import BillDraft, LineSnapshot, append_bill
from .order_validation import OrderLine, validate_order


@dataclass(frozen=True)
class ContactOutcome:
    recorded: bool
    created: bool = False
    error: str | None = None


def _validate_customer(customer_name, mobile_number) -> tuple[str, str]:
    missing = [
        label for label, value in (("customerName", customer_name), ("mobileNumber", mobile_number))
        if value is None or (isinstance(value, str) and not value.strip())
    ]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}")
    return (
        require_text(customer_name, field="customerName", max_length=255),
        validate_mobile_number(mobile_number),
    )


def _snapshot(line: OrderLine) -> LineSnapshot:
    return LineSnapshot(
        product_id=line.product.id,
        localized_name=line.product.localized_name,
        quantity=line.quantity,
        unit_price_cents=line.product.price_cents,
    )


def _reserve_stock(reserved: dict[int, int]) -> None:
    """
    Decrement stock for every product in one executemany UPDATE.

    Each row is guarded by stock >= qty. If any guard fails the rows changed
    after validation, which is raised as StaleDataError so run_with_retry
    rolls back and re-validates from scratch.
    """
    products = Product.__table__
    stmt = (
        update(products)
        .where(products.c.id == bindparam("pid"), products.c.stock >= bindparam("qty"))
        .values(
            stock=products.c.stock - bindparam("qty"),
            version_id=products.c.version_id + 1,
        )
    )
    params = [{"pid": product_id, "qty": qty} for product_id, qty in reserved.items()]

    if db.engine.dialect.supports_sane_multi_rowcount:
        matched = db.session.execute(stmt, params).rowcount
    else:
        matched = sum(db.session.execute(stmt, p).rowcount for p in params)

    if matched != len(params):
        raise StaleDataError("product stock changed during bill creation")


def _record_contact_best_effort(customer_name: str, mobile_number: str) -> ContactOutcome:
    try:
        with db.session.begin_nested():
            result = contacts_service.upsert_if_absent(customer_name, mobile_number)
    except Exception as exc:
        current_app.logger.warning(
            "Contact bookkeeping failed for %s; bill continues: %s", mobile_number, exc
        )
        return ContactOutcome(recorded=False, error=str(exc))
    return ContactOutcome(recorded=True, created=result.created)


def create_bill(customer_name, mobile_number, lines) -> Bill:
    """
    Validate, reserve stock, persist and return a bill.

    Raises ValidationError / EmptyOrder before any transaction opens;
    InvalidLine, NotFound or InsufficientStock (with itemIndex) when a line
    fails; TransactionFailure when storage aborts. On any error nothing is
    persisted.
    """
    customer_name, mobile_number = _validate_customer(customer_name, mobile_number)
    if lines is None or (isinstance(lines, (list, tuple)) and not lines):
        raise EmptyOrder()
    if not isinstance(lines, (list, tuple)):
        raise ValidationError("items must be a list")

    def _op() -> tuple[Bill, ContactOutcome]:
        begin_write_transaction()

        order = validate_order(list(lines))
        draft = BillDraft(
            customer_name=customer_name,
            mobile_number=mobile_number,
            items=[_snapshot(line) for line in order.lines],
        )

        _reserve_stock(order.reserved)
        bill = append_bill(draft)
        contact = _record_contact_best_effort(customer_name, mobile_number)

        db.session.commit()
        return bill, contact

    try:
        bill, contact = run_with_retry(_op)
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.error("Bill transaction aborted: %s", exc, exc_info=True)
        raise TransactionFailure() from exc
    except Exception:
        db.session.rollback()
        raise

    current_app.logger.info(
        "Issued %s: %d item(s), total %d cents, contact %s",
        bill.bill_number,
        len(bill.items),
        bill.grand_total_cents,
        "created" if contact.created else ("kept" if contact.recorded else "skipped"),
    )
    return bill
