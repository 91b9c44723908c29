# Overview: Service-layer operations for named counters; mints ids and bill numbers.

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Counter


PRODUCT_ID_COUNTER = "productId"
BILL_NUMBER_COUNTER = "billNumber"


class SequenceError(ValueError):
    """Raised when sequence operations fail."""


def _increment(counter_name: str) -> int | None:
    stmt = (
        update(Counter)
        .where(Counter.name == counter_name)
        .values(seq=Counter.seq + 1)
        .execution_options(synchronize_session=False)
    )

    if db.engine.dialect.update_returning:
        # Single UPDATE ... RETURNING: read and write are one statement
        return db.session.execute(stmt.returning(Counter.seq)).scalar_one_or_none()

    result = db.session.execute(stmt)
    if not result.rowcount:
        return None
    # The UPDATE holds the row lock until commit, so this read is our own value
    return db.session.execute(
        select(Counter.seq).where(Counter.name == counter_name)
    ).scalar_one()


def next_sequence(counter_name: str) -> int:
    """
    Atomically increment the named counter and return its new value.

    A missing counter is created at 0 and incremented, so the first value is 1.
    Runs inside the caller's transaction and never commits: if the caller rolls
    back, the increment is rolled back with it.
    """
    if not counter_name:
        raise SequenceError("counter_name is required")

    value = _increment(counter_name)
    if value is not None:
        return value

    try:
        with db.session.begin_nested():
            db.session.add(Counter(name=counter_name, seq=1))
        return 1
    except IntegrityError:
        # Another writer created the counter first; increment theirs
        value = _increment(counter_name)
        if value is None:
            raise
        return value


def current_sequence(counter_name: str) -> int:
    """Last value handed out for counter_name (0 if never used)."""
    value = db.session.execute(
        select(Counter.seq).where(Counter.name == counter_name)
    ).scalar_one_or_none()
    return value or 0


def list_sequences() -> list[Counter]:
    return db.session.query(Counter).order_by(Counter.name.asc()).all()
