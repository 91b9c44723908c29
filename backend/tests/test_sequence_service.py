# Overview: Pytest coverage for named counters.

from billing.extensions import db
from billing.services.sequence_service import (
    BILL_NUMBER_COUNTER,
    PRODUCT_ID_COUNTER,
    current_sequence,
    next_sequence,
)


def test_first_value_is_one(db_session):
    assert next_sequence("widgets") == 1
    db.session.commit()
    assert current_sequence("widgets") == 1


def test_values_are_strictly_increasing(db_session):
    values = [next_sequence(BILL_NUMBER_COUNTER) for _ in range(5)]
    db.session.commit()
    assert values == [1, 2, 3, 4, 5]


def test_counters_are_independent(db_session):
    assert next_sequence(PRODUCT_ID_COUNTER) == 1
    assert next_sequence(PRODUCT_ID_COUNTER) == 2
    assert next_sequence(BILL_NUMBER_COUNTER) == 1
    db.session.commit()
    assert current_sequence(PRODUCT_ID_COUNTER) == 2
    assert current_sequence(BILL_NUMBER_COUNTER) == 1


def test_rollback_returns_the_value(db_session):
    next_sequence("drafts")
    db.session.commit()

    next_sequence("drafts")
    db.session.rollback()

    assert next_sequence("drafts") == 2


def test_unknown_counter_reads_as_zero(db_session):
    assert current_sequence("never-used") == 0
