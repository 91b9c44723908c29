# Overview: Pytest coverage for the contact directory.

from datetime import timedelta

import pytest

from billing.errors import ValidationError
from billing.extensions import db
from billing.models import Contact
from billing.services import contacts_service
from billing.time_utils import utcnow


def test_add_creates_once(db_session):
    first = contacts_service.add_contact("Kavya", "9876543210")
    second = contacts_service.add_contact("Someone Else", "9876543210")

    assert first.created is True
    assert second.created is False
    assert second.contact.name == "Kavya"
    assert db.session.query(Contact).count() == 1


def test_result_serializes_contact(db_session):
    body = contacts_service.add_contact("Kavya", " 9876543210 ").to_dict()
    assert body["created"] is True
    assert body["contact"]["mobileNumber"] == "9876543210"
    assert body["contact"]["lastUsed"].endswith("Z")


@pytest.mark.parametrize("name, mobile", [
    ("", "9876543210"),
    ("Kavya", "98765"),
    ("Kavya", None),
    ("Kavya", "98765-43210"),
    ("Ravi", "९८७६५४३२१०"),
    ("Ravi", "٩٨٧٦٥٤٣٢١٠"),
])
def test_invalid_input_rejected(db_session, name, mobile):
    with pytest.raises(ValidationError):
        contacts_service.add_contact(name, mobile)
    db.session.rollback()
    assert db.session.query(Contact).count() == 0


def test_recent_contacts_newest_first(db_session):
    now = utcnow()
    for offset, (name, mobile) in enumerate([
        ("Old", "9000000001"),
        ("Middle", "9000000002"),
        ("New", "9000000003"),
    ]):
        db.session.add(Contact(name=name, mobile_number=mobile, last_used=now + timedelta(minutes=offset)))
    db.session.commit()

    assert [c.name for c in contacts_service.recent_contacts()] == ["New", "Middle", "Old"]
    assert [c.name for c in contacts_service.recent_contacts(limit=2)] == ["New", "Middle"]


def test_recent_limit_is_clamped(db_session):
    for i in range(3):
        db.session.add(Contact(name=f"C{i}", mobile_number=f"90000000{i:02d}"))
    db.session.commit()

    assert len(contacts_service.recent_contacts(limit=0)) == 1
    assert len(contacts_service.recent_contacts(limit=1000)) == 3
