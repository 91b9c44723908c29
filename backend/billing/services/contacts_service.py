# Overview: Service-layer operations for the contact directory.

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Contact
from ..time_utils import utcnow
from ..validation import require_text, validate_mobile_number
from .concurrency import begin_write_transaction


MAX_RECENT_LIMIT = 100


@dataclass(frozen=True)
class ContactUpsertResult:
    created: bool
    contact: Contact

    def to_dict(self) -> dict:
        return {"created": self.created, "contact": self.contact.to_dict()}


def _find_by_mobile(mobile_number: str) -> Contact | None:
    return db.session.query(Contact).filter(Contact.mobile_number == mobile_number).one_or_none()


def upsert_if_absent(name, mobile_number) -> ContactUpsertResult:
    """
    Insert a contact unless one already exists for the number.

    An existing contact is returned unchanged (created=False); its name is not
    overwritten. Joins the caller's transaction and does not commit.
    """
    name = require_text(name, field="name", max_length=255)
    mobile_number = validate_mobile_number(mobile_number)

    existing = _find_by_mobile(mobile_number)
    if existing is not None:
        return ContactUpsertResult(created=False, contact=existing)

    contact = Contact(name=name, mobile_number=mobile_number, last_used=utcnow())
    try:
        with db.session.begin_nested():
            db.session.add(contact)
    except IntegrityError:
        # Lost an insert race on the unique number; the winner's row stands
        existing = _find_by_mobile(mobile_number)
        if existing is None:
            raise
        return ContactUpsertResult(created=False, contact=existing)

    return ContactUpsertResult(created=True, contact=contact)


def add_contact(name, mobile_number) -> ContactUpsertResult:
    """Explicit contact-add: upsert_if_absent in its own transaction."""
    name = require_text(name, field="name", max_length=255)
    mobile_number = validate_mobile_number(mobile_number)
    begin_write_transaction()
    result = upsert_if_absent(name, mobile_number)
    db.session.commit()
    return result


def recent_contacts(limit: int | None = None) -> list[Contact]:
    """Most recently used contacts first."""
    if limit is None:
        limit = current_app.config.get("RECENT_CONTACTS_LIMIT", 20)
    limit = max(1, min(limit, MAX_RECENT_LIMIT))
    return (
        db.session.query(Contact)
        .order_by(Contact.last_used.desc(), Contact.id.desc())
        .limit(limit)
        .all()
    )
