# Overview: Flask API routes for customer contacts.

from flask import Blueprint, current_app, jsonify, request

from ..errors import BillingError
from ..services import contacts_service

contacts_bp = Blueprint("contacts", __name__, url_prefix="/api/contacts")


@contacts_bp.post("")
def add_contact_route():
    """
    Record a contact unless the number is already known.

    201 when created, 200 with the existing contact otherwise.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return jsonify({"errorType": "ValidationError", "message": "Invalid JSON payload"}), 400

    try:
        result = contacts_service.add_contact(payload.get("name"), payload.get("mobileNumber"))
    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to add contact")
        return jsonify({"errorType": "InternalError", "message": "Internal server error"}), 500

    return jsonify(result.to_dict()), 201 if result.created else 200


@contacts_bp.get("")
def list_contacts_route():
    """Recent contacts, newest first. Query param: limit (default 20, max 100)."""
    limit = request.args.get("limit", type=int)
    contacts = contacts_service.recent_contacts(limit)
    return jsonify([c.to_dict() for c in contacts])
