# Overview: Flask API routes for bills; parses input and returns JSON responses.

# backend/billing/routes/bills.py
"""Bill API routes"""

from flask import Blueprint, current_app, jsonify, request

from ..errors import BillingError
from ..services import bill_service, ledger_service


bills_bp = Blueprint("bills", __name__, url_prefix="/api/bills")


@bills_bp.post("")
def create_bill_route():
    """
    Create a bill.

    Body: {customerName, mobileNumber, items: [{productId, quantity}, ...]}
    400 carries {errorType, message, itemIndex?}; storage failures are a
    generic 500.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"errorType": "ValidationError", "message": "Invalid JSON payload"}), 400

    try:
        bill = bill_service.create_bill(
            data.get("customerName"),
            data.get("mobileNumber"),
            data.get("items"),
        )
    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create bill")
        return jsonify({"errorType": "InternalError", "message": "Internal server error"}), 500

    return jsonify(bill.to_dict()), 201


@bills_bp.get("/<string:bill_number>")
def get_bill_route(bill_number: str):
    """Bill with current product details joined onto each item."""
    bill = ledger_service.get_bill_by_number(bill_number)
    if bill is None:
        return jsonify({"errorType": "NotFound", "message": "Bill not found"}), 404

    return jsonify(ledger_service.bill_with_product_details(bill)), 200
