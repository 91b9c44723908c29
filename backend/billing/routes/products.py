# Overview: Flask API routes for products and stock; parses input and returns JSON responses.

# backend/billing/routes/products.py
"""
Product catalog routes.

Stock changes go through /stock (single) and /stock/bulk (batch). Product
edits through PUT never touch stock.
"""
from flask import Blueprint, current_app, jsonify, request

from ..errors import BillingError
from ..services import products_service

products_bp = Blueprint("products", __name__, url_prefix="/api/products")


def _internal_error():
    return jsonify({"errorType": "InternalError", "message": "Internal server error"}), 500


def _invalid_payload():
    return jsonify({"errorType": "ValidationError", "message": "Invalid JSON payload"}), 400


@products_bp.get("")
def list_products():
    """List all products ordered by id."""
    products = products_service.list_products()
    return jsonify([p.to_dict() for p in products])


@products_bp.post("")
def create_product_route():
    """
    Create a new product.

    Body: {name, localizedName, price, minStockLevel?}. Stock starts at 0.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _invalid_payload()

    try:
        product = products_service.create_product(payload)
    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to create product")
        return _internal_error()

    return jsonify(product.to_dict()), 201


@products_bp.get("/low-stock")
def low_stock_products():
    """Products whose stock is below their minStockLevel."""
    products = products_service.list_low_stock_products()
    return jsonify([p.to_dict() for p in products])


@products_bp.get("/<int:product_id>")
def get_product_route(product_id: int):
    product = products_service.get_product(product_id)
    if product is None:
        return jsonify({"errorType": "NotFound", "message": f"Product {product_id} not found"}), 404
    return jsonify(product.to_dict())


@products_bp.put("/<int:product_id>")
def update_product_route(product_id: int):
    """Update name, localizedName, price or minStockLevel."""
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _invalid_payload()

    try:
        product = products_service.update_product(product_id, payload)
    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to update product")
        return _internal_error()

    return jsonify(product.to_dict()), 200


@products_bp.delete("/<int:product_id>")
def delete_product_route(product_id: int):
    try:
        products_service.delete_product(product_id)
    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to delete product")
        return _internal_error()

    return jsonify({"message": "Product deleted successfully"}), 200


@products_bp.post("/stock")
def adjust_stock_route():
    """
    Adjust one product's stock.

    Body: {productId, quantity}; quantity is a non-zero delta.
    """
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return _invalid_payload()

    if payload.get("productId") is None or payload.get("quantity") is None:
        return jsonify({
            "errorType": "ValidationError",
            "message": "Both productId and quantity are required",
        }), 400

    try:
        product = products_service.adjust_stock(payload["productId"], payload["quantity"])
    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to adjust stock")
        return _internal_error()

    return jsonify(product.to_dict()), 200


@products_bp.post("/stock/bulk")
def bulk_adjust_stock_route():
    """
    Adjust stock for many products at once.

    Body: {items: [{productId, quantity}, ...]} or the bare list.
    Entries succeed or fail independently; the response reports each one.
    """
    payload = request.get_json(silent=True)
    entries = payload.get("items") if isinstance(payload, dict) else payload

    try:
        results = products_service.bulk_adjust_stock(entries)
    except BillingError as e:
        return jsonify(e.to_dict()), e.status_code
    except Exception:
        current_app.logger.exception("Failed to apply bulk stock adjustment")
        return _internal_error()

    succeeded = sum(1 for r in results if r.success)
    return jsonify({
        "results": [r.to_dict() for r in results],
        "succeeded": succeeded,
        "failed": len(results) - succeeded,
    }), 200
