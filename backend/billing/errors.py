# Overview: Error taxonomy shared by services and routes.

"""
Billing error kinds.

Every error carries an ``error_type`` (serialized as ``errorType``) and the
HTTP status a route should answer with. Validation and business-rule errors
are raised before anything is committed, so callers never need compensating
rollback logic.
"""

from __future__ import annotations


class BillingError(Exception):
    """Base class for errors that are safe to show to API callers."""

    error_type = "BillingError"
    status_code = 400

    def __init__(self, message: str, *, item_index: int | None = None, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.item_index = item_index
        self.details = details or {}

    def to_dict(self) -> dict:
        body = {"errorType": self.error_type, "message": self.message}
        if self.item_index is not None:
            body["itemIndex"] = self.item_index
        if self.details:
            body["details"] = self.details
        return body


class ValidationError(BillingError, ValueError):
    """400-level input problem. Never mutates state."""

    error_type = "ValidationError"


class NotFound(BillingError):
    """Referenced entity is absent."""

    error_type = "NotFound"
    status_code = 404

    def __init__(self, message: str, *, item_index: int | None = None, details: dict | None = None):
        super().__init__(message, item_index=item_index, details=details)
        # A missing product inside an order is a bad request, not a missing resource
        if item_index is not None:
            self.status_code = 400


class InsufficientStock(BillingError):
    error_type = "InsufficientStock"

    def __init__(
        self,
        product_id: int,
        available: int,
        requested: int,
        *,
        item_index: int | None = None,
        product_name: str | None = None,
    ):
        label = product_name or f"product {product_id}"
        super().__init__(
            f"Insufficient stock for {label}. Available: {available}, requested: {requested}",
            item_index=item_index,
            details={"productId": product_id, "available": available, "requested": requested},
        )
        self.product_id = product_id
        self.available = available
        self.requested = requested


class EmptyOrder(BillingError):
    error_type = "EmptyOrder"

    def __init__(self, message: str = "A bill needs at least one item"):
        super().__init__(message)


class InvalidLine(BillingError):
    """A single order line is malformed (bad product id or quantity)."""

    error_type = "InvalidLine"

    def __init__(self, item_index: int, reason: str):
        super().__init__(f"Item {item_index}: {reason}", item_index=item_index, details={"reason": reason})
        self.reason = reason


class TransactionFailure(BillingError):
    """
    Storage-level abort or commit failure.

    Callers must assume nothing was persisted. The public message is generic;
    the underlying cause is only logged.
    """

    error_type = "TransactionFailure"
    status_code = 500

    def __init__(self, message: str = "Transaction failed; no changes were saved"):
        super().__init__(message)
