# backend/billing/routes/system.py
"""
System health endpoint.

Reports database reachability plus a few catalog counts, for deployment
checks and the frontend status badge.
"""

import time
from flask import Blueprint, current_app, jsonify

from ..extensions import db
from ..models import Bill, Contact, Product

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    """Run cheap counts against the main tables; any failure marks the database unhealthy."""
    started = time.perf_counter()
    try:
        details = {
            "products": db.session.query(Product).count(),
            "bills": db.session.query(Bill).count(),
            "contacts": db.session.query(Contact).count(),
        }
    except Exception:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            "error": "Database error",
        }

    return {
        "status": "healthy",
        "latency_ms": round((time.perf_counter() - started) * 1000, 2),
        "dialect": db.engine.dialect.name,
        "details": details,
    }


@system_bp.get("/api/health")
def health():
    database = check_database_health()
    status_code = 200 if database["status"] == "healthy" else 503
    return jsonify({"status": database["status"], "database": database}), status_code
