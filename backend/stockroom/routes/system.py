# backend/stockroom/routes/system.py
"""
System health endpoint.

Checks database connectivity and that the reference data seeded by
`flask system init` is present.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db
from ..models import StatusCategory, TransactionType

system_bp = Blueprint("system", __name__, url_prefix="/api/system")


def check_database_health() -> dict:
    """
    Check database connectivity and reference data.

    Returns dict with status and details.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        status_categories = db.session.query(StatusCategory).count()
        transaction_types = db.session.query(TransactionType).count()

        elapsed_ms = (time.time() - start_time) * 1000
        return {
            "status": "healthy" if status_categories and transaction_types else "degraded",
            "latency_ms": round(elapsed_ms, 2),
            "details": {
                "status_categories": status_categories,
                "transaction_types": transaction_types,
            },
        }
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database = check_database_health()
    code = 503 if database["status"] == "unhealthy" else 200
    return {"status": database["status"], "checks": {"database": database}}, code
