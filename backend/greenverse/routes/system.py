# backend/greenverse/routes/system.py
"""
System health and version endpoints.

Health runs a trivial query against the database; an unreachable database
turns the response into a 503 so load balancers can take the node out.
"""

import sys
import time
from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..time_utils import utcnow, to_utc_z

API_VERSION = "1.0.0"

system_bp = Blueprint("system", __name__, url_prefix="/api")


def check_database_health() -> dict:
    """
    Check database connectivity.

    Returns dict with status and latency.
    """
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2)}
    except SQLAlchemyError:
        db.session.rollback()
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {
            "status": "unhealthy",
            "latency_ms": round(elapsed_ms, 2),
            "error": "Database error",
        }


@system_bp.get("/health")
def health():
    database_health = check_database_health()

    if database_health["status"] == "healthy":
        body = {"status": "ok", "message": "GreenVerse API is running"}
        http_status = 200
    else:
        body = {"status": "error", "message": "Database unavailable"}
        http_status = 503

    body["timestamp"] = to_utc_z(utcnow())
    body["checks"] = {"database": database_health}
    return body, http_status


@system_bp.get("/version")
def version():
    """
    Non-sensitive deployment information.

    Does NOT expose secret keys or database credentials.
    """
    return {
        "api_version": API_VERSION,
        "environment": current_app.config.get("APP_ENV"),
        "python_version": sys.version.split()[0],
        "server_time": to_utc_z(utcnow()),
    }
