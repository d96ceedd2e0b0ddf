# Overview: Health endpoints for the process and its database.

"""
System health endpoints.

/health answers as long as the process is up. /health/db runs a trivial
query and answers 503 when the database cannot be reached.
"""
import time

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..responses import ServiceUnavailableError, success
from shopadmin.time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)

_STARTED_AT = time.monotonic()


@system_bp.get("/health")
def health():
    return success({
        "status": "ok",
        "timestamp": to_utc_z(utcnow()),
        "uptime": round(time.monotonic() - _STARTED_AT, 3),
        "environment": current_app.config.get("APP_ENV", "development"),
    }, "Service is healthy")


@system_bp.get("/health/db")
def health_db():
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        db.session.rollback()
        current_app.logger.exception("Database health check failed")
        raise ServiceUnavailableError("Database is unavailable") from exc

    elapsed_ms = (time.time() - start_time) * 1000
    return success({
        "status": "ok",
        "database": "connected",
        "latency_ms": round(elapsed_ms, 2),
    }, "Database is healthy")
