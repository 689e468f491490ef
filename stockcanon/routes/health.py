from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from stockcanon.extensions import db


bp = Blueprint("health", __name__, url_prefix="/health")


@bp.get("/")
def health_status():
    database_ok = True
    error = None
    try:
        with db.engine.connect() as connection:
            connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        database_ok = False
        error = str(getattr(exc, "orig", exc)).strip() or "Database unavailable"
        current_app.logger.warning("Health check database ping failed: %s", error)

    payload = {
        "status": "OK" if database_ok else "DEGRADED",
        "database": "online" if database_ok else "offline",
    }
    if error:
        payload["error"] = error
    return jsonify(payload), 200 if database_ok else 503
