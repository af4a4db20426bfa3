"""
routes/health.py - Liveness and readiness probes. Mounted at the root.

  GET /live    → 200 always (process is up)
  GET /ready   → 200 if SELECT 1 succeeds, else 503
  GET /health  → same check, reported as db connected/disconnected
"""

from __future__ import annotations

from flask import Blueprint, current_app, jsonify
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from collabhub.app.extensions import db

health_bp = Blueprint("health", __name__)

SERVICE_NAME = "collabhub-api"


def _database_reachable() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.warning("Database readiness check failed", exc_info=True)
        db.session.rollback()
        return False
    return True


@health_bp.route("/live", methods=["GET"])
def live():
    return jsonify({"ok": True, "service": SERVICE_NAME, "status": "live"}), 200


@health_bp.route("/ready", methods=["GET"])
def ready():
    if _database_reachable():
        return jsonify({"ok": True, "service": SERVICE_NAME, "status": "ready"}), 200
    return jsonify({"ok": False, "service": SERVICE_NAME, "status": "not-ready"}), 503


@health_bp.route("/health", methods=["GET"])
def health():
    if _database_reachable():
        return jsonify({"ok": True, "service": SERVICE_NAME, "db": "connected"}), 200
    return jsonify({"ok": False, "service": SERVICE_NAME, "db": "disconnected"}), 503
