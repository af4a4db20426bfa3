"""
routes/admin.py - Administration handlers. ADMIN only.

The role gate is applied once in before_request, so every handler in this
blueprint can assume an authenticated ADMIN.

Endpoints (base url_prefix=/api/v1/admin):
  GET    /admin/overview               → 200
  GET    /admin/users?role=            → 200
  PATCH  /admin/users/:id/fraud-flag   → 200
  GET    /admin/audit-logs?limit=      → 200
  POST   /admin/fraud-scan             → 200
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from collabhub.app.extensions import db
from collabhub.app.middleware.auth_middleware import require_roles
from collabhub.app.middleware.request_context import audit
from collabhub.app.models.user import Role
from collabhub.app.schemas.user_schema import FraudFlagSchema
from collabhub.app.services import admin_service, audit_service

admin_bp = Blueprint("admin", __name__)


@admin_bp.before_request
@require_roles(Role.ADMIN)
def require_admin():
    return None


@admin_bp.route("/overview", methods=["GET"])
def overview():
    result = admin_service.overview(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@admin_bp.route("/users", methods=["GET"])
def list_users():
    result = admin_service.list_users(session=db.session, role=request.args.get("role"))
    return jsonify({"data": result, "warnings": []}), 200


@admin_bp.route("/users/<int:user_id>/fraud-flag", methods=["PATCH"])
def set_fraud_flag(user_id: int):
    data = FraudFlagSchema().load(request.get_json(silent=True) or {})
    result = admin_service.set_fraud_flag(
        user_id=user_id,
        is_fraud_flagged=data["is_fraud_flagged"],
        session=db.session,
    )
    audit("admin.user.fraud_flag.update", "user", user_id,
          metadata={"is_fraud_flagged": result["is_fraud_flagged"]})
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@admin_bp.route("/audit-logs", methods=["GET"])
def audit_logs():
    """GET /admin/audit-logs - Newest first; limit clamped to 1..200 (default 50)."""
    limit = request.args.get("limit", type=int)
    result = audit_service.list_recent(db.session, limit)
    return jsonify({"data": result, "warnings": []}), 200


@admin_bp.route("/fraud-scan", methods=["POST"])
def fraud_scan():
    result = admin_service.run_fraud_scan(session=db.session)
    audit("admin.fraud_scan.run", "system", metadata=result)
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
