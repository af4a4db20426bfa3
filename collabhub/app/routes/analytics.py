"""
routes/analytics.py - Dashboard metric handlers.

Endpoints (base url_prefix=/api/v1/analytics):
  GET    /analytics/brand       → 200  BRAND (own campaigns), ADMIN (platform)
  GET    /analytics/influencer  → 200  INFLUENCER (own), ADMIN (platform)
"""

from __future__ import annotations

from flask import Blueprint, jsonify

from collabhub.app.extensions import db
from collabhub.app.middleware.auth_middleware import current_actor, require_roles
from collabhub.app.models.user import Role
from collabhub.app.services import analytics_service

analytics_bp = Blueprint("analytics", __name__)


@analytics_bp.route("/brand", methods=["GET"])
@require_roles(Role.BRAND, Role.ADMIN)
def brand_summary():
    result = analytics_service.brand_summary(actor=current_actor(), session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@analytics_bp.route("/influencer", methods=["GET"])
@require_roles(Role.INFLUENCER, Role.ADMIN)
def influencer_summary():
    result = analytics_service.influencer_summary(actor=current_actor(), session=db.session)
    return jsonify({"data": result, "warnings": []}), 200
