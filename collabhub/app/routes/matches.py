"""
routes/matches.py - Match and recommendation handlers.

Notifications returned by the service are published only after the commit
succeeds, so nobody is told about a match that was rolled back.

Endpoints (base url_prefix=/api/v1/matches):
  GET    /matches                               → 200  scoped by role
  POST   /matches                               → 201  BRAND (campaign owner)
  GET    /matches/recommendations?campaign_id=  → 200  owning BRAND, ADMIN
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from collabhub.app.extensions import db, notification_hub
from collabhub.app.middleware.auth_middleware import current_actor, require_auth, require_roles
from collabhub.app.middleware.request_context import audit
from collabhub.app.models.user import Role
from collabhub.app.schemas.campaign_schema import CreateMatchSchema, RecommendationQuerySchema
from collabhub.app.services import match_service

matches_bp = Blueprint("matches", __name__)


@matches_bp.route("/", methods=["GET"], strict_slashes=False)
@require_auth
def list_matches():
    result = match_service.list_matches(actor=current_actor(), session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@matches_bp.route("/", methods=["POST"], strict_slashes=False)
@require_roles(Role.BRAND)
def create_match():
    """POST /matches - Invite an influencer to one of the caller's OPEN campaigns."""
    data = CreateMatchSchema().load(request.get_json(silent=True) or {})
    result, notifications = match_service.create_match(
        actor=current_actor(),
        campaign_id=data["campaign_id"],
        influencer_id=data["influencer_id"],
        session=db.session,
    )
    audit("match.create", "match", result["id"], metadata=data)
    db.session.commit()
    notification_hub.publish_all(notifications)
    return jsonify({"data": result, "warnings": []}), 201


@matches_bp.route("/recommendations", methods=["GET"])
@require_roles(Role.BRAND, Role.ADMIN)
def recommendations():
    """GET /matches/recommendations - Influencers ranked for one campaign."""
    query = RecommendationQuerySchema().load(request.args)
    result = match_service.recommend(
        actor=current_actor(),
        campaign_id=query["campaign_id"],
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
