"""
routes/campaigns.py - Campaign route handlers.

Endpoints (base url_prefix=/api/v1/campaigns):
  GET    /campaigns            → 200  public
  GET    /campaigns/mine       → 200  BRAND (own), ADMIN (all)
  POST   /campaigns            → 201  BRAND
  PATCH  /campaigns/:id/close  → 200  owning BRAND, ADMIN
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from collabhub.app.extensions import db
from collabhub.app.middleware.auth_middleware import current_actor, require_roles
from collabhub.app.middleware.request_context import audit
from collabhub.app.models.user import Role
from collabhub.app.schemas.campaign_schema import CreateCampaignSchema
from collabhub.app.services import campaign_service

campaigns_bp = Blueprint("campaigns", __name__)


@campaigns_bp.route("/", methods=["GET"], strict_slashes=False)
def list_campaigns():
    """GET /campaigns - Every campaign, newest first. (No auth required.)"""
    result = campaign_service.list_campaigns(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@campaigns_bp.route("/mine", methods=["GET"])
@require_roles(Role.BRAND, Role.ADMIN)
def list_own_campaigns():
    result = campaign_service.list_own_campaigns(actor=current_actor(), session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@campaigns_bp.route("/", methods=["POST"], strict_slashes=False)
@require_roles(Role.BRAND)
def create_campaign():
    data = CreateCampaignSchema().load(request.get_json(silent=True) or {})
    result = campaign_service.create_campaign(
        brand_id=g.user_id,
        data=data,
        session=db.session,
    )
    audit("campaign.create", "campaign", result["id"], metadata={"title": result["title"]})
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@campaigns_bp.route("/<int:campaign_id>/close", methods=["PATCH"])
@require_roles(Role.BRAND, Role.ADMIN)
def close_campaign(campaign_id: int):
    result = campaign_service.close_campaign(
        campaign_id=campaign_id,
        actor=current_actor(),
        session=db.session,
    )
    audit("campaign.close", "campaign", campaign_id)
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
