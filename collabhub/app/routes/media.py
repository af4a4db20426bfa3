"""
routes/media.py - Media asset handlers.

Endpoints (base url_prefix=/api/v1/media):
  GET    /media  → 200  own assets (ADMIN: all)
  POST   /media  → 201  any role; campaign attachment checked by policy
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from collabhub.app.extensions import db
from collabhub.app.middleware.auth_middleware import current_actor, require_auth
from collabhub.app.middleware.request_context import audit
from collabhub.app.schemas.transaction_schema import CreateMediaSchema
from collabhub.app.services import media_service

media_bp = Blueprint("media", __name__)


@media_bp.route("/", methods=["GET"], strict_slashes=False)
@require_auth
def list_media():
    result = media_service.list_media(actor=current_actor(), session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@media_bp.route("/", methods=["POST"], strict_slashes=False)
@require_auth
def create_media():
    data = CreateMediaSchema().load(request.get_json(silent=True) or {})
    result = media_service.create_media(actor=current_actor(), data=data, session=db.session)
    audit("media.asset.create", "media_asset", result["id"], metadata={
        "campaign_id": result["campaign_id"],
        "resource_type": result["resource_type"],
    })
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201
