"""
routes/users.py - Profile and influencer directory handlers.

Endpoints (base url_prefix=/api/v1/users):
  GET    /users/influencers  → 200  BRAND, ADMIN
  PATCH  /users/profile      → 200  any authenticated user
  GET    /users/:id          → 200  any authenticated user
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from collabhub.app.extensions import db
from collabhub.app.middleware.auth_middleware import require_auth, require_roles
from collabhub.app.middleware.request_context import audit
from collabhub.app.models.user import Role
from collabhub.app.schemas.user_schema import UpdateProfileSchema
from collabhub.app.services import user_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/influencers", methods=["GET"])
@require_roles(Role.BRAND, Role.ADMIN)
def list_influencers():
    result = user_service.list_influencers(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/profile", methods=["PATCH"])
@require_auth
def update_profile():
    """PATCH /users/profile - Partial update of the caller's own profile."""
    data = UpdateProfileSchema().load(request.get_json(silent=True) or {})
    result = user_service.update_profile(
        user_id=g.user_id,
        data=data,
        session=db.session,
    )
    audit("user.profile.update", "user", g.user_id, metadata={"fields": sorted(data)})
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["GET"])
@require_auth
def get_profile(user_id: int):
    """GET /users/:id - Public profile; counts a view on influencer profiles."""
    result = user_service.get_public_profile(
        user_id=user_id,
        viewer_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
