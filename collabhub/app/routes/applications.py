"""
routes/applications.py - Application route handlers.

Endpoints (base url_prefix=/api/v1/applications):
  GET    /applications             → 200  scoped by role
  POST   /applications             → 201  INFLUENCER
  PATCH  /applications/:id/status  → 200  owning BRAND, applicant, ADMIN
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from collabhub.app.extensions import db, notification_hub
from collabhub.app.middleware.auth_middleware import current_actor, require_auth, require_roles
from collabhub.app.middleware.request_context import audit
from collabhub.app.models.user import Role
from collabhub.app.schemas.campaign_schema import ApplicationStatusSchema, CreateApplicationSchema
from collabhub.app.services import application_service

applications_bp = Blueprint("applications", __name__)


@applications_bp.route("/", methods=["GET"], strict_slashes=False)
@require_auth
def list_applications():
    result = application_service.list_applications(actor=current_actor(), session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@applications_bp.route("/", methods=["POST"], strict_slashes=False)
@require_roles(Role.INFLUENCER)
def create_application():
    data = CreateApplicationSchema().load(request.get_json(silent=True) or {})
    result, notifications = application_service.create_application(
        influencer_id=g.user_id,
        campaign_id=data["campaign_id"],
        proposal_message=data["proposal_message"],
        session=db.session,
    )
    audit("application.create", "application", result["id"],
          metadata={"campaign_id": data["campaign_id"]})
    db.session.commit()
    notification_hub.publish_all(notifications)
    return jsonify({"data": result, "warnings": []}), 201


@applications_bp.route("/<int:application_id>/status", methods=["PATCH"])
@require_auth
def update_application_status(application_id: int):
    """
    PATCH /applications/:id/status - Approve/reject (brand) or withdraw
    (influencer). Approval also creates the campaign/influencer match.
    """
    data = ApplicationStatusSchema().load(request.get_json(silent=True) or {})
    result, notifications = application_service.update_status(
        application_id=application_id,
        next_status=data["status"],
        actor=current_actor(),
        session=db.session,
    )
    audit("application.status.update", "application", application_id,
          metadata={"status": result["status"]})
    db.session.commit()
    notification_hub.publish_all(notifications)
    return jsonify({"data": result, "warnings": []}), 200
