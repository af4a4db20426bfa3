"""
routes/proposals.py - Proposal route handlers.

Endpoints (base url_prefix=/api/v1/proposals):
  GET    /proposals             → 200  scoped by role
  POST   /proposals             → 201  either party of the match, ADMIN
  PATCH  /proposals/:id/status  → 200  either party (role-limited targets), ADMIN
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from collabhub.app.extensions import db, notification_hub
from collabhub.app.middleware.auth_middleware import current_actor, require_auth
from collabhub.app.middleware.request_context import audit
from collabhub.app.schemas.campaign_schema import CreateProposalSchema, ProposalStatusSchema
from collabhub.app.services import proposal_service

proposals_bp = Blueprint("proposals", __name__)


@proposals_bp.route("/", methods=["GET"], strict_slashes=False)
@require_auth
def list_proposals():
    result = proposal_service.list_proposals(actor=current_actor(), session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@proposals_bp.route("/", methods=["POST"], strict_slashes=False)
@require_auth
def create_proposal():
    data = CreateProposalSchema().load(request.get_json(silent=True) or {})
    result = proposal_service.create_proposal(
        actor=current_actor(),
        data=data,
        session=db.session,
    )
    audit("proposal.create", "proposal", result["id"],
          metadata={"match_id": result["match_id"], "amount": result["amount"]})
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@proposals_bp.route("/<int:proposal_id>/status", methods=["PATCH"])
@require_auth
def update_proposal_status(proposal_id: int):
    data = ProposalStatusSchema().load(request.get_json(silent=True) or {})
    result, notifications = proposal_service.update_status(
        proposal_id=proposal_id,
        next_status=data["status"],
        actor=current_actor(),
        session=db.session,
    )
    audit("proposal.status.update", "proposal", proposal_id,
          metadata={"status": result["status"]})
    db.session.commit()
    notification_hub.publish_all(notifications)
    return jsonify({"data": result, "warnings": []}), 200
