"""
routes/transactions.py - Escrow transaction handlers.

Endpoints (base url_prefix=/api/v1/transactions):
  GET    /transactions               → 200  scoped by role
  POST   /transactions               → 201  owning BRAND, ADMIN
  PATCH  /transactions/:id/release   → 200  owning BRAND, ADMIN
  PATCH  /transactions/:id/refund    → 200  owning BRAND, ADMIN
  GET    /transactions/:id/receipt   → 200  owning BRAND, influencer, ADMIN
"""

from __future__ import annotations

from flask import Blueprint, jsonify, request

from collabhub.app.extensions import db, notification_hub
from collabhub.app.middleware.auth_middleware import current_actor, require_auth, require_roles
from collabhub.app.middleware.request_context import audit
from collabhub.app.models.user import Role
from collabhub.app.schemas.transaction_schema import CreateTransactionSchema
from collabhub.app.services import transaction_service

transactions_bp = Blueprint("transactions", __name__)


@transactions_bp.route("/", methods=["GET"], strict_slashes=False)
@require_auth
def list_transactions():
    result = transaction_service.list_transactions(actor=current_actor(), session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@transactions_bp.route("/", methods=["POST"], strict_slashes=False)
@require_roles(Role.BRAND, Role.ADMIN)
def create_transaction():
    """POST /transactions - Hold funds in escrow for an influencer."""
    data = CreateTransactionSchema().load(request.get_json(silent=True) or {})
    result, notifications = transaction_service.create_transaction(
        actor=current_actor(),
        data=data,
        session=db.session,
    )
    audit("transaction.create", "transaction", result["id"], metadata={
        "campaign_id": data["campaign_id"],
        "influencer_id": data["influencer_id"],
        "amount": data["amount"],
    })
    db.session.commit()
    notification_hub.publish_all(notifications)
    return jsonify({"data": result, "warnings": []}), 201


@transactions_bp.route("/<int:transaction_id>/release", methods=["PATCH"])
@require_roles(Role.BRAND, Role.ADMIN)
def release_transaction(transaction_id: int):
    result, notifications = transaction_service.release(
        transaction_id=transaction_id,
        actor=current_actor(),
        session=db.session,
    )
    audit("transaction.release", "transaction", transaction_id)
    db.session.commit()
    notification_hub.publish_all(notifications)
    return jsonify({"data": result, "warnings": []}), 200


@transactions_bp.route("/<int:transaction_id>/refund", methods=["PATCH"])
@require_roles(Role.BRAND, Role.ADMIN)
def refund_transaction(transaction_id: int):
    result, notifications = transaction_service.refund(
        transaction_id=transaction_id,
        actor=current_actor(),
        session=db.session,
    )
    audit("transaction.refund", "transaction", transaction_id)
    db.session.commit()
    notification_hub.publish_all(notifications)
    return jsonify({"data": result, "warnings": []}), 200


@transactions_bp.route("/<int:transaction_id>/receipt", methods=["GET"])
@require_auth
def get_receipt(transaction_id: int):
    result = transaction_service.get_receipt(
        transaction_id=transaction_id,
        actor=current_actor(),
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
