"""
services/transaction_service.py - Escrow transactions and receipts.

Lifecycle (policy.TRANSACTION_TRANSITIONS):
  HELD → RELEASED   (sets released_at)
  HELD → REFUNDED
  RELEASED and REFUNDED are terminal.

Only the brand that owns the campaign (or ADMIN) creates, releases or
refunds. The influencer may read its own transactions and receipts.

An optional proposal must belong to the same (campaign, influencer) pair
and must be ACCEPTED. Amounts are whole currency units (int).

Layer rules:
  - No Flask imports. Commits are the route's responsibility - only flush here.
"""

from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.campaign import Campaign
from collabhub.app.models.proposal import ProposalStatus
from collabhub.app.models.transaction import Transaction, TransactionStatus
from collabhub.app.models.user import Role
from collabhub.app.services import policy
from collabhub.app.services.campaign_service import get_campaign_or_404
from collabhub.app.services.match_service import require_influencer
from collabhub.app.services.notification_hub import Notification
from collabhub.app.services.policy import Actor
from collabhub.app.services.proposal_service import get_proposal_or_404


# ── Private helpers ────────────────────────────────────────────────────────

def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _get_transaction_or_404(transaction_id: int, session: Session) -> Transaction:
    transaction = session.get(Transaction, transaction_id)
    if transaction is None:
        raise AppError(
            ErrorCode.TRANSACTION_NOT_FOUND,
            f"Transaction {transaction_id} does not exist.",
            404,
        )
    return transaction


def build_transaction_dict(transaction: Transaction) -> dict:
    proposal = transaction.proposal
    return {
        "id": transaction.id,
        "campaign_id": transaction.campaign_id,
        "influencer_id": transaction.influencer_id,
        "proposal_id": transaction.proposal_id,
        "amount": transaction.amount,
        "status": transaction.status,
        "created_at": transaction.created_at.isoformat() if transaction.created_at else None,
        "released_at": transaction.released_at.isoformat() if transaction.released_at else None,
        "campaign": {
            "id": transaction.campaign.id,
            "title": transaction.campaign.title,
            "brand_id": transaction.campaign.brand_id,
        },
        "influencer": {
            "id": transaction.influencer.id,
            "name": transaction.influencer.name,
            "email": transaction.influencer.email,
        },
        "proposal": (
            {"id": proposal.id, "amount": proposal.amount, "status": proposal.status}
            if proposal is not None else None
        ),
    }


def receipt_number(transaction: Transaction) -> str:
    """TX-<id>-<created_at in epoch milliseconds>."""
    created_ms = int(_as_utc(transaction.created_at).timestamp() * 1000)
    return f"TX-{transaction.id}-{created_ms}"


def _settle(
        transaction_id: int,
        next_status: str,
        actor: Actor,
        session: Session,
) -> tuple[dict, list[Notification]]:
    transaction = _get_transaction_or_404(transaction_id, session)
    policy.require(actor, "transaction.manage", brand_id=transaction.campaign.brand_id)
    policy.check_transition(
        policy.TRANSACTION_TRANSITIONS,
        transaction.status,
        next_status,
        "transaction",
    )

    transaction.status = next_status
    if next_status == TransactionStatus.RELEASED:
        transaction.released_at = datetime.now(timezone.utc)
        event_type = "transaction.released"
        message = f"Payment released for transaction #{transaction.id}"
    else:
        transaction.released_at = None
        event_type = "transaction.refunded"
        message = f"Transaction #{transaction.id} was refunded"
    session.flush()

    notification = Notification(
        type=event_type,
        message=message,
        data={"transaction_id": transaction.id, "amount": transaction.amount},
        user_ids=(transaction.influencer_id, transaction.campaign.brand_id),
    )
    return build_transaction_dict(transaction), [notification]


# ── Public service functions ───────────────────────────────────────────────

def list_transactions(actor: Actor, session: Session) -> list[dict]:
    """Brand: transactions on its campaigns. Influencer: its own. Admin: all."""
    stmt = (
        select(Transaction)
        .options(
            joinedload(Transaction.campaign),
            joinedload(Transaction.influencer),
            joinedload(Transaction.proposal),
        )
        .order_by(Transaction.created_at.desc(), Transaction.id.desc())
    )
    if actor.role == Role.BRAND:
        stmt = stmt.join(Campaign, Transaction.campaign_id == Campaign.id).where(
            Campaign.brand_id == actor.user_id
        )
    elif actor.role == Role.INFLUENCER:
        stmt = stmt.where(Transaction.influencer_id == actor.user_id)

    return [build_transaction_dict(t) for t in session.execute(stmt).unique().scalars().all()]


def create_transaction(
        actor: Actor,
        data: dict,
        session: Session,
) -> tuple[dict, list[Notification]]:
    """
    Puts `amount` in escrow (HELD) for a campaign/influencer pair.

    Raises:
      AppError(CAMPAIGN_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)              - campaign belongs to another brand
      AppError(INVALID_INFLUENCER, 400)
      AppError(PROPOSAL_NOT_FOUND, 404)
      AppError(PROPOSAL_MISMATCH, 409)      - proposal is for another pair
      AppError(PROPOSAL_NOT_ACCEPTED, 409)
    """
    campaign_id = data["campaign_id"]
    influencer_id = data["influencer_id"]
    proposal_id = data.get("proposal_id")

    campaign = get_campaign_or_404(campaign_id, session)
    policy.require(actor, "transaction.manage", brand_id=campaign.brand_id)
    require_influencer(influencer_id, session)

    if proposal_id:
        proposal = get_proposal_or_404(proposal_id, session)
        if (proposal.match.campaign_id != campaign_id
                or proposal.match.influencer_id != influencer_id):
            raise AppError(
                ErrorCode.PROPOSAL_MISMATCH,
                "The proposal does not belong to this campaign and influencer.",
                409,
                field="proposal_id",
            )
        if proposal.status != ProposalStatus.ACCEPTED:
            raise AppError(
                ErrorCode.PROPOSAL_NOT_ACCEPTED,
                "The proposal must be ACCEPTED before a transaction is created.",
                409,
                field="proposal_id",
            )

    transaction = Transaction(
        campaign_id=campaign_id,
        influencer_id=influencer_id,
        proposal_id=proposal_id or None,
        amount=data["amount"],
        status=TransactionStatus.HELD,
    )
    session.add(transaction)
    session.flush()
    session.refresh(transaction)

    notification = Notification(
        type="transaction.created",
        message=f"Escrow created for campaign #{campaign_id}",
        data={"transaction_id": transaction.id, "amount": transaction.amount},
        user_ids=(influencer_id, campaign.brand_id),
    )
    return build_transaction_dict(transaction), [notification]


def release(transaction_id: int, actor: Actor, session: Session) -> tuple[dict, list[Notification]]:
    """Raises TRANSACTION_NOT_FOUND (404), FORBIDDEN (403), INVALID_TRANSITION (409)."""
    return _settle(transaction_id, TransactionStatus.RELEASED, actor, session)


def refund(transaction_id: int, actor: Actor, session: Session) -> tuple[dict, list[Notification]]:
    """Raises TRANSACTION_NOT_FOUND (404), FORBIDDEN (403), INVALID_TRANSITION (409)."""
    return _settle(transaction_id, TransactionStatus.REFUNDED, actor, session)


def get_receipt(transaction_id: int, actor: Actor, session: Session) -> dict:
    """
    Raises:
      AppError(TRANSACTION_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403) - not the owning brand, the influencer, or ADMIN
    """
    transaction = _get_transaction_or_404(transaction_id, session)
    policy.require(
        actor,
        "transaction.view",
        brand_id=transaction.campaign.brand_id,
        influencer_id=transaction.influencer_id,
    )

    return {
        "receipt_number": receipt_number(transaction),
        "transaction_id": transaction.id,
        "campaign": {
            "id": transaction.campaign.id,
            "title": transaction.campaign.title,
        },
        "influencer": {
            "id": transaction.influencer.id,
            "name": transaction.influencer.name,
            "email": transaction.influencer.email,
        },
        "amount": transaction.amount,
        "status": transaction.status,
        "created_at": transaction.created_at.isoformat(),
        "released_at": transaction.released_at.isoformat() if transaction.released_at else None,
    }
