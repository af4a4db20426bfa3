"""
services/proposal_service.py - Deal proposals on a match.

Lifecycle (policy.PROPOSAL_TRANSITIONS):
  DRAFT → SENT                      (influencer)
  SENT  → ACCEPTED | REJECTED       (brand)
  SENT  → DRAFT                     (influencer pulls it back for edits)
  ACCEPTED, REJECTED are terminal.
ADMIN may perform any legal move.

Either party of the match (or ADMIN) may create a proposal; it starts as
DRAFT. Only an ACCEPTED proposal can back a transaction.

Layer rules:
  - No Flask imports. Commits are the route's responsibility - only flush here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.campaign import Campaign
from collabhub.app.models.match import Match
from collabhub.app.models.proposal import Proposal, ProposalStatus
from collabhub.app.models.user import Role
from collabhub.app.services import policy
from collabhub.app.services.match_service import get_match_or_404
from collabhub.app.services.notification_hub import Notification
from collabhub.app.services.policy import Actor


def get_proposal_or_404(proposal_id: int, session: Session) -> Proposal:
    proposal = session.get(Proposal, proposal_id)
    if proposal is None:
        raise AppError(
            ErrorCode.PROPOSAL_NOT_FOUND,
            f"Proposal {proposal_id} does not exist.",
            404,
        )
    return proposal


def build_proposal_dict(proposal: Proposal) -> dict:
    match = proposal.match
    return {
        "id": proposal.id,
        "match_id": proposal.match_id,
        "deliverables": proposal.deliverables,
        "amount": proposal.amount,
        "status": proposal.status,
        "created_at": proposal.created_at.isoformat() if proposal.created_at else None,
        "match": {
            "id": match.id,
            "campaign": {
                "id": match.campaign.id,
                "title": match.campaign.title,
                "brand_id": match.campaign.brand_id,
                "budget": match.campaign.budget,
            },
            "influencer": {
                "id": match.influencer.id,
                "name": match.influencer.name,
                "email": match.influencer.email,
            },
        },
    }


def list_proposals(actor: Actor, session: Session) -> list[dict]:
    """Brand: proposals on its campaigns. Influencer: its own matches. Admin: all."""
    stmt = (
        select(Proposal)
        .join(Match, Proposal.match_id == Match.id)
        .options(
            joinedload(Proposal.match).joinedload(Match.campaign),
            joinedload(Proposal.match).joinedload(Match.influencer),
        )
        .order_by(Proposal.created_at.desc(), Proposal.id.desc())
    )
    if actor.role == Role.BRAND:
        stmt = stmt.join(Campaign, Match.campaign_id == Campaign.id).where(
            Campaign.brand_id == actor.user_id
        )
    elif actor.role == Role.INFLUENCER:
        stmt = stmt.where(Match.influencer_id == actor.user_id)

    return [build_proposal_dict(p) for p in session.execute(stmt).unique().scalars().all()]


def create_proposal(actor: Actor, data: dict, session: Session) -> dict:
    """
    Raises:
      AppError(MATCH_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403) - caller is not a party to the match
    """
    match = get_match_or_404(data["match_id"], session)
    policy.require(
        actor,
        "proposal.create",
        brand_id=match.campaign.brand_id,
        influencer_id=match.influencer_id,
    )

    proposal = Proposal(
        match_id=match.id,
        deliverables=data["deliverables"],
        amount=data["amount"],
        status=ProposalStatus.DRAFT,
    )
    session.add(proposal)
    session.flush()
    session.refresh(proposal)
    return build_proposal_dict(proposal)


def update_status(
        proposal_id: int,
        next_status: str,
        actor: Actor,
        session: Session,
) -> tuple[dict, list[Notification]]:
    """
    Raises:
      AppError(PROPOSAL_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)          - not a party, or a status this role cannot set
      AppError(INVALID_TRANSITION, 409)
    """
    proposal = get_proposal_or_404(proposal_id, session)
    brand_id = proposal.match.campaign.brand_id
    influencer_id = proposal.match.influencer_id

    policy.require(
        actor,
        "proposal.transition",
        brand_id=brand_id,
        influencer_id=influencer_id,
        next_status=next_status,
    )
    policy.check_transition(policy.PROPOSAL_TRANSITIONS, proposal.status, next_status, "proposal")

    proposal.status = next_status
    session.flush()

    if actor.role == Role.BRAND:
        recipients = (influencer_id,)
    elif actor.role == Role.INFLUENCER:
        recipients = (brand_id,)
    else:
        recipients = (brand_id, influencer_id)

    notification = Notification(
        type="proposal.status.updated",
        message=f"Proposal #{proposal.id} is now {proposal.status}",
        data={
            "proposal_id": proposal.id,
            "match_id": proposal.match_id,
            "status": proposal.status,
        },
        user_ids=recipients,
    )
    return build_proposal_dict(proposal), [notification]
