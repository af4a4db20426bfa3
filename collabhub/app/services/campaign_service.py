"""
services/campaign_service.py - Campaign business logic.

Authorization:
  - Only BRAND accounts create campaigns (role gate in the route).
  - Closing goes through policy "campaign.manage": the owning brand or ADMIN.

Closing is idempotent: closing a CLOSED campaign returns it unchanged.

Layer rules:
  - No Flask imports. Commits are the route's responsibility - only flush here.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.campaign import Campaign, CampaignStatus
from collabhub.app.models.user import Role
from collabhub.app.services import policy
from collabhub.app.services.policy import Actor


def get_campaign_or_404(campaign_id: int, session: Session) -> Campaign:
    campaign = session.get(Campaign, campaign_id)
    if campaign is None:
        raise AppError(
            ErrorCode.CAMPAIGN_NOT_FOUND,
            f"Campaign {campaign_id} does not exist.",
            404,
        )
    return campaign


def build_campaign_dict(campaign: Campaign, include_brand: bool = False) -> dict:
    payload = {
        "id": campaign.id,
        "brand_id": campaign.brand_id,
        "title": campaign.title,
        "description": campaign.description,
        "budget": campaign.budget,
        "target_niche": campaign.target_niche,
        "status": campaign.status,
        "created_at": campaign.created_at.isoformat() if campaign.created_at else None,
    }
    if include_brand:
        payload["brand"] = {"id": campaign.brand.id, "name": campaign.brand.name}
    return payload


def list_campaigns(session: Session) -> list[dict]:
    """Every campaign, newest first, with its brand's id and name. Public."""
    campaigns = session.execute(
        select(Campaign)
        .options(joinedload(Campaign.brand))
        .order_by(Campaign.created_at.desc(), Campaign.id.desc())
    ).scalars().all()
    return [build_campaign_dict(c, include_brand=True) for c in campaigns]


def list_own_campaigns(actor: Actor, session: Session) -> list[dict]:
    """The brand's own campaigns; every campaign for ADMIN."""
    stmt = select(Campaign).order_by(Campaign.created_at.desc(), Campaign.id.desc())
    if actor.role != Role.ADMIN:
        stmt = stmt.where(Campaign.brand_id == actor.user_id)
    return [build_campaign_dict(c) for c in session.execute(stmt).scalars().all()]


def create_campaign(brand_id: int, data: dict, session: Session) -> dict:
    """Creates an OPEN campaign owned by `brand_id`. `data` is schema-validated."""
    campaign = Campaign(
        brand_id=brand_id,
        title=data["title"],
        description=data.get("description") or "",
        budget=data["budget"],
        target_niche=data.get("target_niche"),
        status=CampaignStatus.OPEN,
    )
    session.add(campaign)
    session.flush()
    session.refresh(campaign)
    return build_campaign_dict(campaign)


def close_campaign(campaign_id: int, actor: Actor, session: Session) -> dict:
    """
    Raises:
      AppError(CAMPAIGN_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403) - not the owning brand
    """
    campaign = get_campaign_or_404(campaign_id, session)
    policy.require(actor, "campaign.manage", brand_id=campaign.brand_id)

    campaign.status = CampaignStatus.CLOSED
    session.flush()
    return build_campaign_dict(campaign)


def require_open(campaign: Campaign) -> None:
    """Raises AppError(CAMPAIGN_CLOSED, 409) unless the campaign is OPEN."""
    if campaign.status != CampaignStatus.OPEN:
        raise AppError(
            ErrorCode.CAMPAIGN_CLOSED,
            f"Campaign {campaign.id} is closed.",
            409,
        )
