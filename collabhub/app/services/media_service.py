"""
services/media_service.py - Media asset records.

Files live with an external media host; this service only records the
hosted URL and public id. Attaching an asset to a campaign goes through
policy "media.attach": a brand may attach to its own campaigns, an
influencer only to campaigns it is matched with.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session, joinedload

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.match import Match
from collabhub.app.models.media_asset import MediaAsset
from collabhub.app.models.user import Role
from collabhub.app.services import policy
from collabhub.app.services.campaign_service import get_campaign_or_404
from collabhub.app.services.policy import Actor


def build_media_dict(asset: MediaAsset) -> dict:
    return {
        "id": asset.id,
        "user_id": asset.user_id,
        "campaign_id": asset.campaign_id,
        "url": asset.url,
        "public_id": asset.public_id,
        "resource_type": asset.resource_type,
        "created_at": asset.created_at.isoformat() if asset.created_at else None,
        "campaign": (
            {"id": asset.campaign.id, "title": asset.campaign.title}
            if asset.campaign is not None else None
        ),
    }


def list_media(actor: Actor, session: Session) -> list[dict]:
    stmt = (
        select(MediaAsset)
        .options(joinedload(MediaAsset.campaign))
        .order_by(MediaAsset.created_at.desc(), MediaAsset.id.desc())
    )
    if actor.role != Role.ADMIN:
        stmt = stmt.where(MediaAsset.user_id == actor.user_id)
    return [build_media_dict(a) for a in session.execute(stmt).unique().scalars().all()]


def create_media(actor: Actor, data: dict, session: Session) -> dict:
    """
    Raises:
      AppError(CAMPAIGN_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403) - campaign not owned by / not matched with the caller
    """
    campaign_id = data.get("campaign_id")

    if campaign_id:
        campaign = get_campaign_or_404(campaign_id, session)
        influencer_id = None
        if actor.role == Role.INFLUENCER:
            matched = session.execute(
                select(Match.id).where(
                    Match.campaign_id == campaign_id,
                    Match.influencer_id == actor.user_id,
                )
            ).first()
            influencer_id = actor.user_id if matched else None
        decision = policy.authorize(
            actor,
            "media.attach",
            brand_id=campaign.brand_id,
            influencer_id=influencer_id,
        )
        if not decision.allowed:
            raise AppError(
                ErrorCode.FORBIDDEN,
                "You cannot attach media to this campaign.",
                403,
                field="campaign_id",
            )

    asset = MediaAsset(
        user_id=actor.user_id,
        campaign_id=campaign_id or None,
        url=data["url"],
        public_id=data["public_id"],
        resource_type=data["resource_type"],
    )
    session.add(asset)
    session.flush()
    session.refresh(asset)
    return build_media_dict(asset)
