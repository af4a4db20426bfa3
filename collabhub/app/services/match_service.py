"""
services/match_service.py - Matches and influencer recommendations.

A match pairs one influencer with one campaign. It is created either
directly by the owning brand (an invitation) or by application_service when
a brand approves an application (ensure_match).

Recommendations rank every influencer for a campaign with
scoring.match_score() and annotate each with whether they are already
matched and the status of any application they sent.

Layer rules:
  - No Flask imports. Commits are the route's responsibility - only flush here.
  - Domain mutations return (result, notifications); the route publishes the
    notifications after commit.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.application import Application
from collabhub.app.models.campaign import Campaign
from collabhub.app.models.match import Match
from collabhub.app.models.user import Role, User
from collabhub.app.services import policy, scoring
from collabhub.app.services.campaign_service import get_campaign_or_404, require_open
from collabhub.app.services.notification_hub import Notification
from collabhub.app.services.policy import Actor


# ── Private helpers ────────────────────────────────────────────────────────

def _find_match(campaign_id: int, influencer_id: int, session: Session) -> Match | None:
    return session.execute(
        select(Match).where(
            Match.campaign_id == campaign_id,
            Match.influencer_id == influencer_id,
        )
    ).scalar_one_or_none()


def require_influencer(influencer_id: int, session: Session) -> User:
    """Raises AppError(INVALID_INFLUENCER, 400) unless the id is an influencer account."""
    influencer = session.get(User, influencer_id)
    if influencer is None or influencer.role != Role.INFLUENCER:
        raise AppError(
            ErrorCode.INVALID_INFLUENCER,
            "influencer_id must point to an influencer account.",
            400,
            field="influencer_id",
        )
    return influencer


def build_match_dict(match: Match) -> dict:
    return {
        "id": match.id,
        "campaign_id": match.campaign_id,
        "influencer_id": match.influencer_id,
        "created_at": match.created_at.isoformat() if match.created_at else None,
        "campaign": {
            "id": match.campaign.id,
            "title": match.campaign.title,
            "budget": match.campaign.budget,
            "status": match.campaign.status,
            "brand_id": match.campaign.brand_id,
        },
        "influencer": {
            "id": match.influencer.id,
            "name": match.influencer.name,
            "email": match.influencer.email,
        },
    }


def get_match_or_404(match_id: int, session: Session) -> Match:
    match = session.get(Match, match_id)
    if match is None:
        raise AppError(
            ErrorCode.MATCH_NOT_FOUND,
            f"Match {match_id} does not exist.",
            404,
        )
    return match


def ensure_match(campaign_id: int, influencer_id: int, session: Session) -> Match:
    """Returns the existing match for the pair, creating it if absent."""
    match = _find_match(campaign_id, influencer_id, session)
    if match is not None:
        return match
    match = Match(campaign_id=campaign_id, influencer_id=influencer_id)
    session.add(match)
    session.flush()
    return match


# ── Public service functions ───────────────────────────────────────────────

def list_matches(actor: Actor, session: Session) -> list[dict]:
    """Brand: matches on its campaigns. Influencer: its own. Admin: all."""
    stmt = (
        select(Match)
        .options(joinedload(Match.campaign), joinedload(Match.influencer))
        .order_by(Match.created_at.desc(), Match.id.desc())
    )
    if actor.role == Role.BRAND:
        stmt = stmt.join(Campaign, Match.campaign_id == Campaign.id).where(
            Campaign.brand_id == actor.user_id
        )
    elif actor.role == Role.INFLUENCER:
        stmt = stmt.where(Match.influencer_id == actor.user_id)

    return [build_match_dict(m) for m in session.execute(stmt).unique().scalars().all()]


def create_match(
        actor: Actor,
        campaign_id: int,
        influencer_id: int,
        session: Session,
) -> tuple[dict, list[Notification]]:
    """
    Invites an influencer to a campaign.

    Raises:
      AppError(CAMPAIGN_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)          - campaign belongs to another brand
      AppError(CAMPAIGN_CLOSED, 409)
      AppError(INVALID_INFLUENCER, 400) - influencer_id is not an influencer
      AppError(DUPLICATE_MATCH, 409)
    """
    campaign = get_campaign_or_404(campaign_id, session)
    policy.require(actor, "match.create", brand_id=campaign.brand_id)
    require_open(campaign)
    require_influencer(influencer_id, session)

    duplicate = AppError(
        ErrorCode.DUPLICATE_MATCH,
        "This influencer is already matched to the campaign.",
        409,
    )
    if _find_match(campaign_id, influencer_id, session) is not None:
        raise duplicate

    match = Match(campaign_id=campaign_id, influencer_id=influencer_id)
    try:
        with session.begin_nested():
            session.add(match)
    except IntegrityError:
        raise duplicate

    notification = Notification(
        type="match.created",
        message=f"You were invited to campaign #{campaign_id}",
        data={"campaign_id": campaign_id, "influencer_id": influencer_id, "match_id": match.id},
        user_ids=(influencer_id,),
    )
    session.refresh(match)
    return build_match_dict(match), [notification]


def recommend(actor: Actor, campaign_id: int, session: Session) -> dict:
    """
    Scores every influencer against the campaign, best first (ties broken by
    follower count).

    Raises:
      AppError(CAMPAIGN_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403) - campaign belongs to another brand
    """
    campaign = get_campaign_or_404(campaign_id, session)
    policy.require(actor, "match.recommend", brand_id=campaign.brand_id)

    influencers = session.execute(
        select(User).where(User.role == Role.INFLUENCER)
    ).scalars().all()

    application_status = dict(session.execute(
        select(Application.influencer_id, Application.status)
        .where(Application.campaign_id == campaign_id)
    ).all())
    matched = set(session.execute(
        select(Match.influencer_id).where(Match.campaign_id == campaign_id)
    ).scalars().all())

    items = []
    for influencer in influencers:
        score = scoring.match_score(
            engagement_rate=influencer.engagement_rate,
            niche=influencer.niche,
            target_niche=campaign.target_niche,
            follower_quality_score=influencer.follower_quality_score,
            is_fraud_flagged=influencer.is_fraud_flagged,
        )
        items.append({
            "influencer": {
                "id": influencer.id,
                "name": influencer.name,
                "email": influencer.email,
                "niche": influencer.niche,
                "followers": influencer.followers,
                "engagement_rate": influencer.engagement_rate,
                "follower_quality_score": influencer.follower_quality_score,
                "is_fraud_flagged": influencer.is_fraud_flagged,
            },
            **score,
            "already_matched": influencer.id in matched,
            "application_status": application_status.get(influencer.id),
        })

    items.sort(key=lambda item: (item["match_score"], item["influencer"]["followers"] or 0),
               reverse=True)

    return {
        "campaign": {
            "id": campaign.id,
            "title": campaign.title,
            "target_niche": campaign.target_niche,
        },
        "formula": scoring.SCORE_FORMULA,
        "items": items,
    }
