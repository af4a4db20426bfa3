"""
services/application_service.py - Influencer applications to campaigns.

Lifecycle (policy.APPLICATION_TRANSITIONS):
  PENDING → APPROVED | REJECTED   (owning brand or ADMIN)
  PENDING → WITHDRAWN             (the applicant or ADMIN)
  APPROVED, REJECTED, WITHDRAWN are terminal.

Approving an application creates the (campaign, influencer) match if it
does not already exist, so the pair can move on to proposals.

Layer rules:
  - No Flask imports. Commits are the route's responsibility - only flush here.
  - Mutations return (result, notifications).
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.application import Application, ApplicationStatus
from collabhub.app.models.campaign import Campaign
from collabhub.app.models.user import Role
from collabhub.app.services import policy
from collabhub.app.services.campaign_service import get_campaign_or_404, require_open
from collabhub.app.services.match_service import ensure_match
from collabhub.app.services.notification_hub import Notification
from collabhub.app.services.policy import Actor


def build_application_dict(application: Application) -> dict:
    influencer = application.influencer
    return {
        "id": application.id,
        "campaign_id": application.campaign_id,
        "influencer_id": application.influencer_id,
        "proposal_message": application.proposal_message,
        "status": application.status,
        "created_at": application.created_at.isoformat() if application.created_at else None,
        "campaign": {
            "id": application.campaign.id,
            "title": application.campaign.title,
            "status": application.campaign.status,
            "brand_id": application.campaign.brand_id,
        },
        "influencer": {
            "id": influencer.id,
            "name": influencer.name,
            "email": influencer.email,
            "niche": influencer.niche,
            "followers": influencer.followers,
            "engagement_rate": influencer.engagement_rate,
            "follower_quality_score": influencer.follower_quality_score,
        },
    }


def list_applications(actor: Actor, session: Session) -> list[dict]:
    """Brand: applications to its campaigns. Influencer: its own. Admin: all."""
    stmt = (
        select(Application)
        .options(joinedload(Application.campaign), joinedload(Application.influencer))
        .order_by(Application.created_at.desc(), Application.id.desc())
    )
    if actor.role == Role.BRAND:
        stmt = stmt.join(Campaign, Application.campaign_id == Campaign.id).where(
            Campaign.brand_id == actor.user_id
        )
    elif actor.role == Role.INFLUENCER:
        stmt = stmt.where(Application.influencer_id == actor.user_id)

    return [build_application_dict(a) for a in session.execute(stmt).unique().scalars().all()]


def create_application(
        influencer_id: int,
        campaign_id: int,
        proposal_message: str,
        session: Session,
) -> tuple[dict, list[Notification]]:
    """
    Raises:
      AppError(CAMPAIGN_NOT_FOUND, 404)
      AppError(CAMPAIGN_CLOSED, 409)
      AppError(DUPLICATE_APPLICATION, 409) - already applied to this campaign
    """
    campaign = get_campaign_or_404(campaign_id, session)
    require_open(campaign)

    duplicate = AppError(
        ErrorCode.DUPLICATE_APPLICATION,
        "You already applied to this campaign.",
        409,
    )
    existing = session.execute(
        select(Application.id).where(
            Application.campaign_id == campaign_id,
            Application.influencer_id == influencer_id,
        )
    ).scalar_one_or_none()
    if existing is not None:
        raise duplicate

    application = Application(
        campaign_id=campaign_id,
        influencer_id=influencer_id,
        proposal_message=proposal_message,
        status=ApplicationStatus.PENDING,
    )
    try:
        with session.begin_nested():
            session.add(application)
    except IntegrityError:
        raise duplicate

    session.refresh(application)
    notification = Notification(
        type="application.created",
        message=f"New application received for campaign #{campaign_id}",
        data={"application_id": application.id, "campaign_id": campaign_id},
        user_ids=(campaign.brand_id,),
    )
    return build_application_dict(application), [notification]


def update_status(
        application_id: int,
        next_status: str,
        actor: Actor,
        session: Session,
) -> tuple[dict, list[Notification]]:
    """
    Moves an application to `next_status`.

    Raises:
      AppError(APPLICATION_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)          - not a party, or a status this role cannot set
      AppError(INVALID_TRANSITION, 409) - e.g. APPROVED → WITHDRAWN
    """
    application = session.get(Application, application_id)
    if application is None:
        raise AppError(
            ErrorCode.APPLICATION_NOT_FOUND,
            f"Application {application_id} does not exist.",
            404,
        )

    policy.require(
        actor,
        "application.transition",
        brand_id=application.campaign.brand_id,
        influencer_id=application.influencer_id,
        next_status=next_status,
    )
    policy.check_transition(
        policy.APPLICATION_TRANSITIONS,
        application.status,
        next_status,
        "application",
    )

    application.status = next_status
    if next_status == ApplicationStatus.APPROVED:
        ensure_match(application.campaign_id, application.influencer_id, session)
    session.flush()

    notification = Notification(
        type="application.status.updated",
        message=f"Your application #{application.id} is now {application.status}",
        data={
            "application_id": application.id,
            "status": application.status,
            "campaign_id": application.campaign_id,
        },
        user_ids=(application.influencer_id,),
    )
    return build_application_dict(application), [notification]
