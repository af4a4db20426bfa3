"""
services/admin_service.py - Platform administration.

All functions assume the caller is ADMIN; the route's role gate enforces it.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.application import Application
from collabhub.app.models.campaign import Campaign
from collabhub.app.models.proposal import Proposal
from collabhub.app.models.transaction import Transaction
from collabhub.app.models.user import Role, User
from collabhub.app.services.scoring import looks_fraudulent
from collabhub.app.services.user_service import build_profile_dict

logger = logging.getLogger(__name__)


def overview(session: Session) -> dict:
    """Row counts for the main tables."""
    def count(model) -> int:
        return session.execute(select(func.count()).select_from(model)).scalar_one()

    return {
        "users": count(User),
        "campaigns": count(Campaign),
        "applications": count(Application),
        "transactions": count(Transaction),
        "proposals": count(Proposal),
    }


def list_users(session: Session, role: str | None = None) -> list[dict]:
    """Every user, newest first. An unknown `role` filter is ignored."""
    stmt = select(User).order_by(User.created_at.desc(), User.id.desc())
    role = (role or "").upper()
    if role in Role.ALL:
        stmt = stmt.where(User.role == role)
    return [build_profile_dict(u) for u in session.execute(stmt).scalars().all()]


def set_fraud_flag(user_id: int, is_fraud_flagged: bool, session: Session) -> dict:
    """
    Raises:
      AppError(USER_NOT_FOUND, 404)
    """
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
            404,
        )
    user.is_fraud_flagged = is_fraud_flagged
    session.flush()
    return {
        "id": user.id,
        "role": user.role,
        "name": user.name,
        "email": user.email,
        "is_fraud_flagged": user.is_fraud_flagged,
    }


def run_fraud_scan(session: Session) -> dict:
    """
    Re-evaluates every influencer with scoring.looks_fraudulent(). Flags are
    set on matches and cleared on everyone else, so manual flags do not
    survive a scan.
    """
    influencers = session.execute(
        select(User.id, User.followers, User.engagement_rate, User.follower_quality_score)
        .where(User.role == Role.INFLUENCER)
    ).all()

    flagged_ids = [
        row.id for row in influencers
        if looks_fraudulent(row.followers, row.engagement_rate, row.follower_quality_score)
    ]
    flagged = set(flagged_ids)
    clean_ids = [row.id for row in influencers if row.id not in flagged]

    if flagged_ids:
        session.execute(
            update(User).where(User.id.in_(flagged_ids)).values(is_fraud_flagged=True)
        )
    if clean_ids:
        session.execute(
            update(User).where(User.id.in_(clean_ids)).values(is_fraud_flagged=False)
        )
    session.flush()

    logger.info("Fraud scan flagged %d of %d influencer(s)", len(flagged_ids), len(influencers))
    return {"flagged_count": len(flagged_ids)}
