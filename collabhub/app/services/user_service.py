"""
services/user_service.py - Profiles and influencer directory.

Fraud flag:
  When an influencer edits their metrics, is_fraud_flagged is recomputed
  with scoring.looks_fraudulent(). Brands and admins have no metrics, so
  their flag is left alone (admins set it manually via admin_service).

Profile views:
  get_public_profile() increments profile_views when someone other than the
  owner views an influencer profile. The counter is bumped with an UPDATE
  expression so concurrent viewers do not lose increments.

Layer rules:
  - No Flask imports. Commits are the route's responsibility.
"""

from __future__ import annotations

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.user import Role, User
from collabhub.app.services.scoring import looks_fraudulent

_EDITABLE_FIELDS = ("name", "niche", "followers", "engagement_rate", "follower_quality_score")
_METRIC_FIELDS = ("followers", "engagement_rate", "follower_quality_score")


def _get_user_or_404(user_id: int, session: Session) -> User:
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
            404,
        )
    return user


def build_profile_dict(user: User, include_email: bool = True) -> dict:
    profile = {
        "id": user.id,
        "name": user.name,
        "role": user.role,
        "niche": user.niche,
        "followers": user.followers,
        "engagement_rate": user.engagement_rate,
        "follower_quality_score": user.follower_quality_score,
        "is_fraud_flagged": user.is_fraud_flagged,
        "profile_views": user.profile_views,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }
    if include_email:
        profile["email"] = user.email
    return profile


def list_influencers(session: Session) -> list[dict]:
    """All influencer accounts, newest first."""
    influencers = session.execute(
        select(User)
        .where(User.role == Role.INFLUENCER)
        .order_by(User.created_at.desc(), User.id.desc())
    ).scalars().all()
    return [build_profile_dict(user) for user in influencers]


def update_profile(user_id: int, data: dict, session: Session) -> dict:
    """
    Applies a partial profile update. `data` is the validated
    UpdateProfileSchema payload; absent keys are left unchanged.

    Raises:
      AppError(USER_NOT_FOUND, 404)
    """
    user = _get_user_or_404(user_id, session)

    for key in _EDITABLE_FIELDS:
        if key in data:
            setattr(user, key, data[key])

    if user.role == Role.INFLUENCER and any(key in data for key in _METRIC_FIELDS):
        user.is_fraud_flagged = looks_fraudulent(
            user.followers,
            user.engagement_rate,
            user.follower_quality_score,
        )

    session.flush()
    return build_profile_dict(user)


def get_public_profile(user_id: int, viewer_id: int, session: Session) -> dict:
    """
    Returns another user's public profile (no email unless it is the
    viewer's own). Viewing someone else's influencer profile counts a view.

    Raises:
      AppError(USER_NOT_FOUND, 404)
    """
    user = _get_user_or_404(user_id, session)
    own_profile = user.id == viewer_id

    if user.role == Role.INFLUENCER and not own_profile:
        session.execute(
            update(User)
            .where(User.id == user.id)
            .values(profile_views=User.profile_views + 1)
        )
        session.refresh(user, attribute_names=["profile_views"])

    return build_profile_dict(user, include_email=own_profile)
