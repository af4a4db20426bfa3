"""
services/auth_service.py - Account creation and credential checks.

Responsibilities:
  - User signup and credential validation
  - Password hashing (bcrypt) and verification
  - Delegating token issue/rotation/revocation to token_service

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP response objects
  - current_app.config is read for BCRYPT_LOG_ROUNDS only

Password storage:
  - Hashed with bcrypt (cost factor from config BCRYPT_LOG_ROUNDS, default 12)
  - Raw password is never stored, never logged
"""

from __future__ import annotations

import bcrypt
from flask import current_app
from sqlalchemy import select
from sqlalchemy.orm import Session

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.models.user import Role, User
from collabhub.app.services import token_service


# ── Private helpers ────────────────────────────────────────────────────────

def _hash_password(password: str) -> str:
    rounds = current_app.config.get("BCRYPT_LOG_ROUNDS", 12)
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def _find_by_email(email: str, session: Session) -> User | None:
    return session.scalars(select(User).where(User.email == email)).first()


def build_user_dict(user: User) -> dict:
    """Public account fields; never includes the password hash."""
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


# ── Public service functions ───────────────────────────────────────────────

def signup(
        name: str,
        email: str,
        password: str,
        role: str,
        session: Session,
) -> tuple[User, dict]:
    """
    Creates a new BRAND or INFLUENCER account and issues a token pair.

    Raises:
      AppError(DUPLICATE_EMAIL, 409) - email already registered

    Returns: (user, {"access_token": "...", "refresh_token": "..."})
    """
    existing = _find_by_email(email, session)
    if existing is not None:
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            f"The email address '{email}' is already registered.",
            409,
            field="email",
        )

    user = User(
        name=name,
        email=email,
        password_hash=_hash_password(password),
        role=role,
    )
    session.add(user)
    session.flush()  # populate user.id before creating the refresh token

    return user, token_service.issue(user, session)


def login(email: str, password: str, session: Session) -> tuple[User, dict]:
    """
    Validates credentials and issues a new token pair.

    Raises:
      AppError(INVALID_CREDENTIALS, 401) - email not found or password wrong.
      Uses the same error for both to avoid account enumeration.
    """
    user = _find_by_email(email, session)

    if user is None or not bcrypt.checkpw(
            password.encode("utf-8"),
            user.password_hash.encode("utf-8"),
    ):
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "The email or password is incorrect.",
            401,
        )

    return user, token_service.issue(user, session)


def logout(user_id: int, session: Session) -> int:
    """Ends every session of the user. Returns the number of refresh tokens revoked."""
    return token_service.revoke_all_active(user_id, session)


def get_current_user(user_id: int, session: Session) -> dict:
    """
    Account record for the caller of /auth/me.

    Raises:
      AppError(USER_NOT_FOUND, 404) - user_id from JWT no longer exists in DB.
    """
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
            404,
        )
    return build_user_dict(user)


def ensure_admin(email: str, password: str, name: str, session: Session) -> User:
    """
    Creates the ADMIN account for `email`, or promotes and re-keys an
    existing account. Used by the `flask create-admin` command; signup never
    hands out the ADMIN role.
    """
    user = _find_by_email(email, session)

    if user is None:
        user = User(name=name, email=email, password_hash="", role=Role.ADMIN)
        session.add(user)
    user.role = Role.ADMIN
    user.password_hash = _hash_password(password)
    session.flush()
    return user
