"""
services/token_service.py - Access tokens and rotating refresh tokens.

Token design:
  - Access token: JWT (HS256), short TTL, claims sub (user id as str), role,
    email, iat, exp, jti. Never stored server-side; validity is signature +
    expiry only.
  - Refresh token: 48 random bytes, hex encoded. Only its SHA-256 digest is
    stored. The raw value is handed to the client once (HTTP-only cookie).

Rotation with reuse detection:
  Every successful refresh revokes the presented record and links it to its
  successor (replaced_by_token_id), forming a chain per login. A token can
  therefore succeed at most once. Presenting a token that is already revoked
  means someone replayed an old link: every active token of that user is
  revoked, which logs out the legitimate session as well as the attacker.

  rotate() locks the matched row (SELECT ... FOR UPDATE) so that two
  concurrent rotations of one token serialize on databases that support
  row locks. SQLite ignores the clause.

Layer rules:
  - No flask.request, flask.g or HTTP status codes.
  - current_app.config is read for JWT secret, algorithm and TTLs only.
  - Commits are the route's responsibility - only flush here. Failure paths
    that revoke tokens leave those changes pending; the route commits them
    before answering 401.
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import datetime, timezone

import jwt
from flask import current_app
from sqlalchemy import select, update
from sqlalchemy.orm import Session

from collabhub.app.errors import AppError, ErrorCode, RefreshTokenError
from collabhub.app.models.refresh_token import RefreshToken
from collabhub.app.models.user import User


# ── Private helpers ────────────────────────────────────────────────────────

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    """SQLite hands back naive datetimes; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _hash_token(raw_token: str) -> str:
    """SHA-256 hex digest of a raw token string. Used for refresh token storage."""
    return hashlib.sha256(raw_token.encode("utf-8")).hexdigest()


def _new_refresh_secret() -> str:
    return secrets.token_hex(48)


def _create_access_token(user: User) -> str:
    """
    Creates a signed JWT access token for `user`.
    TTL from current_app.config["JWT_ACCESS_TOKEN_EXPIRES"] (timedelta).
    """
    now = _utcnow()
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "email": user.email,
        "iat": now,
        "exp": now + current_app.config["JWT_ACCESS_TOKEN_EXPIRES"],
        # Guarantees each issued token is unique even if generated in the same second.
        "jti": secrets.token_hex(8),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET_KEY"],
        algorithm=current_app.config.get("JWT_ALGORITHM", "HS256"),
    )


def _store_refresh_token(user_id: int, session: Session) -> tuple[str, RefreshToken]:
    """
    Creates a refresh token record and returns (raw_token, record).
    The raw value is never stored.
    """
    raw_token = _new_refresh_secret()
    now = _utcnow()
    record = RefreshToken(
        user_id=user_id,
        token_hash=_hash_token(raw_token),
        issued_at=now,
        expires_at=now + current_app.config["JWT_REFRESH_TOKEN_EXPIRES"],
    )
    session.add(record)
    # flush so record.id exists for the replaced_by link; commit is the route's job
    session.flush()
    return raw_token, record


# ── Public service functions ───────────────────────────────────────────────

def issue(user: User, session: Session) -> dict:
    """
    Issues a fresh access/refresh pair for `user` (signup, login).
    Inserts exactly one RefreshToken row.

    Returns: {"access_token": "...", "refresh_token": "..."}
    """
    raw_refresh, _record = _store_refresh_token(user.id, session)
    return {
        "access_token": _create_access_token(user),
        "refresh_token": raw_refresh,
    }


def rotate(raw_refresh_token: str | None, session: Session) -> dict:
    """
    Exchanges a refresh token for a new access/refresh pair.

    Raises RefreshTokenError (401) with reason:
      missing   - no token presented
      not_found - no record for this token
      reused    - record already revoked; all of the user's active tokens
                  are revoked before raising
      expired   - record past its expiry; it is revoked before raising

    Returns: {"access_token": "...", "refresh_token": "...", "user": User}
    """
    if not raw_refresh_token:
        raise RefreshTokenError(
            ErrorCode.REFRESH_TOKEN_MISSING,
            "A refresh token is required.",
            reason="missing",
        )

    record = session.execute(
        select(RefreshToken)
        .where(RefreshToken.token_hash == _hash_token(raw_refresh_token))
        .with_for_update()
    ).scalar_one_or_none()

    if record is None:
        raise RefreshTokenError(
            ErrorCode.REFRESH_TOKEN_INVALID,
            "The refresh token is invalid.",
            reason="not_found",
        )

    if record.revoked:
        revoke_all_active(record.user_id, session)
        raise RefreshTokenError(
            ErrorCode.REFRESH_TOKEN_REUSED,
            "Refresh token reuse detected. Please log in again.",
            reason="reused",
            user_id=record.user_id,
        )

    now = _utcnow()
    if _as_utc(record.expires_at) <= now:
        record.revoked_at = now
        session.flush()
        raise RefreshTokenError(
            ErrorCode.REFRESH_TOKEN_INVALID,
            "The refresh token has expired.",
            reason="expired",
            user_id=record.user_id,
        )

    raw_next, next_record = _store_refresh_token(record.user_id, session)
    record.revoked_at = now
    record.replaced_by_token_id = next_record.id
    session.flush()

    user = record.user
    return {
        "access_token": _create_access_token(user),
        "refresh_token": raw_next,
        "user": user,
    }


def revoke_all_active(user_id: int, session: Session) -> int:
    """
    Marks every non-revoked refresh token of `user_id` as revoked.
    Used on logout and on reuse detection. Returns the number of rows revoked.
    """
    result = session.execute(
        update(RefreshToken)
        .where(
            RefreshToken.user_id == user_id,
            RefreshToken.revoked_at.is_(None),
        )
        .values(revoked_at=_utcnow())
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def decode_access_token(token: str) -> dict:
    """
    Verifies an access token and returns its claims.

    Raises:
      AppError(TOKEN_EXPIRED, 401) - signature valid, exp in the past
      AppError(TOKEN_INVALID, 401) - anything else (bad signature, malformed,
                                     missing sub/role)
    """
    try:
        claims = jwt.decode(
            token,
            current_app.config["JWT_SECRET_KEY"],
            algorithms=[current_app.config.get("JWT_ALGORITHM", "HS256")],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise AppError(
            ErrorCode.TOKEN_EXPIRED,
            "The access token has expired. Use POST /auth/refresh to obtain a new one.",
            401,
        )
    except jwt.InvalidTokenError:
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is invalid or has been tampered with.",
            401,
        )

    try:
        claims["sub"] = int(claims["sub"])
    except (TypeError, ValueError):
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The 'sub' claim in the access token is not a valid user ID.",
            401,
        )

    if not claims.get("role"):
        raise AppError(
            ErrorCode.TOKEN_INVALID,
            "The access token is missing the required 'role' claim.",
            401,
        )

    return claims
