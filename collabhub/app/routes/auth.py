"""
routes/auth.py - Authentication route handlers.

Layer rules:
  - Parse request body
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Commit the DB session
  - Return the standard response envelope: {"data": {...}, "warnings": []}

Browser sessions ride on cookies (middleware/session_cookies.py); the access
token is also returned in the body for bearer clients.

/refresh is the one handler that catches an AppError: a RefreshTokenError
may carry pending revocations (reuse detection, expiry), so the session is
committed before the 401 goes out, and every auth cookie is cleared.

Endpoints (base url_prefix=/api/v1/auth):
  POST   /auth/signup    → 201
  POST   /auth/login     → 200
  POST   /auth/refresh   → 200 | 401
  POST   /auth/logout    → 200
  GET    /auth/me        → 200
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request
from marshmallow import ValidationError

from collabhub.app.errors import RefreshTokenError
from collabhub.app.extensions import db
from collabhub.app.middleware.auth_middleware import require_auth
from collabhub.app.middleware.request_context import audit
from collabhub.app.middleware.session_cookies import (
    REFRESH_COOKIE,
    clear_auth_cookies,
    create_csrf_token,
    set_auth_cookies,
)
from collabhub.app.schemas.auth_schema import LoginSchema, RefreshTokenSchema, SignupSchema
from collabhub.app.services import auth_service, token_service

auth_bp = Blueprint("auth", __name__)


def _session_response(user, tokens: dict, status: int):
    """Body + cookies shared by signup and login."""
    csrf_token = create_csrf_token()
    response = jsonify({
        "data": {
            "user": auth_service.build_user_dict(user),
            "access_token": tokens["access_token"],
            "csrf_token": csrf_token,
        },
        "warnings": [],
    })
    response.status_code = status
    return set_auth_cookies(response, tokens["access_token"], tokens["refresh_token"], csrf_token)


@auth_bp.route("/signup", methods=["POST"])
def signup():
    """POST /auth/signup - Create a BRAND or INFLUENCER account; start a session."""
    data = SignupSchema().load(request.get_json(silent=True) or {})
    user, tokens = auth_service.signup(
        name=data["name"],
        email=data["email"],
        password=data["password"],
        role=data["role"],
        session=db.session,
    )
    audit("auth.signup", "user", user.id, actor_id=user.id)
    db.session.commit()
    return _session_response(user, tokens, 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login - Authenticate; start a session."""
    data = LoginSchema().load(request.get_json(silent=True) or {})
    user, tokens = auth_service.login(
        email=data["email"],
        password=data["password"],
        session=db.session,
    )
    audit("auth.login", "user", user.id, actor_id=user.id)
    db.session.commit()
    return _session_response(user, tokens, 200)


def _body_refresh_token() -> str | None:
    # A malformed body counts as no token, so it fails like any other refresh.
    try:
        return RefreshTokenSchema().load(request.get_json(silent=True) or {})["refresh_token"]
    except ValidationError:
        return None


@auth_bp.route("/refresh", methods=["POST"])
def refresh():
    """
    POST /auth/refresh - Rotate the refresh token; issue a new access token.
    Reads the cp_refresh cookie, or `refresh_token` in the JSON body.
    """
    raw_token = request.cookies.get(REFRESH_COOKIE) or _body_refresh_token()

    try:
        result = token_service.rotate(raw_token, db.session)
    except RefreshTokenError as error:
        db.session.commit()
        current_app.logger.warning(
            "Refresh rejected (reason=%s, user_id=%s)", error.reason, error.user_id,
        )
        response = jsonify(error.to_dict())
        response.status_code = error.http_status
        return clear_auth_cookies(response)

    user = result["user"]
    audit("auth.refresh", "session", user.id, actor_id=user.id)
    db.session.commit()

    csrf_token = create_csrf_token()
    response = jsonify({
        "data": {
            "access_token": result["access_token"],
            "csrf_token": csrf_token,
        },
        "warnings": [],
    })
    return set_auth_cookies(response, result["access_token"], result["refresh_token"], csrf_token)


@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    """POST /auth/logout - Revoke every refresh token of the caller; clear cookies."""
    revoked = auth_service.logout(user_id=g.user_id, session=db.session)
    audit("auth.logout", "user", g.user_id, metadata={"revoked_tokens": revoked})
    db.session.commit()
    response = jsonify({"data": {"message": "Logged out successfully."}, "warnings": []})
    return clear_auth_cookies(response)


@auth_bp.route("/me", methods=["GET"])
@require_auth
def me():
    """GET /auth/me - Return current user profile. (Auth required.)"""
    result = auth_service.get_current_user(
        user_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
