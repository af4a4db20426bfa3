"""
middleware/auth_middleware.py - Authentication and role decorators.

The @require_auth decorator:
  1. Takes the access token from "Authorization: Bearer <token>", or failing
     that from the cp_access cookie
  2. Verifies signature and expiry (token_service.decode_access_token)
  3. For cookie-authenticated mutating requests, enforces the CSRF
     double-submit check (cp_csrf cookie == X-CSRF-Token header).
     Bearer requests are exempt: browsers never attach them on their own.
  4. Attaches user_id (int), role and email to flask.g

The @require_roles(*roles) decorator rejects authenticated callers whose
role is not listed (403). Ownership checks are NOT done here; they belong
to services/policy.py. Middleware = authentication (401) + coarse role gate.

Error codes:
  TOKEN_MISSING  (401) - no bearer header and no access cookie
  TOKEN_INVALID  (401) - malformed header, invalid signature, or bad payload
  TOKEN_EXPIRED  (401) - valid token but exp claim is in the past
  CSRF_FAILED    (403) - cookie-authenticated write without a matching CSRF header
  FORBIDDEN      (403) - role not permitted (require_roles)
"""

from __future__ import annotations

import functools
import hmac
from typing import Callable

from flask import current_app, g, request

from collabhub.app.errors import AppError, ErrorCode
from collabhub.app.middleware.session_cookies import ACCESS_COOKIE, CSRF_COOKIE, CSRF_HEADER
from collabhub.app.services import token_service
from collabhub.app.services.policy import Actor

MUTATING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that enforces authentication.

    Raises AppError for all auth failures - the global error handler converts
    these to the correct JSON response. Routes never catch AppError.

    Usage:
        @campaigns_bp.route("/mine")
        @require_auth
        def my_campaigns():
            user_id = g.user_id  # always an int when this runs
            ...
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        _authenticate_request()
        return f(*args, **kwargs)

    return decorated


def require_roles(*roles: str) -> Callable:
    """
    Route decorator: authenticates, then requires g.role in `roles`.
    Implies @require_auth; do not stack both.
    """
    def decorator(f: Callable) -> Callable:
        @functools.wraps(f)
        def decorated(*args, **kwargs):
            _authenticate_request()
            if g.role not in roles:
                raise AppError(
                    ErrorCode.FORBIDDEN,
                    "Your account role does not permit this action.",
                    403,
                )
            return f(*args, **kwargs)

        return decorated

    return decorator


def current_actor() -> Actor:
    """The authenticated caller as a policy Actor. Only valid after require_auth."""
    return Actor(user_id=g.user_id, role=g.role)


def _extract_token() -> tuple[str, bool]:
    """Returns (token, from_cookie). Raises TOKEN_MISSING/TOKEN_INVALID."""
    auth_header = request.headers.get("Authorization", "")

    if auth_header:
        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            raise AppError(
                ErrorCode.TOKEN_INVALID,
                "Authorization header must be in the format: Bearer <token>.",
                401,
            )
        return parts[1], False

    cookie_token = request.cookies.get(ACCESS_COOKIE)
    if cookie_token:
        return cookie_token, True

    raise AppError(
        ErrorCode.TOKEN_MISSING,
        "Authentication required. Provide a Bearer token or sign in.",
        401,
    )


def _verify_csrf() -> None:
    if not current_app.config.get("CSRF_ENABLED", True):
        return
    if request.method not in MUTATING_METHODS:
        return

    cookie_value = request.cookies.get(CSRF_COOKIE, "")
    header_value = request.headers.get(CSRF_HEADER, "")
    if not cookie_value or not header_value or not hmac.compare_digest(cookie_value, header_value):
        raise AppError(
            ErrorCode.CSRF_FAILED,
            "CSRF token validation failed.",
            403,
        )


def _authenticate_request() -> None:
    """
    Performs the full authentication sequence and sets flask.g.

    Separated from the decorator wrapper so it can be called directly in
    tests without wrapping a real view function.
    """
    token, from_cookie = _extract_token()
    claims = token_service.decode_access_token(token)

    if from_cookie:
        _verify_csrf()

    g.user_id = claims["sub"]
    g.role = claims["role"]
    g.email = claims.get("email")
