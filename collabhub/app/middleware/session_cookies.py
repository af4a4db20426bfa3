"""
middleware/session_cookies.py - Auth cookies for browser sessions.

Three cookies travel together:
  cp_access   HTTP-only  access JWT, lives as long as the JWT
  cp_refresh  HTTP-only  raw refresh token, scoped to /api/v1/auth
  cp_csrf     readable   CSRF token the SPA echoes in X-CSRF-Token on
                         mutating requests (double-submit check in
                         auth_middleware)

All three are set together after signup/login/refresh and cleared together
on logout or on any refresh failure.
"""

from __future__ import annotations

import secrets

from flask import Response, current_app

ACCESS_COOKIE = "cp_access"
REFRESH_COOKIE = "cp_refresh"
CSRF_COOKIE = "cp_csrf"
CSRF_HEADER = "X-CSRF-Token"
REFRESH_COOKIE_PATH = "/api/v1/auth"


def create_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def _cookie_options(http_only: bool, path: str = "/") -> dict:
    return {
        "httponly": http_only,
        "secure": current_app.config.get("AUTH_COOKIE_SECURE", False),
        "samesite": current_app.config.get("AUTH_COOKIE_SAMESITE", "Lax"),
        "domain": current_app.config.get("AUTH_COOKIE_DOMAIN"),
        "path": path,
    }


def set_auth_cookies(
        response: Response,
        access_token: str,
        refresh_token: str,
        csrf_token: str,
) -> Response:
    access_ttl = current_app.config["JWT_ACCESS_TOKEN_EXPIRES"]
    refresh_ttl = current_app.config["JWT_REFRESH_TOKEN_EXPIRES"]

    response.set_cookie(ACCESS_COOKIE, access_token, max_age=access_ttl, **_cookie_options(True))
    response.set_cookie(REFRESH_COOKIE, refresh_token, max_age=refresh_ttl,
                        **_cookie_options(True, REFRESH_COOKIE_PATH))
    response.set_cookie(CSRF_COOKIE, csrf_token, max_age=refresh_ttl, **_cookie_options(False))
    return response


def clear_auth_cookies(response: Response) -> Response:
    response.delete_cookie(ACCESS_COOKIE, **_cookie_options(True))
    response.delete_cookie(REFRESH_COOKIE, **_cookie_options(True, REFRESH_COOKIE_PATH))
    response.delete_cookie(CSRF_COOKIE, **_cookie_options(False))
    return response
