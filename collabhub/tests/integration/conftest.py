"""
tests/integration/conftest.py - Fixtures and helpers for all integration tests.

Design:
  - The app is created once per session using create_app("testing").
    TestingConfig points at in-memory SQLite unless TEST_DATABASE_URL is
    set (e.g. a throwaway PostgreSQL database).
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order and the
    notification hub is emptied, so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - signup(client, ...)          → {"user", "access_token", "csrf_token"}
  - login(client, ...)           → same shape
  - auth_headers(token)          → {"Authorization": "Bearer <token>"}
  - make_admin(app, client, ...) → signs up, promotes to ADMIN, logs in again
  - make_campaign(...)           → campaign dict
  - set_profile(...)             → profile dict

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test.

Most requests authenticate with a Bearer header, which is exempt from the
CSRF check. Cookie sessions are exercised explicitly in test_auth.py.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text, update

from collabhub.app import create_app
from collabhub.app.extensions import db as _db
from collabhub.app.extensions import notification_hub

# Children before parents.
_TABLES = (
    "audit_logs",
    "media_assets",
    "transactions",
    "proposals",
    "applications",
    "matches",
    "campaigns",
    "refresh_tokens",
    "users",
)


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.session.remove()
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows and buffered notifications after every test."""
    yield

    with app.app_context():
        _db.session.rollback()
        for table in _TABLES:
            _db.session.execute(text(f"DELETE FROM {table}"))
        _db.session.commit()

    notification_hub.reset()


@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def signup(
    client,
    name: str = "alice",
    role: str = "BRAND",
    email: str | None = None,
    password: str = "Password123",
) -> dict:
    """Creates an account and returns the response data dict."""
    if email is None:
        email = f"{name}@test.com"
    resp = client.post(
        "/api/v1/auth/signup",
        json={"name": name, "email": email, "password": password, "role": role},
    )
    assert resp.status_code == 201, f"signup failed: {resp.get_json()}"
    return resp.get_json()["data"]


def login(client, email: str, password: str = "Password123") -> dict:
    resp = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    return resp.get_json()["data"]


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def make_admin(app, client, name: str = "root") -> dict:
    """
    Signs up a BRAND account, promotes it to ADMIN directly in the database,
    and logs in again so the access token carries the ADMIN role.
    """
    from collabhub.app.models.user import Role, User

    data = signup(client, name, "BRAND")
    with app.app_context():
        _db.session.execute(
            update(User).where(User.id == data["user"]["id"]).values(role=Role.ADMIN)
        )
        _db.session.commit()
    return login(client, data["user"]["email"])


def make_campaign(
    client,
    token: str,
    title: str = "Summer Launch",
    budget: int = 5000,
    target_niche: str | None = "fitness",
) -> dict:
    resp = client.post(
        "/api/v1/campaigns",
        json={
            "title": title,
            "budget": budget,
            "description": "Promote the new collection.",
            "target_niche": target_niche,
        },
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_campaign failed: {resp.get_json()}"
    return resp.get_json()["data"]


def set_profile(client, token: str, **fields) -> dict:
    resp = client.patch(
        "/api/v1/users/profile",
        json=fields,
        headers=auth_headers(token),
    )
    assert resp.status_code == 200, f"set_profile failed: {resp.get_json()}"
    return resp.get_json()["data"]


def apply(client, token: str, campaign_id: int, message: str = "I would love to collaborate."):
    """Submits an application and returns the HTTP response."""
    return client.post(
        "/api/v1/applications",
        json={"campaign_id": campaign_id, "proposal_message": message},
        headers=auth_headers(token),
    )
