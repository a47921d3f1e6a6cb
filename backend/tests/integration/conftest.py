"""
tests/integration/conftest.py — Fixtures and helpers for all integration tests.

Design:
  - Tests run against in-memory SQLite (TestingConfig). Flask-SQLAlchemy
    pins an in-memory database to one shared connection, so every request in
    a test sees the same data.
  - The app is created once per session using create_app("testing").
  - All tables are created once via db.create_all() at session start.
  - Between tests, all rows are deleted in FK-safe order so tests are isolated.

Helper functions (not fixtures) are provided for common operations:
  - register(client, ...)        → dict with user + access_token + refresh_token
  - login(client, ...)           → same shape as register
  - auth_headers(token)          → {"Authorization": "Bearer <token>"}
  - make_experience(client, ...) → experience card dict
  - seed_tag(app, name)          → tag id (tags have no create endpoint)
  - refresh_cookie(resp)         → value of the refreshToken Set-Cookie, or None

These are plain functions (not pytest fixtures) so they can be called with
arbitrary arguments in any test without fixture parameterization overhead.
"""

from __future__ import annotations

import pytest
from sqlalchemy import text

from app import create_app
from app.extensions import db as _db

# Children before parents.
_TABLES = (
    "notifications",
    "comment_likes",
    "comments",
    "experience_tags",
    "experience_favorites",
    "experience_attendees",
    "experiences",
    "tags",
    "user_follows",
    "users",
)


# ═══════════════════════════════════════════════════════════════════════════
# Session-scoped app fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(scope="session")
def app():
    """Creates the Flask application in 'testing' mode once for the entire test session."""
    flask_app = create_app("testing")

    with flask_app.app_context():
        _db.create_all()

    yield flask_app

    with flask_app.app_context():
        _db.drop_all()


# ═══════════════════════════════════════════════════════════════════════════
# Function-scoped test isolation
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture(autouse=True)
def clean_tables(app):
    """Deletes all rows after every test."""
    yield  # run the test

    with app.app_context():
        _db.session.rollback()  # discard any uncommitted state from a failed test

        with _db.engine.connect() as conn:
            for table in _TABLES:
                conn.execute(text(f"DELETE FROM {table}"))
            conn.commit()


# ═══════════════════════════════════════════════════════════════════════════
# Client fixture
# ═══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def client(app):
    """Flask test client. Each test gets a fresh client (function-scoped)."""
    return app.test_client()


# ═══════════════════════════════════════════════════════════════════════════
# Shared helper functions (not fixtures)
# ═══════════════════════════════════════════════════════════════════════════

def refresh_cookie(resp) -> str | None:
    """The refreshToken value set by this response, or None."""
    for header in resp.headers.getlist("Set-Cookie"):
        name, _, rest = header.partition("=")
        if name == "refreshToken":
            return rest.split(";", 1)[0]
    return None


def register(
    client,
    name: str = "alice",
    email: str | None = None,
    password: str = "Password1",
) -> dict:
    """
    Registers a new user and returns the response data dict, plus the
    refresh token read from the Set-Cookie header.
    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    if email is None:
        email = f"{name}@test.com"
    resp = client.post(
        "/api/v1/auth/register",
        json={"name": name, "email": email, "password": password},
    )
    assert resp.status_code == 201, f"register failed: {resp.get_json()}"
    return {**resp.get_json()["data"], "refresh_token": refresh_cookie(resp)}


def login(client, email: str, password: str = "Password1") -> dict:
    """Logs in a user. Same return shape as register()."""
    resp = client.post(
        "/api/v1/auth/login",
        json={"email": email, "password": password},
    )
    assert resp.status_code == 200, f"login failed: {resp.get_json()}"
    return {**resp.get_json()["data"], "refresh_token": refresh_cookie(resp)}


def auth_headers(token: str) -> dict:
    """Returns the Authorization header dict for use in test requests."""
    return {"Authorization": f"Bearer {token}"}


def experience_payload(**overrides) -> dict:
    payload = {
        "title": "Sunrise hike",
        "content": "Meet at the trailhead.",
        "scheduled_at": "2030-06-01T06:00:00+00:00",
        "location": {"display_name": "Trailhead", "lat": 46.5, "lon": 7.9},
    }
    payload.update(overrides)
    return payload


def make_experience(client, token: str, **overrides) -> dict:
    """Creates an experience owned by the token's user and returns its card."""
    resp = client.post(
        "/api/v1/experiences/",
        json=experience_payload(**overrides),
        headers=auth_headers(token),
    )
    assert resp.status_code == 201, f"make_experience failed: {resp.get_json()}"
    return resp.get_json()["data"]


def seed_tag(app, name: str) -> int:
    from app.models.tag import Tag

    with app.app_context():
        tag = Tag(name=name)
        _db.session.add(tag)
        _db.session.commit()
        return tag.id


def notifications_for(client, token: str) -> list[dict]:
    resp = client.get("/api/v1/notifications/", headers=auth_headers(token))
    assert resp.status_code == 200, f"notifications failed: {resp.get_json()}"
    return resp.get_json()["data"]["notifications"]
