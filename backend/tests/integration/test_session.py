"""
tests/integration/test_session.py — Session resolution through real requests.

GET /auth/me reports what the before_request hook resolved, so each row of
the resolution table is driven through it:

  header  access token      cookie        → result
  ──────  ────────────────  ────────────  ─────────────────────────────────
  absent  —                 valid         anonymous
  set     valid             —             authenticated, nothing minted
  set     invalid/expired   valid         authenticated, new access token
  set     "Bearer" only     valid         authenticated, new access token
  set     invalid           absent        anonymous
  set     invalid           invalid       anonymous
  set     refresh token     —             anonymous (no embedded token)
"""

from __future__ import annotations

from datetime import timedelta

from app.services.token_service import TokenPayload, TokenService

from .conftest import auth_headers, register

_TEST_SECRET = "testing-secret-with-at-least-32-bytes-of-key"


def _me(client, headers=None) -> dict:
    resp = client.get("/api/v1/auth/me", headers=headers or {})
    assert resp.status_code == 200
    return resp.get_json()["data"]


class TestHeaderAbsent:

    def test_cookie_alone_is_anonymous(self, app, client):
        data = register(client, "alice")
        fresh = app.test_client()
        fresh.set_cookie("refreshToken", data["refresh_token"])

        me = _me(fresh)
        assert me["current_user"] is None
        assert me["access_token"] is None


class TestValidAccessToken:

    def test_authenticated_without_minting(self, client):
        data = register(client, "alice")
        me = _me(client, auth_headers(data["access_token"]))
        assert me["current_user"]["id"] == data["user"]["id"]
        assert me["access_token"] is None

    def test_refresh_token_as_bearer_is_anonymous(self, app):
        """A refresh token verifies but carries no embedded refreshToken."""
        client = app.test_client()
        data = register(client, "alice")
        fresh = app.test_client()
        me = _me(fresh, auth_headers(data["refresh_token"]))
        assert me["current_user"] is None


class TestCookieFallback:

    def test_garbage_access_token_refreshes_from_cookie(self, app, client):
        data = register(client, "alice")
        fresh = app.test_client()
        fresh.set_cookie("refreshToken", data["refresh_token"])

        me = _me(fresh, auth_headers("not-a-jwt"))
        assert me["current_user"]["id"] == data["user"]["id"]
        assert me["access_token"]

        # The minted token is a working access token on its own.
        again = _me(app.test_client(), auth_headers(me["access_token"]))
        assert again["current_user"]["id"] == data["user"]["id"]

    def test_expired_access_token_refreshes_from_cookie(self, app, client):
        data = register(client, "alice")
        expired = TokenService(_TEST_SECRET).create_token(
            TokenPayload(refresh_token=data["refresh_token"]),
            timedelta(seconds=-5),
        )
        fresh = app.test_client()
        fresh.set_cookie("refreshToken", data["refresh_token"])

        me = _me(fresh, auth_headers(expired))
        assert me["current_user"]["id"] == data["user"]["id"]
        assert me["access_token"] not in (None, expired)

    def test_header_without_token_part_falls_back_to_cookie(self, app, client):
        data = register(client, "alice")
        fresh = app.test_client()
        fresh.set_cookie("refreshToken", data["refresh_token"])

        me = _me(fresh, {"Authorization": "Bearer"})
        assert me["current_user"]["id"] == data["user"]["id"]
        assert me["access_token"]

    def test_token_signed_with_other_secret_falls_back(self, app, client):
        data = register(client, "alice")
        forged = TokenService("another-secret-with-at-least-32-bytes!!").create_access_token(
            data["refresh_token"],
        )
        fresh = app.test_client()
        fresh.set_cookie("refreshToken", data["refresh_token"])

        me = _me(fresh, auth_headers(forged))
        assert me["current_user"]["id"] == data["user"]["id"]

    def test_protected_route_accepts_refreshed_session(self, app, client):
        data = register(client, "alice")
        fresh = app.test_client()
        fresh.set_cookie("refreshToken", data["refresh_token"])

        resp = fresh.get("/api/v1/notifications/", headers=auth_headers("expired-or-garbage"))
        assert resp.status_code == 200


class TestAnonymousFallbacks:

    def test_invalid_access_token_without_cookie(self, app):
        me = _me(app.test_client(), auth_headers("not-a-jwt"))
        assert me["current_user"] is None

    def test_invalid_access_token_with_invalid_cookie(self, app):
        fresh = app.test_client()
        fresh.set_cookie("refreshToken", "also-not-a-jwt")
        me = _me(fresh, auth_headers("not-a-jwt"))
        assert me["current_user"] is None
        assert me["access_token"] is None

    def test_protected_route_rejects_anonymous(self, app):
        resp = app.test_client().get("/api/v1/notifications/")
        assert resp.status_code == 401
        assert resp.get_json()["error"]["code"] == "UNAUTHENTICATED"
