"""
tests/integration/test_experiences.py — Experiences, search, attendance and favorites.

Notification side effects of attendance are asserted here; the cross-cutting
scenarios live in test_notifications.py.
"""

from __future__ import annotations

from .conftest import (
    auth_headers,
    experience_payload,
    make_experience,
    notifications_for,
    register,
    seed_tag,
)


# ═══════════════════════════════════════════════════════════════════════════
# Create / read / edit / delete
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateExperience:

    def test_create_returns_card(self, app, client):
        alice = register(client, "alice")
        hiking = seed_tag(app, "hiking")

        exp = make_experience(client, alice["access_token"], tag_ids=[hiking, hiking])
        assert exp["title"] == "Sunrise hike"
        assert exp["user"]["id"] == alice["user"]["id"]
        assert "email" not in exp["user"]
        assert exp["location"] == {"display_name": "Trailhead", "lat": 46.5, "lon": 7.9}
        assert [t["name"] for t in exp["tags"]] == ["hiking"]
        assert exp["attendees_count"] == 0
        assert exp["is_attending"] is False
        assert exp["is_favorited"] is False

    def test_unknown_tag_returns_404(self, client):
        alice = register(client, "alice")
        resp = client.post(
            "/api/v1/experiences/",
            json=experience_payload(tag_ids=[4242]),
            headers=auth_headers(alice["access_token"]),
        )
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "TAG_NOT_FOUND"

    def test_missing_title_returns_400(self, client):
        alice = register(client, "alice")
        payload = experience_payload()
        del payload["title"]
        resp = client.post(
            "/api/v1/experiences/",
            json=payload,
            headers=auth_headers(alice["access_token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "MISSING_FIELD"

    def test_invalid_url_returns_400(self, client):
        alice = register(client, "alice")
        resp = client.post(
            "/api/v1/experiences/",
            json=experience_payload(url="not a url"),
            headers=auth_headers(alice["access_token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "url"

    def test_create_requires_auth(self, client):
        resp = client.post("/api/v1/experiences/", json=experience_payload())
        assert resp.status_code == 401


class TestGetExperience:

    def test_detail_includes_attendees_and_viewer_state(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])

        client.post(
            f"/api/v1/experiences/{exp['id']}/attend",
            headers=auth_headers(bob["access_token"]),
        )

        data = client.get(
            f"/api/v1/experiences/{exp['id']}",
            headers=auth_headers(bob["access_token"]),
        ).get_json()["data"]
        assert data["attendees_count"] == 1
        assert [a["id"] for a in data["attendees"]] == [bob["user"]["id"]]
        assert data["is_attending"] is True

        anonymous = client.get(f"/api/v1/experiences/{exp['id']}").get_json()["data"]
        assert anonymous["is_attending"] is False

    def test_unknown_experience_returns_404(self, client):
        resp = client.get("/api/v1/experiences/99999")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "EXPERIENCE_NOT_FOUND"


class TestEditDeleteExperience:

    def test_owner_can_edit(self, app, client):
        alice = register(client, "alice")
        food = seed_tag(app, "food")
        exp = make_experience(client, alice["access_token"])

        resp = client.patch(
            f"/api/v1/experiences/{exp['id']}",
            json=experience_payload(title="Sunset hike", tag_ids=[food]),
            headers=auth_headers(alice["access_token"]),
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["title"] == "Sunset hike"
        assert [t["id"] for t in data["tags"]] == [food]

    def test_non_owner_cannot_edit_or_delete(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])

        edit = client.patch(
            f"/api/v1/experiences/{exp['id']}",
            json=experience_payload(title="Mine now"),
            headers=auth_headers(bob["access_token"]),
        )
        assert edit.status_code == 403

        delete = client.delete(
            f"/api/v1/experiences/{exp['id']}",
            headers=auth_headers(bob["access_token"]),
        )
        assert delete.status_code == 403

    def test_delete_cascades_to_notifications(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])
        client.post(
            f"/api/v1/experiences/{exp['id']}/attend",
            headers=auth_headers(bob["access_token"]),
        )
        assert len(notifications_for(client, alice["access_token"])) == 1

        resp = client.delete(
            f"/api/v1/experiences/{exp['id']}",
            headers=auth_headers(alice["access_token"]),
        )
        assert resp.status_code == 200
        assert client.get(f"/api/v1/experiences/{exp['id']}").status_code == 404
        assert notifications_for(client, alice["access_token"]) == []


# ═══════════════════════════════════════════════════════════════════════════
# Feed and search
# ═══════════════════════════════════════════════════════════════════════════

class TestFeedAndSearch:

    def test_feed_is_newest_first_and_paginated(self, client):
        alice = register(client, "alice")
        for i in range(3):
            make_experience(client, alice["access_token"], title=f"Exp {i}")

        first = client.get("/api/v1/experiences/?limit=2").get_json()["data"]
        assert [e["title"] for e in first["experiences"]] == ["Exp 2", "Exp 1"]
        assert first["next_cursor"] == 2

        second = client.get("/api/v1/experiences/?limit=2&cursor=2").get_json()["data"]
        assert [e["title"] for e in second["experiences"]] == ["Exp 0"]
        assert second["next_cursor"] is None

    def test_search_by_text(self, client):
        alice = register(client, "alice")
        make_experience(client, alice["access_token"], title="Pottery class")
        make_experience(client, alice["access_token"], title="Night swim")

        data = client.get("/api/v1/experiences/search?q=POTTERY").get_json()["data"]
        assert [e["title"] for e in data["experiences"]] == ["Pottery class"]

    def test_search_by_date(self, client):
        alice = register(client, "alice")
        make_experience(client, alice["access_token"], title="Early",
                        scheduled_at="2030-01-01T10:00:00+00:00")
        make_experience(client, alice["access_token"], title="Late",
                        scheduled_at="2031-01-01T10:00:00+00:00")

        data = client.get(
            "/api/v1/experiences/search?scheduled_at=2030-06-01T00:00:00Z"
        ).get_json()["data"]
        assert [e["title"] for e in data["experiences"]] == ["Late"]

    def test_search_by_tags(self, app, client):
        alice = register(client, "alice")
        food = seed_tag(app, "food")
        music = seed_tag(app, "music")
        art = seed_tag(app, "art")
        make_experience(client, alice["access_token"], title="Dinner", tag_ids=[food])
        make_experience(client, alice["access_token"], title="Concert", tag_ids=[music])
        make_experience(client, alice["access_token"], title="Gallery", tag_ids=[art])

        data = client.get(
            f"/api/v1/experiences/search?tags={food},{music}"
        ).get_json()["data"]
        assert sorted(e["title"] for e in data["experiences"]) == ["Concert", "Dinner"]

    def test_malformed_tags_returns_400(self, client):
        resp = client.get("/api/v1/experiences/search?tags=1,abc")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_TAGS"


# ═══════════════════════════════════════════════════════════════════════════
# Attendance
# ═══════════════════════════════════════════════════════════════════════════

class TestAttendance:

    def test_attend_notifies_owner(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])

        resp = client.post(
            f"/api/v1/experiences/{exp['id']}/attend",
            headers=auth_headers(bob["access_token"]),
        )
        assert resp.status_code == 200

        notes = notifications_for(client, alice["access_token"])
        assert [n["type"] for n in notes] == ["user_attending_experience"]
        assert notes[0]["experience_id"] == exp["id"]
        assert notes[0]["content"] == "bob is attending your experience"

    def test_attend_twice_returns_409(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])
        url = f"/api/v1/experiences/{exp['id']}/attend"

        client.post(url, headers=auth_headers(bob["access_token"]))
        resp = client.post(url, headers=auth_headers(bob["access_token"]))
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "ALREADY_ATTENDING"
        assert len(notifications_for(client, alice["access_token"])) == 1

    def test_owner_attending_own_experience_is_notified(self, client):
        alice = register(client, "alice")
        exp = make_experience(client, alice["access_token"])

        client.post(
            f"/api/v1/experiences/{exp['id']}/attend",
            headers=auth_headers(alice["access_token"]),
        )
        notes = notifications_for(client, alice["access_token"])
        assert [n["type"] for n in notes] == ["user_attending_experience"]

    def test_unattend_notifies_owner(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])
        url = f"/api/v1/experiences/{exp['id']}/attend"

        client.post(url, headers=auth_headers(bob["access_token"]))
        resp = client.delete(url, headers=auth_headers(bob["access_token"]))
        assert resp.status_code == 200

        notes = notifications_for(client, alice["access_token"])
        assert notes[0]["type"] == "user_unattending_experience"
        assert notes[0]["content"] == "bob is no longer attending your experience"

    def test_unattend_when_not_attending_returns_409(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])

        resp = client.delete(
            f"/api/v1/experiences/{exp['id']}/attend",
            headers=auth_headers(bob["access_token"]),
        )
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "NOT_ATTENDING"
        assert notifications_for(client, alice["access_token"]) == []

    def test_attend_unknown_experience_returns_404(self, client):
        bob = register(client, "bob")
        resp = client.post(
            "/api/v1/experiences/99999/attend",
            headers=auth_headers(bob["access_token"]),
        )
        assert resp.status_code == 404


class TestKick:

    def test_owner_kicks_attendee_who_is_notified(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])
        client.post(
            f"/api/v1/experiences/{exp['id']}/attend",
            headers=auth_headers(bob["access_token"]),
        )

        resp = client.delete(
            f"/api/v1/experiences/{exp['id']}/attendees/{bob['user']['id']}",
            headers=auth_headers(alice["access_token"]),
        )
        assert resp.status_code == 200

        notes = notifications_for(client, bob["access_token"])
        assert [n["type"] for n in notes] == ["user_kicked_experience"]
        assert notes[0]["content"] == "alice kicked you from the experience"

        detail = client.get(f"/api/v1/experiences/{exp['id']}").get_json()["data"]
        assert detail["attendees_count"] == 0

    def test_non_owner_cannot_kick(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        carol = register(client, "carol")
        exp = make_experience(client, alice["access_token"])

        resp = client.delete(
            f"/api/v1/experiences/{exp['id']}/attendees/{bob['user']['id']}",
            headers=auth_headers(carol["access_token"]),
        )
        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "FORBIDDEN"
        assert notifications_for(client, bob["access_token"]) == []

    def test_owner_cannot_be_kicked(self, client):
        alice = register(client, "alice")
        exp = make_experience(client, alice["access_token"])

        resp = client.delete(
            f"/api/v1/experiences/{exp['id']}/attendees/{alice['user']['id']}",
            headers=auth_headers(alice["access_token"]),
        )
        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "CANNOT_KICK_OWNER"


class TestAttendeeList:

    def test_attendees_paginated_with_counts(self, client):
        alice = register(client, "alice")
        exp = make_experience(client, alice["access_token"])
        guests = [register(client, f"guest{i}") for i in range(3)]
        for guest in guests:
            client.post(
                f"/api/v1/experiences/{exp['id']}/attend",
                headers=auth_headers(guest["access_token"]),
            )

        data = client.get(
            f"/api/v1/experiences/{exp['id']}/attendees?limit=2"
        ).get_json()["data"]
        assert data["attendees_count"] == 3
        assert len(data["attendees"]) == 2
        assert data["next_cursor"] == 2
        assert "followers_count" in data["attendees"][0]


# ═══════════════════════════════════════════════════════════════════════════
# Favorites
# ═══════════════════════════════════════════════════════════════════════════

class TestFavorites:

    def test_favorite_and_list(self, client):
        alice = register(client, "alice")
        bob = register(client, "bob")
        exp = make_experience(client, alice["access_token"])
        url = f"/api/v1/experiences/{exp['id']}/favorite"

        assert client.post(url, headers=auth_headers(bob["access_token"])).status_code == 200

        data = client.get(
            "/api/v1/experiences/favorites",
            headers=auth_headers(bob["access_token"]),
        ).get_json()["data"]
        assert [e["id"] for e in data["experiences"]] == [exp["id"]]
        assert data["experiences"][0]["is_favorited"] is True
        assert data["experiences"][0]["favorites_count"] == 1

        # Favorites notify no one.
        assert notifications_for(client, alice["access_token"]) == []

    def test_favorite_twice_returns_409(self, client):
        alice = register(client, "alice")
        exp = make_experience(client, alice["access_token"])
        url = f"/api/v1/experiences/{exp['id']}/favorite"

        client.post(url, headers=auth_headers(alice["access_token"]))
        resp = client.post(url, headers=auth_headers(alice["access_token"]))
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "ALREADY_FAVORITED"

    def test_unfavorite_is_idempotent(self, client):
        alice = register(client, "alice")
        exp = make_experience(client, alice["access_token"])
        url = f"/api/v1/experiences/{exp['id']}/favorite"

        client.post(url, headers=auth_headers(alice["access_token"]))
        assert client.delete(url, headers=auth_headers(alice["access_token"])).status_code == 200
        assert client.delete(url, headers=auth_headers(alice["access_token"])).status_code == 200

    def test_favorites_requires_auth(self, app):
        resp = app.test_client().get("/api/v1/experiences/favorites")
        assert resp.status_code == 401
