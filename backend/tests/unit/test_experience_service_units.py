"""
Unit tests for experience_service attendance, kick and favorite rules.

Persistence is mocked: session.get() resolves by model class, and
insert_if_absent / emit_notification are patched on the module.
"""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.errors import AppError, ErrorCode
from app.models.experience import Experience, ExperienceAttendee, ExperienceFavorite
from app.models.notification import NotificationType
from app.services import experience_service

OWNER = 1
GUEST = 2
EXPERIENCE_ID = 10


def _session(experience=True, attendees=(), favorites=()):
    session = MagicMock()
    rows = {
        Experience: {EXPERIENCE_ID: SimpleNamespace(id=EXPERIENCE_ID, user_id=OWNER)} if experience else {},
        ExperienceAttendee: {(EXPERIENCE_ID, uid): SimpleNamespace() for uid in attendees},
        ExperienceFavorite: {(EXPERIENCE_ID, uid): SimpleNamespace() for uid in favorites},
    }
    session.get.side_effect = lambda model, key: rows[model].get(key)
    return session


@pytest.fixture
def emitted(monkeypatch):
    calls = MagicMock()
    monkeypatch.setattr(experience_service, "emit_notification", calls)
    monkeypatch.setattr(experience_service, "insert_if_absent", lambda row, session: True)
    return calls


class TestAttend:

    def test_missing_experience_404(self, emitted):
        with pytest.raises(AppError) as exc_info:
            experience_service.attend_experience(EXPERIENCE_ID, GUEST, _session(experience=False))
        assert exc_info.value.code == ErrorCode.EXPERIENCE_NOT_FOUND
        emitted.assert_not_called()

    def test_already_attending_409(self, emitted):
        with pytest.raises(AppError) as exc_info:
            experience_service.attend_experience(EXPERIENCE_ID, GUEST, _session(attendees=[GUEST]))
        assert exc_info.value.code == ErrorCode.ALREADY_ATTENDING
        assert exc_info.value.http_status == 409
        emitted.assert_not_called()

    def test_notifies_owner(self, emitted):
        session = _session()
        experience_service.attend_experience(EXPERIENCE_ID, GUEST, session)
        emitted.assert_called_once_with(
            session,
            NotificationType.USER_ATTENDING_EXPERIENCE,
            from_user_id=GUEST,
            user_id=OWNER,
            experience_id=EXPERIENCE_ID,
        )

    def test_owner_attending_own_experience_still_notifies(self, emitted):
        experience_service.attend_experience(EXPERIENCE_ID, OWNER, _session())
        assert emitted.call_args.kwargs["user_id"] == OWNER
        assert emitted.call_args.kwargs["from_user_id"] == OWNER


class TestUnattend:

    def test_not_attending_409(self, emitted):
        with pytest.raises(AppError) as exc_info:
            experience_service.unattend_experience(EXPERIENCE_ID, GUEST, _session())
        assert exc_info.value.code == ErrorCode.NOT_ATTENDING
        emitted.assert_not_called()

    def test_notifies_owner(self, emitted):
        experience_service.unattend_experience(EXPERIENCE_ID, GUEST, _session(attendees=[GUEST]))
        assert emitted.call_args.args[1] == NotificationType.USER_UNATTENDING_EXPERIENCE
        assert emitted.call_args.kwargs["user_id"] == OWNER


class TestKick:

    def test_non_owner_forbidden(self, emitted):
        with pytest.raises(AppError) as exc_info:
            experience_service.kick_attendee(EXPERIENCE_ID, GUEST, 3, _session())
        assert exc_info.value.code == ErrorCode.FORBIDDEN
        emitted.assert_not_called()

    def test_owner_cannot_be_kicked(self, emitted):
        with pytest.raises(AppError) as exc_info:
            experience_service.kick_attendee(EXPERIENCE_ID, OWNER, OWNER, _session())
        assert exc_info.value.code == ErrorCode.CANNOT_KICK_OWNER
        assert exc_info.value.http_status == 403

    def test_notifies_kicked_user(self, emitted):
        session = _session(attendees=[GUEST])
        experience_service.kick_attendee(EXPERIENCE_ID, OWNER, GUEST, session)
        emitted.assert_called_once_with(
            session,
            NotificationType.USER_KICKED_EXPERIENCE,
            from_user_id=OWNER,
            user_id=GUEST,
            experience_id=EXPERIENCE_ID,
        )


class TestFavorite:

    def test_missing_experience_404(self, emitted):
        with pytest.raises(AppError) as exc_info:
            experience_service.favorite_experience(EXPERIENCE_ID, GUEST, _session(experience=False))
        assert exc_info.value.code == ErrorCode.EXPERIENCE_NOT_FOUND

    def test_already_favorited_409(self, emitted):
        with pytest.raises(AppError) as exc_info:
            experience_service.favorite_experience(EXPERIENCE_ID, GUEST, _session(favorites=[GUEST]))
        assert exc_info.value.code == ErrorCode.ALREADY_FAVORITED

    def test_favorite_sends_no_notification(self, emitted):
        assert experience_service.favorite_experience(EXPERIENCE_ID, GUEST, _session()) == {"success": True}
        emitted.assert_not_called()


class TestOwnership:

    def test_delete_by_non_owner_forbidden(self):
        session = _session()
        with pytest.raises(AppError) as exc_info:
            experience_service.delete_experience(EXPERIENCE_ID, GUEST, session)
        assert exc_info.value.code == ErrorCode.FORBIDDEN
        session.delete.assert_not_called()
