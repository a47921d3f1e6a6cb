"""
services/experience_service.py — Experiences, attendance and favorites.

Authorization rules:
  - Editing / deleting an experience: owner only
  - Kicking an attendee: owner only; the owner cannot be kicked
  - Attending / favoriting: any signed-in user

Notifications:
  attend    → user_attending_experience   to the owner
  unattend  → user_unattending_experience to the owner
  kick      → user_kicked_experience      to the kicked user
  Attending or leaving your own experience still notifies you: neither path
  skips the owner. Favorites notify no one.

Listing endpoints return "cards": the experience plus its owner, tags,
attendee/comment/favorite counts and the viewer's is_attending / is_favorited.
Counts are aggregate queries run per request; nothing is cached.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

import json
from datetime import datetime

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from app.errors import AppError, ErrorCode
from app.models.comment import Comment
from app.models.experience import (
    Experience,
    ExperienceAttendee,
    ExperienceFavorite,
    ExperienceTag,
)
from app.models.notification import NotificationType
from app.models.tag import Tag
from app.models.timestamps import utcnow
from app.models.user import User
from app.services.db_helpers import insert_if_absent
from app.services.notification_service import emit_notification
from app.services.tag_service import get_tag_or_404, tags_for_experience
from app.services.user_service import (
    build_public_user_dict,
    build_user_card,
    get_user_or_404,
)

# How many attendees the detail view embeds; the full list is paginated.
ATTENDEES_PREVIEW_LIMIT = 5


# ── Private helpers ────────────────────────────────────────────────────────

def get_experience_or_404(experience_id: int, session: Session) -> Experience:
    """Returns the Experience or raises EXPERIENCE_NOT_FOUND (404)."""
    experience = session.get(Experience, experience_id)
    if experience is None:
        raise AppError(
            ErrorCode.EXPERIENCE_NOT_FOUND,
            f"Experience {experience_id} not found.",
            404,
        )
    return experience


def _require_owner(experience: Experience, caller_id: int, message: str) -> None:
    if experience.user_id != caller_id:
        raise AppError(ErrorCode.FORBIDDEN, message, 403)


def _find_attendee(experience_id: int, user_id: int, session: Session) -> ExperienceAttendee | None:
    return session.get(ExperienceAttendee, (experience_id, user_id))


def _find_favorite(experience_id: int, user_id: int, session: Session) -> ExperienceFavorite | None:
    return session.get(ExperienceFavorite, (experience_id, user_id))


def _count(model, experience_id: int, session: Session) -> int:
    return session.execute(
        select(func.count())
        .select_from(model)
        .where(model.experience_id == experience_id)
    ).scalar_one()


def _set_tags(experience_id: int, tag_ids: list[int], session: Session) -> None:
    """Replaces the experience's tags. Every id must exist."""
    if tag_ids:
        found = set(
            session.execute(select(Tag.id).where(Tag.id.in_(tag_ids))).scalars().all()
        )
        missing = [t for t in tag_ids if t not in found]
        if missing:
            raise AppError(
                ErrorCode.TAG_NOT_FOUND,
                f"Tag {missing[0]} not found.",
                404,
                field="tag_ids",
            )

    session.execute(
        delete(ExperienceTag).where(ExperienceTag.experience_id == experience_id)
    )
    for tag_id in tag_ids:
        session.add(ExperienceTag(experience_id=experience_id, tag_id=tag_id))
    session.flush()


def _build_experience_dict(experience: Experience) -> dict:
    return {
        "id": experience.id,
        "title": experience.title,
        "content": experience.content,
        "scheduled_at": experience.scheduled_at.isoformat(),
        "url": experience.url,
        "image_url": experience.image_url,
        "location": json.loads(experience.location) if experience.location else None,
        "user_id": experience.user_id,
        "created_at": experience.created_at.isoformat(),
        "updated_at": experience.updated_at.isoformat(),
    }


def _build_experience_card(
        experience: Experience,
        viewer_id: int | None,
        session: Session,
) -> dict:
    if viewer_id is None:
        attending = favorited = False
    else:
        attending = _find_attendee(experience.id, viewer_id, session) is not None
        favorited = _find_favorite(experience.id, viewer_id, session) is not None

    return {
        **_build_experience_dict(experience),
        "user": build_public_user_dict(experience.user),
        "tags": tags_for_experience(experience.id, session),
        "attendees_count": _count(ExperienceAttendee, experience.id, session),
        "comments_count": _count(Comment, experience.id, session),
        "favorites_count": _count(ExperienceFavorite, experience.id, session),
        "is_attending": attending,
        "is_favorited": favorited,
    }


def _page_of_cards(
        stmt,
        viewer_id: int | None,
        limit: int,
        cursor: int,
        session: Session,
) -> dict:
    experiences = session.execute(stmt.limit(limit).offset(cursor)).scalars().all()
    return {
        "experiences": [_build_experience_card(e, viewer_id, session) for e in experiences],
        "next_cursor": cursor + limit if len(experiences) == limit else None,
    }


def _newest_first():
    return select(Experience).order_by(Experience.created_at.desc(), Experience.id.desc())


# ── Reads ──────────────────────────────────────────────────────────────────

def get_experience(experience_id: int, viewer_id: int | None, session: Session) -> dict:
    """Experience card plus the first few attendees."""
    experience = get_experience_or_404(experience_id, session)

    attendees = session.execute(
        select(User)
        .join(ExperienceAttendee, ExperienceAttendee.user_id == User.id)
        .where(ExperienceAttendee.experience_id == experience_id)
        .order_by(ExperienceAttendee.created_at.asc(), User.id.asc())
        .limit(ATTENDEES_PREVIEW_LIMIT)
    ).scalars().all()

    return {
        **_build_experience_card(experience, viewer_id, session),
        "attendees": [build_public_user_dict(u) for u in attendees],
    }


def list_feed(viewer_id: int | None, limit: int, cursor: int, session: Session) -> dict:
    return _page_of_cards(_newest_first(), viewer_id, limit, cursor, session)


def search_experiences(
        viewer_id: int | None,
        limit: int,
        cursor: int,
        session: Session,
        q: str | None = None,
        scheduled_at: datetime | None = None,
        tags: list[int] | None = None,
) -> dict:
    """
    Filters combine with AND:
      q            — title or content contains q (case-insensitive)
      scheduled_at — scheduled at or after this instant
      tags         — carries at least one of these tag ids
    """
    stmt = _newest_first()

    if q:
        stmt = stmt.where(
            or_(
                Experience.title.icontains(q, autoescape=True),
                Experience.content.icontains(q, autoescape=True),
            )
        )

    if scheduled_at is not None:
        stmt = stmt.where(Experience.scheduled_at >= scheduled_at)

    if tags:
        stmt = stmt.where(
            Experience.id.in_(
                select(ExperienceTag.experience_id).where(ExperienceTag.tag_id.in_(tags))
            )
        )

    return _page_of_cards(stmt, viewer_id, limit, cursor, session)


def list_by_user(
        user_id: int,
        viewer_id: int | None,
        limit: int,
        cursor: int,
        session: Session,
) -> dict:
    get_user_or_404(user_id, session)
    stmt = _newest_first().where(Experience.user_id == user_id)
    return _page_of_cards(stmt, viewer_id, limit, cursor, session)


def list_by_tag(
        tag_id: int,
        viewer_id: int | None,
        limit: int,
        cursor: int,
        session: Session,
) -> dict:
    get_tag_or_404(tag_id, session)
    stmt = (
        _newest_first()
        .join(ExperienceTag, ExperienceTag.experience_id == Experience.id)
        .where(ExperienceTag.tag_id == tag_id)
    )
    return _page_of_cards(stmt, viewer_id, limit, cursor, session)


def list_favorites(user_id: int, limit: int, cursor: int, session: Session) -> dict:
    """The caller's favorited experiences, most recently favorited first."""
    stmt = (
        select(Experience)
        .join(ExperienceFavorite, ExperienceFavorite.experience_id == Experience.id)
        .where(ExperienceFavorite.user_id == user_id)
        .order_by(ExperienceFavorite.created_at.desc(), Experience.id.desc())
    )
    return _page_of_cards(stmt, user_id, limit, cursor, session)


def list_attendees(
        experience_id: int,
        viewer_id: int | None,
        limit: int,
        cursor: int,
        session: Session,
) -> dict:
    get_experience_or_404(experience_id, session)

    attendees = session.execute(
        select(User)
        .join(ExperienceAttendee, ExperienceAttendee.user_id == User.id)
        .where(ExperienceAttendee.experience_id == experience_id)
        .order_by(ExperienceAttendee.created_at.asc(), User.id.asc())
        .limit(limit)
        .offset(cursor)
    ).scalars().all()

    return {
        "attendees": [build_user_card(u, viewer_id, session) for u in attendees],
        "attendees_count": _count(ExperienceAttendee, experience_id, session),
        "next_cursor": cursor + limit if len(attendees) == limit else None,
    }


# ── Writes ─────────────────────────────────────────────────────────────────

def create_experience(
        owner_id: int,
        title: str,
        content: str,
        scheduled_at: datetime,
        location: dict,
        session: Session,
        url: str | None = None,
        tag_ids: list[int] | None = None,
) -> dict:
    experience = Experience(
        title=title,
        content=content,
        scheduled_at=scheduled_at,
        url=url,
        location=json.dumps(location),
        user_id=owner_id,
    )
    session.add(experience)
    session.flush()  # populate experience.id before linking tags

    _set_tags(experience.id, tag_ids or [], session)
    return _build_experience_card(experience, owner_id, session)


def edit_experience(
        experience_id: int,
        caller_id: int,
        title: str,
        content: str,
        scheduled_at: datetime,
        location: dict,
        session: Session,
        url: str | None = None,
        tag_ids: list[int] | None = None,
) -> dict:
    """
    Replaces the editable fields and the tag set.

    Raises:
      AppError(EXPERIENCE_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403) — caller is not the owner
    """
    experience = get_experience_or_404(experience_id, session)
    _require_owner(experience, caller_id, "You can only edit your own experiences.")

    experience.title = title
    experience.content = content
    experience.scheduled_at = scheduled_at
    experience.url = url
    experience.location = json.dumps(location)
    experience.updated_at = utcnow()
    session.flush()

    _set_tags(experience.id, tag_ids or [], session)
    return _build_experience_card(experience, caller_id, session)


def delete_experience(experience_id: int, caller_id: int, session: Session) -> dict:
    """
    Deletes the experience. Attendees, favorites, tags, comments and
    notifications go with it through ON DELETE CASCADE.
    """
    experience = get_experience_or_404(experience_id, session)
    _require_owner(experience, caller_id, "You can only delete your own experiences.")

    session.delete(experience)
    session.flush()
    return {"id": experience_id}


def attend_experience(experience_id: int, caller_id: int, session: Session) -> dict:
    """
    Adds the caller as an attendee and notifies the owner.

    Raises:
      AppError(EXPERIENCE_NOT_FOUND, 404)
      AppError(ALREADY_ATTENDING, 409)
    """
    experience = get_experience_or_404(experience_id, session)

    if _find_attendee(experience_id, caller_id, session) is not None:
        raise AppError(
            ErrorCode.ALREADY_ATTENDING,
            "You are already attending this experience.",
            409,
        )

    inserted = insert_if_absent(
        ExperienceAttendee(experience_id=experience_id, user_id=caller_id),
        session,
    )
    if inserted:
        emit_notification(
            session,
            NotificationType.USER_ATTENDING_EXPERIENCE,
            from_user_id=caller_id,
            user_id=experience.user_id,
            experience_id=experience_id,
        )
    return {"success": True}


def unattend_experience(experience_id: int, caller_id: int, session: Session) -> dict:
    """
    Removes the caller from the attendees and notifies the owner.

    Raises:
      AppError(EXPERIENCE_NOT_FOUND, 404)
      AppError(NOT_ATTENDING, 409)
    """
    experience = get_experience_or_404(experience_id, session)

    if _find_attendee(experience_id, caller_id, session) is None:
        raise AppError(
            ErrorCode.NOT_ATTENDING,
            "You are not attending this experience.",
            409,
        )

    session.execute(
        delete(ExperienceAttendee).where(
            ExperienceAttendee.experience_id == experience_id,
            ExperienceAttendee.user_id == caller_id,
        )
    )
    session.flush()

    emit_notification(
        session,
        NotificationType.USER_UNATTENDING_EXPERIENCE,
        from_user_id=caller_id,
        user_id=experience.user_id,
        experience_id=experience_id,
    )
    return {"success": True}


def kick_attendee(
        experience_id: int,
        caller_id: int,
        target_user_id: int,
        session: Session,
) -> dict:
    """
    Removes target from the attendees and notifies them.

    The removal is a plain delete: kicking someone who is not attending still
    succeeds and still notifies them.

    Raises:
      AppError(EXPERIENCE_NOT_FOUND, 404)
      AppError(FORBIDDEN, 403)         — caller is not the owner
      AppError(CANNOT_KICK_OWNER, 403) — target is the owner
    """
    experience = get_experience_or_404(experience_id, session)
    _require_owner(experience, caller_id, "Only the experience owner can kick attendees.")

    if target_user_id == experience.user_id:
        raise AppError(
            ErrorCode.CANNOT_KICK_OWNER,
            "Cannot kick the experience owner.",
            403,
        )

    session.execute(
        delete(ExperienceAttendee).where(
            ExperienceAttendee.experience_id == experience_id,
            ExperienceAttendee.user_id == target_user_id,
        )
    )
    session.flush()

    emit_notification(
        session,
        NotificationType.USER_KICKED_EXPERIENCE,
        from_user_id=caller_id,
        user_id=target_user_id,
        experience_id=experience_id,
    )
    return {"success": True}


def favorite_experience(experience_id: int, caller_id: int, session: Session) -> dict:
    """
    Raises:
      AppError(EXPERIENCE_NOT_FOUND, 404)
      AppError(ALREADY_FAVORITED, 409)
    """
    get_experience_or_404(experience_id, session)

    if _find_favorite(experience_id, caller_id, session) is not None:
        raise AppError(
            ErrorCode.ALREADY_FAVORITED,
            "Experience already favorited.",
            409,
        )

    insert_if_absent(
        ExperienceFavorite(experience_id=experience_id, user_id=caller_id),
        session,
    )
    return {"success": True}


def unfavorite_experience(experience_id: int, caller_id: int, session: Session) -> dict:
    """Idempotent: removing a favorite that is not there succeeds."""
    session.execute(
        delete(ExperienceFavorite).where(
            ExperienceFavorite.experience_id == experience_id,
            ExperienceFavorite.user_id == caller_id,
        )
    )
    session.flush()
    return {"success": True}
