"""
services/notification_service.py — Notification emission and the inbox.

Emission is a synchronous side effect of another write, run in the caller's
session before the route commits:

  action                 type                          recipient
  ─────────────────────  ────────────────────────────  ────────────────
  attend experience      user_attending_experience     experience owner
  unattend experience    user_unattending_experience   experience owner
  kick attendee          user_kicked_experience        kicked user
  comment on experience  user_commented_experience     experience owner
  follow user            user_followed_user            followed user

Which actions skip self-notification is decided by the calling service, not
here.

The notification insert runs in a SAVEPOINT. If it fails, only the savepoint
is rolled back: the primary write stays in the session and still commits.

Content is never stored. render_notification_content() derives it at read
time from the type and the actor's name.

Layer rules:
  - No Flask imports. Commits are the route's responsibility; flush only.
"""

from __future__ import annotations

import logging

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from app.errors import AppError, ErrorCode
from app.models.notification import Notification, NotificationType

logger = logging.getLogger(__name__)

_TEMPLATES = {
    NotificationType.USER_ATTENDING_EXPERIENCE:   "{name} is attending your experience",
    NotificationType.USER_UNATTENDING_EXPERIENCE: "{name} is no longer attending your experience",
    NotificationType.USER_COMMENTED_EXPERIENCE:   "{name} commented on your experience",
    NotificationType.USER_FOLLOWED_USER:          "{name} followed you",
    NotificationType.USER_KICKED_EXPERIENCE:      "{name} kicked you from the experience",
}

FALLBACK_CONTENT = "New notification"


def render_notification_content(notification_type, from_user_name: str | None) -> str:
    """
    Human-readable text for a notification.

    Accepts a NotificationType or its string value. Unknown types render
    FALLBACK_CONTENT instead of failing.
    """
    try:
        template = _TEMPLATES[NotificationType(notification_type)]
    except ValueError:
        return FALLBACK_CONTENT
    return template.format(name=from_user_name)


def emit_notification(
        session: Session,
        notification_type: NotificationType,
        from_user_id: int,
        user_id: int | None,
        experience_id: int | None = None,
        comment_id: int | None = None,
) -> Notification | None:
    """
    Inserts one notification. Returns the row, or None if the insert failed.

    A failure is logged and swallowed; the caller's primary write is not
    affected.
    """
    notification = Notification(
        type=notification_type,
        from_user_id=from_user_id,
        user_id=user_id,
        experience_id=experience_id,
        comment_id=comment_id,
    )
    try:
        with session.begin_nested():
            session.add(notification)
            session.flush()
    except SQLAlchemyError:
        logger.warning(
            "Failed to emit %s notification from user %s to user %s",
            NotificationType(notification_type).value,
            from_user_id,
            user_id,
            exc_info=True,
        )
        return None

    logger.debug(
        "Emitted %s notification %s from user %s to user %s",
        NotificationType(notification_type).value,
        notification.id,
        from_user_id,
        user_id,
    )
    return notification


def _build_notification_dict(notification: Notification) -> dict:
    from_user = notification.from_user
    from_user_name = from_user.name if from_user is not None else None
    notification_type = NotificationType(notification.type).value
    return {
        "id": notification.id,
        "type": notification_type,
        "read": notification.read,
        "comment_id": notification.comment_id,
        "experience_id": notification.experience_id,
        "from_user_id": notification.from_user_id,
        "user_id": notification.user_id,
        "created_at": notification.created_at.isoformat(),
        "from_user": {"name": from_user_name},
        "content": render_notification_content(notification_type, from_user_name),
    }


def list_notifications(
        user_id: int,
        limit: int,
        cursor: int,
        session: Session,
) -> dict:
    """
    Returns the recipient's notifications, newest first.

    next_cursor is cursor + limit when a full page came back, else None.
    """
    stmt = (
        select(Notification)
        .options(joinedload(Notification.from_user))
        .where(Notification.user_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .offset(cursor)
    )
    notifications = session.execute(stmt).scalars().all()

    return {
        "notifications": [_build_notification_dict(n) for n in notifications],
        "next_cursor": cursor + limit if len(notifications) == limit else None,
    }


def unread_count(user_id: int, session: Session) -> int:
    stmt = (
        select(func.count())
        .select_from(Notification)
        .where(
            Notification.user_id == user_id,
            Notification.read.is_(False),
        )
    )
    return session.execute(stmt).scalar_one()


def mark_as_read(notification_id: int, user_id: int, session: Session) -> dict:
    """
    Marks a notification read. Only its recipient may do so.

    Raises:
      AppError(NOTIFICATION_NOT_FOUND, 404) — no such notification for this user.
        Someone else's notification is reported the same way as a missing one.
    """
    result = session.execute(
        update(Notification)
        .where(
            Notification.id == notification_id,
            Notification.user_id == user_id,
        )
        .values(read=True)
    )
    if result.rowcount == 0:
        raise AppError(
            ErrorCode.NOTIFICATION_NOT_FOUND,
            f"Notification {notification_id} not found.",
            404,
        )
    return {"id": notification_id, "read": True}
