"""
models/notification.py — Notification table definition.

A notification records that from_user did something the recipient (user_id)
should see. Rows are created by services.notification_service, mutated only
by mark-as-read, and removed only by FK cascade.

user_id is nullable at the schema level. Every emission path supplies a
recipient, and every read path filters on user_id, so a row without one is
never shown.
"""

from __future__ import annotations

import enum
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.extensions import db
from app.models.timestamps import utcnow


class NotificationType(str, enum.Enum):
    USER_ATTENDING_EXPERIENCE   = "user_attending_experience"
    USER_UNATTENDING_EXPERIENCE = "user_unattending_experience"
    USER_COMMENTED_EXPERIENCE   = "user_commented_experience"
    USER_FOLLOWED_USER          = "user_followed_user"
    USER_KICKED_EXPERIENCE      = "user_kicked_experience"


class Notification(db.Model):
    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Stored as VARCHAR + CHECK so SQLite and PostgreSQL share one schema.
    type: Mapped[NotificationType] = mapped_column(
        Enum(
            NotificationType,
            name="notification_type",
            native_enum=False,
            values_callable=lambda members: [m.value for m in members],
            validate_strings=True,
        ),
        nullable=False,
    )

    read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    comment_id: Mapped[int | None] = mapped_column(
        ForeignKey("comments.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    experience_id: Mapped[int | None] = mapped_column(
        ForeignKey("experiences.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    # The actor who triggered the event.
    from_user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # The recipient.
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    from_user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        foreign_keys=[from_user_id],
    )

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<Notification id={self.id} type={self.type} "
            f"from_user_id={self.from_user_id} user_id={self.user_id}>"
        )
