"""
models/experience.py — Experience and its junction tables.

Tables:
  experiences           — an event hosted by a user
  experience_attendees  — (experience_id, user_id) composite PK
  experience_favorites  — (experience_id, user_id) composite PK
  experience_tags       — (experience_id, tag_id) composite PK

FK policy: every FK here is ON DELETE CASCADE. Deleting an experience removes
its attendees, favorites, tags, comments and notifications.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.extensions import db
from app.models.timestamps import utcnow


class Experience(db.Model):
    __tablename__ = "experiences"

    id: Mapped[int] = mapped_column(primary_key=True)

    title: Mapped[str] = mapped_column(String(200), nullable=False)

    content: Mapped[str] = mapped_column(Text, nullable=False)

    scheduled_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
    )

    url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    image_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # JSON text: {"display_name": str, "lat": float, "lon": float}
    location: Mapped[str | None] = mapped_column(Text, nullable=True)

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    # ── Relationships ──────────────────────────────────────────────────────

    user: Mapped["User"] = relationship(  # noqa: F821
        "User",
        back_populates="experiences",
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<Experience id={self.id} user_id={self.user_id} title={self.title!r}>"


class ExperienceAttendee(db.Model):
    __tablename__ = "experience_attendees"

    experience_id: Mapped[int] = mapped_column(
        ForeignKey("experiences.id", ondelete="CASCADE"),
        primary_key=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    user: Mapped["User"] = relationship("User")  # noqa: F821


class ExperienceFavorite(db.Model):
    __tablename__ = "experience_favorites"

    experience_id: Mapped[int] = mapped_column(
        ForeignKey("experiences.id", ondelete="CASCADE"),
        primary_key=True,
    )

    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    experience: Mapped["Experience"] = relationship("Experience")


class ExperienceTag(db.Model):
    __tablename__ = "experience_tags"

    experience_id: Mapped[int] = mapped_column(
        ForeignKey("experiences.id", ondelete="CASCADE"),
        primary_key=True,
    )

    tag_id: Mapped[int] = mapped_column(
        ForeignKey("tags.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
