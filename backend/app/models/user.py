"""
models/user.py — User and UserFollow table definitions.

No business logic. No imports from services or routes.

FK policy: both user_follows columns ON DELETE CASCADE — a follow edge
disappears with either endpoint.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.extensions import db
from app.models.timestamps import utcnow


class User(db.Model):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    bio: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Stored for display only; this service never writes uploaded files.
    avatar_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    # bcrypt hash. Never serialised, never logged.
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

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

    experiences: Mapped[list["Experience"]] = relationship(  # noqa: F821
        "Experience",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def __repr__(self) -> str:  # pragma: no cover
        return f"<User id={self.id} name={self.name!r}>"


class UserFollow(db.Model):
    __tablename__ = "user_follows"

    # Composite PK is the only duplicate-follow guard at the storage level.
    follower_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
    )

    following_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        primary_key=True,
        index=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    follower: Mapped["User"] = relationship("User", foreign_keys=[follower_id])
    following: Mapped["User"] = relationship("User", foreign_keys=[following_id])

    def __repr__(self) -> str:  # pragma: no cover
        return (
            f"<UserFollow follower_id={self.follower_id} "
            f"following_id={self.following_id}>"
        )
