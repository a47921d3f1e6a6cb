"""Initial schema — all tables, constraints, and indexes.

Revision: 001_initial_schema
Created:  2026-10-17

Append-only:
  This file must NEVER be edited after it has been applied to any database.
  If a schema change is required, create a NEW migration file.

Creation order (FK dependencies):
  users → user_follows, tags → experiences → experience_attendees,
  experience_favorites, experience_tags → comments → comment_likes
  → notifications

ON DELETE policy: CASCADE on every foreign key. Deleting a user removes
everything they own or appear in; deleting an experience removes its
attendees, favorites, tags, comments and notifications.

notifications.type is VARCHAR + CHECK rather than a PostgreSQL enum type so
the same migration runs against SQLite in development.
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

# ── Alembic revision identifiers ──────────────────────────────────────────
revision: str = "001_initial_schema"
down_revision: str | None = None      # first migration — no parent
branch_labels: tuple | None = None
depends_on: tuple | None = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        "updated_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.text("CURRENT_TIMESTAMP"),
    )


def _fk(column: str, target: str, name: str, **kwargs) -> sa.Column:
    return sa.Column(
        column,
        sa.Integer(),
        sa.ForeignKey(target, ondelete="CASCADE", name=name),
        **kwargs,
    )


def upgrade() -> None:

    # ── Step 1: users ──────────────────────────────────────────────────────

    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("bio", sa.Text(), nullable=True),
        sa.Column("avatar_url", sa.String(500), nullable=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.String(255), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("email", name="uq_users_email"),
        sa.CheckConstraint("email LIKE '%@%'", name="ck_users_email_format"),
    )

    # ── Step 2: user_follows ───────────────────────────────────────────────
    # Composite PK: one edge per (follower, following) pair.

    op.create_table(
        "user_follows",
        _fk("follower_id", "users.id", "fk_user_follows_follower", nullable=False),
        _fk("following_id", "users.id", "fk_user_follows_following", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("follower_id", "following_id", name="pk_user_follows"),
    )

    # ── Step 3: tags ───────────────────────────────────────────────────────

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_tags"),
        sa.UniqueConstraint("name", name="uq_tags_name"),
    )

    # ── Step 4: experiences ────────────────────────────────────────────────

    op.create_table(
        "experiences",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("title", sa.String(200), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("scheduled_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("url", sa.String(500), nullable=True),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        _fk("user_id", "users.id", "fk_experiences_user", nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_experiences"),
    )

    # ── Step 5: experience junction tables ─────────────────────────────────

    op.create_table(
        "experience_attendees",
        _fk("experience_id", "experiences.id", "fk_experience_attendees_experience", nullable=False),
        _fk("user_id", "users.id", "fk_experience_attendees_user", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("experience_id", "user_id", name="pk_experience_attendees"),
    )

    op.create_table(
        "experience_favorites",
        _fk("experience_id", "experiences.id", "fk_experience_favorites_experience", nullable=False),
        _fk("user_id", "users.id", "fk_experience_favorites_user", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("experience_id", "user_id", name="pk_experience_favorites"),
    )

    op.create_table(
        "experience_tags",
        _fk("experience_id", "experiences.id", "fk_experience_tags_experience", nullable=False),
        _fk("tag_id", "tags.id", "fk_experience_tags_tag", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("experience_id", "tag_id", name="pk_experience_tags"),
    )

    # ── Step 6: comments ───────────────────────────────────────────────────

    op.create_table(
        "comments",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        _fk("experience_id", "experiences.id", "fk_comments_experience", nullable=False),
        _fk("user_id", "users.id", "fk_comments_user", nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint("id", name="pk_comments"),
    )

    op.create_table(
        "comment_likes",
        _fk("comment_id", "comments.id", "fk_comment_likes_comment", nullable=False),
        _fk("user_id", "users.id", "fk_comment_likes_user", nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint("comment_id", "user_id", name="pk_comment_likes"),
    )

    # ── Step 7: notifications ──────────────────────────────────────────────
    # user_id (recipient) is nullable; every read path filters on it.

    op.create_table(
        "notifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("type", sa.String(27), nullable=False),
        sa.Column(
            "read",
            sa.Boolean(),
            nullable=False,
            server_default=sa.false(),
        ),
        _fk("comment_id", "comments.id", "fk_notifications_comment", nullable=True),
        _fk("experience_id", "experiences.id", "fk_notifications_experience", nullable=True),
        _fk("from_user_id", "users.id", "fk_notifications_from_user", nullable=False),
        _fk("user_id", "users.id", "fk_notifications_user", nullable=True),
        _created_at(),
        sa.PrimaryKeyConstraint("id", name="pk_notifications"),
        sa.CheckConstraint(
            "type IN ("
            "'user_attending_experience', "
            "'user_unattending_experience', "
            "'user_commented_experience', "
            "'user_followed_user', "
            "'user_kicked_experience')",
            name="ck_notifications_type",
        ),
    )

    # ── Step 8: Indexes ────────────────────────────────────────────────────

    # Follower lists query by the followed side.
    op.create_index("idx_user_follows_following", "user_follows", ["following_id"])

    op.create_index("idx_experiences_user", "experiences", ["user_id"])
    op.create_index("idx_experience_attendees_user", "experience_attendees", ["user_id"])
    op.create_index("idx_experience_favorites_user", "experience_favorites", ["user_id"])
    op.create_index("idx_experience_tags_tag", "experience_tags", ["tag_id"])
    op.create_index("idx_comments_experience", "comments", ["experience_id"])
    op.create_index("idx_comment_likes_user", "comment_likes", ["user_id"])

    # Inbox queries: recipient + unread count.
    op.create_index("idx_notifications_user", "notifications", ["user_id"])
    op.create_index("idx_notifications_from_user", "notifications", ["from_user_id"])
    op.create_index("idx_notifications_experience", "notifications", ["experience_id"])
    op.create_index("idx_notifications_comment", "notifications", ["comment_id"])


def downgrade() -> None:
    """
    Drop all objects created in upgrade(), in reverse dependency order.

    Provided for local development reset. Production fixes go in a new
    migration, not a rollback.
    """

    op.drop_index("idx_notifications_comment",      table_name="notifications")
    op.drop_index("idx_notifications_experience",   table_name="notifications")
    op.drop_index("idx_notifications_from_user",    table_name="notifications")
    op.drop_index("idx_notifications_user",         table_name="notifications")
    op.drop_index("idx_comment_likes_user",         table_name="comment_likes")
    op.drop_index("idx_comments_experience",        table_name="comments")
    op.drop_index("idx_experience_tags_tag",        table_name="experience_tags")
    op.drop_index("idx_experience_favorites_user",  table_name="experience_favorites")
    op.drop_index("idx_experience_attendees_user",  table_name="experience_attendees")
    op.drop_index("idx_experiences_user",           table_name="experiences")
    op.drop_index("idx_user_follows_following",     table_name="user_follows")

    op.drop_table("notifications")
    op.drop_table("comment_likes")
    op.drop_table("comments")
    op.drop_table("experience_tags")
    op.drop_table("experience_favorites")
    op.drop_table("experience_attendees")
    op.drop_table("experiences")
    op.drop_table("tags")
    op.drop_table("user_follows")
    op.drop_table("users")
