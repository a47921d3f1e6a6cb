"""
services/user_service.py — Profiles and the follow graph.

Authorization rules:
  - Editing a profile: the user themself only
  - Following / unfollowing: any signed-in user, never themself

Follow emits a user_followed_user notification to the followed user.
Unfollow emits nothing.

Counts are aggregate queries run per request; nothing is cached.

Layer rules:
  - No Flask imports. Pure Python with a SQLAlchemy session parameter.
  - Commits are the route's responsibility — only flush here.
"""

from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from app.errors import AppError, ErrorCode
from app.models.experience import Experience
from app.models.notification import NotificationType
from app.models.timestamps import utcnow
from app.models.user import User, UserFollow
from app.services.db_helpers import insert_if_absent
from app.services.notification_service import emit_notification


# ── Private helpers ────────────────────────────────────────────────────────

def get_user_or_404(user_id: int, session: Session) -> User:
    """Returns the User or raises USER_NOT_FOUND (404)."""
    user = session.get(User, user_id)
    if user is None:
        raise AppError(
            ErrorCode.USER_NOT_FOUND,
            f"User {user_id} not found.",
            404,
        )
    return user


def build_public_user_dict(user: User) -> dict:
    """A user as other people see them: no email, no password hash."""
    return {
        "id": user.id,
        "name": user.name,
        "bio": user.bio,
        "avatar_url": user.avatar_url,
        "created_at": user.created_at.isoformat(),
        "updated_at": user.updated_at.isoformat(),
    }


def _find_follow(follower_id: int, following_id: int, session: Session) -> UserFollow | None:
    return session.get(UserFollow, (follower_id, following_id))


def followers_count(user_id: int, session: Session) -> int:
    return session.execute(
        select(func.count())
        .select_from(UserFollow)
        .where(UserFollow.following_id == user_id)
    ).scalar_one()


def following_count(user_id: int, session: Session) -> int:
    return session.execute(
        select(func.count())
        .select_from(UserFollow)
        .where(UserFollow.follower_id == user_id)
    ).scalar_one()


def hosted_experiences_count(user_id: int, session: Session) -> int:
    return session.execute(
        select(func.count())
        .select_from(Experience)
        .where(Experience.user_id == user_id)
    ).scalar_one()


def is_following(user_id: int, viewer_id: int | None, session: Session) -> bool:
    """Whether the viewer follows user_id. Anonymous viewers follow no one."""
    if viewer_id is None:
        return False
    return _find_follow(viewer_id, user_id, session) is not None


def build_user_card(user: User, viewer_id: int | None, session: Session) -> dict:
    """Public user plus follow counts and the viewer's follow state (list rows)."""
    return {
        **build_public_user_dict(user),
        "followers_count": followers_count(user.id, session),
        "following_count": following_count(user.id, session),
        "is_following": is_following(user.id, viewer_id, session),
    }


# ── Public service functions ───────────────────────────────────────────────

def get_profile(user_id: int, viewer_id: int | None, session: Session) -> dict:
    """
    Returns a public profile with follower/following/hosted counts.

    Raises:
      AppError(USER_NOT_FOUND, 404)
    """
    user = get_user_or_404(user_id, session)
    return {
        **build_user_card(user, viewer_id, session),
        "hosted_experiences_count": hosted_experiences_count(user.id, session),
    }


def edit_profile(
        user_id: int,
        caller_id: int,
        name: str,
        bio: str | None,
        session: Session,
) -> dict:
    """
    Updates name and bio.

    Raises:
      AppError(FORBIDDEN, 403)       — caller is editing someone else
      AppError(USER_NOT_FOUND, 404)
    """
    if caller_id != user_id:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "You can only update your own profile.",
            403,
        )

    user = get_user_or_404(user_id, session)
    user.name = name
    user.bio = bio
    user.updated_at = utcnow()
    session.flush()
    return build_public_user_dict(user)


def follow_user(target_user_id: int, caller_id: int, session: Session) -> dict:
    """
    Makes caller follow target and notifies target.

    Raises:
      AppError(SELF_FOLLOW, 403)        — caller == target; nothing is written
      AppError(USER_NOT_FOUND, 404)
      AppError(ALREADY_FOLLOWING, 409)
    """
    if caller_id == target_user_id:
        raise AppError(
            ErrorCode.SELF_FOLLOW,
            "You cannot follow yourself.",
            403,
        )

    get_user_or_404(target_user_id, session)

    if _find_follow(caller_id, target_user_id, session) is not None:
        raise AppError(
            ErrorCode.ALREADY_FOLLOWING,
            "You are already following this user.",
            409,
        )

    inserted = insert_if_absent(
        UserFollow(follower_id=caller_id, following_id=target_user_id),
        session,
    )
    if inserted:
        emit_notification(
            session,
            NotificationType.USER_FOLLOWED_USER,
            from_user_id=caller_id,
            user_id=target_user_id,
        )
    return {"success": True}


def unfollow_user(target_user_id: int, caller_id: int, session: Session) -> dict:
    """
    Removes the caller → target follow edge.

    Raises:
      AppError(SELF_FOLLOW, 403)
      AppError(NOT_FOLLOWING, 409)
    """
    if caller_id == target_user_id:
        raise AppError(
            ErrorCode.SELF_FOLLOW,
            "You cannot unfollow yourself.",
            403,
        )

    if _find_follow(caller_id, target_user_id, session) is None:
        raise AppError(
            ErrorCode.NOT_FOLLOWING,
            "You are not following this user.",
            409,
        )

    session.execute(
        delete(UserFollow).where(
            UserFollow.follower_id == caller_id,
            UserFollow.following_id == target_user_id,
        )
    )
    session.flush()
    return {"success": True}


def list_followers(
        user_id: int,
        viewer_id: int | None,
        limit: int,
        cursor: int,
        session: Session,
) -> dict:
    """Users following user_id, oldest follow first. Fetches one extra row to detect more."""
    get_user_or_404(user_id, session)

    rows = session.execute(
        select(User)
        .join(UserFollow, UserFollow.follower_id == User.id)
        .where(UserFollow.following_id == user_id)
        .order_by(UserFollow.created_at.asc(), User.id.asc())
        .limit(limit + 1)
        .offset(cursor)
    ).scalars().all()

    return {
        "items": [build_user_card(u, viewer_id, session) for u in rows[:limit]],
        "followers_count": followers_count(user_id, session),
        "next_cursor": cursor + limit if len(rows) > limit else None,
    }


def list_following(
        user_id: int,
        viewer_id: int | None,
        limit: int,
        cursor: int,
        session: Session,
) -> dict:
    """Users that user_id follows, oldest follow first."""
    get_user_or_404(user_id, session)

    rows = session.execute(
        select(User)
        .join(UserFollow, UserFollow.following_id == User.id)
        .where(UserFollow.follower_id == user_id)
        .order_by(UserFollow.created_at.asc(), User.id.asc())
        .limit(limit + 1)
        .offset(cursor)
    ).scalars().all()

    return {
        "items": [build_user_card(u, viewer_id, session) for u in rows[:limit]],
        "following_count": following_count(user_id, session),
        "next_cursor": cursor + limit if len(rows) > limit else None,
    }
