"""
services/comment_service.py — Comments on experiences and comment likes.

Authorization rules:
  - Editing a comment: author only
  - Deleting a comment: author, or the owner of the experience it is on

Notifications:
  add_comment → user_commented_experience to the experience owner, unless
  the commenter is the owner.

Layer rules:
  - No Flask imports. Commits are the route's responsibility; flush only.
"""

from __future__ import annotations

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, joinedload

from app.errors import AppError, ErrorCode
from app.models.comment import Comment, CommentLike
from app.models.notification import NotificationType
from app.models.timestamps import utcnow
from app.services.db_helpers import insert_if_absent
from app.services.experience_service import get_experience_or_404
from app.services.notification_service import emit_notification
from app.services.user_service import build_public_user_dict


# ── Private helpers ────────────────────────────────────────────────────────

def _get_comment_or_404(comment_id: int, session: Session) -> Comment:
    comment = session.get(Comment, comment_id)
    if comment is None:
        raise AppError(
            ErrorCode.COMMENT_NOT_FOUND,
            f"Comment {comment_id} not found.",
            404,
        )
    return comment


def _likes_count(comment_id: int, session: Session) -> int:
    return session.execute(
        select(func.count())
        .select_from(CommentLike)
        .where(CommentLike.comment_id == comment_id)
    ).scalar_one()


def _build_comment_dict(comment: Comment, viewer_id: int | None, session: Session) -> dict:
    is_liked = (
        viewer_id is not None
        and session.get(CommentLike, (comment.id, viewer_id)) is not None
    )
    return {
        "id": comment.id,
        "content": comment.content,
        "experience_id": comment.experience_id,
        "user_id": comment.user_id,
        "created_at": comment.created_at.isoformat(),
        "updated_at": comment.updated_at.isoformat(),
        "user": build_public_user_dict(comment.user),
        "likes_count": _likes_count(comment.id, session),
        "is_liked": is_liked,
    }


# ── Public service functions ───────────────────────────────────────────────

def list_comments(experience_id: int, viewer_id: int | None, session: Session) -> list[dict]:
    """All comments on an experience, newest first."""
    get_experience_or_404(experience_id, session)

    comments = session.execute(
        select(Comment)
        .options(joinedload(Comment.user))
        .where(Comment.experience_id == experience_id)
        .order_by(Comment.created_at.desc(), Comment.id.desc())
    ).scalars().all()

    return [_build_comment_dict(c, viewer_id, session) for c in comments]


def add_comment(experience_id: int, caller_id: int, content: str, session: Session) -> dict:
    """
    Raises:
      AppError(EXPERIENCE_NOT_FOUND, 404)
    """
    experience = get_experience_or_404(experience_id, session)

    comment = Comment(
        content=content,
        experience_id=experience_id,
        user_id=caller_id,
    )
    session.add(comment)
    session.flush()  # populate comment.id for the notification

    if experience.user_id != caller_id:
        emit_notification(
            session,
            NotificationType.USER_COMMENTED_EXPERIENCE,
            from_user_id=caller_id,
            user_id=experience.user_id,
            experience_id=experience_id,
            comment_id=comment.id,
        )

    return _build_comment_dict(comment, caller_id, session)


def edit_comment(comment_id: int, caller_id: int, content: str, session: Session) -> dict:
    comment = _get_comment_or_404(comment_id, session)
    if comment.user_id != caller_id:
        raise AppError(
            ErrorCode.FORBIDDEN,
            "You can only edit your own comments.",
            403,
        )

    comment.content = content
    comment.updated_at = utcnow()
    session.flush()
    return _build_comment_dict(comment, caller_id, session)


def delete_comment(comment_id: int, caller_id: int, session: Session) -> dict:
    comment = _get_comment_or_404(comment_id, session)
    experience = get_experience_or_404(comment.experience_id, session)

    if caller_id not in (comment.user_id, experience.user_id):
        raise AppError(
            ErrorCode.FORBIDDEN,
            "You can only delete your own comments or comments on your experiences.",
            403,
        )

    session.delete(comment)
    session.flush()
    return {"id": comment_id}


def like_comment(comment_id: int, caller_id: int, session: Session) -> dict:
    """
    Raises:
      AppError(COMMENT_NOT_FOUND, 404)
      AppError(ALREADY_LIKED, 409)
    """
    _get_comment_or_404(comment_id, session)

    if session.get(CommentLike, (comment_id, caller_id)) is not None:
        raise AppError(
            ErrorCode.ALREADY_LIKED,
            "Comment already liked.",
            409,
        )

    insert_if_absent(CommentLike(comment_id=comment_id, user_id=caller_id), session)
    return {"success": True}


def unlike_comment(comment_id: int, caller_id: int, session: Session) -> dict:
    """Idempotent."""
    session.execute(
        delete(CommentLike).where(
            CommentLike.comment_id == comment_id,
            CommentLike.user_id == caller_id,
        )
    )
    session.flush()
    return {"success": True}
