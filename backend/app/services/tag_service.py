"""
services/tag_service.py — Read access to tags.

Tags are seeded reference data; there is no create/update endpoint.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.errors import AppError, ErrorCode
from app.models.experience import ExperienceTag
from app.models.tag import Tag


def build_tag_dict(tag: Tag) -> dict:
    return {
        "id": tag.id,
        "name": tag.name,
        "created_at": tag.created_at.isoformat(),
        "updated_at": tag.updated_at.isoformat(),
    }


def get_tag_or_404(tag_id: int, session: Session) -> Tag:
    """Returns the Tag or raises TAG_NOT_FOUND (404)."""
    tag = session.get(Tag, tag_id)
    if tag is None:
        raise AppError(
            ErrorCode.TAG_NOT_FOUND,
            f"Tag {tag_id} not found.",
            404,
        )
    return tag


def list_tags(session: Session) -> list[dict]:
    """All tags, ordered by name descending."""
    tags = session.execute(select(Tag).order_by(Tag.name.desc())).scalars().all()
    return [build_tag_dict(t) for t in tags]


def get_tag(tag_id: int, session: Session) -> dict:
    return build_tag_dict(get_tag_or_404(tag_id, session))


def tags_for_experience(experience_id: int, session: Session) -> list[dict]:
    tags = session.execute(
        select(Tag)
        .join(ExperienceTag, ExperienceTag.tag_id == Tag.id)
        .where(ExperienceTag.experience_id == experience_id)
        .order_by(Tag.name.asc())
    ).scalars().all()
    return [build_tag_dict(t) for t in tags]
