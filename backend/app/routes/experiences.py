"""
routes/experiences.py — Experience, attendance, favorite and comment-list handlers.

Layer rules:
  - Parse, validate, call ONE service, commit, return envelope.
  - No business logic. No DB queries.

Endpoints (base url_prefix=/api/v1/experiences):
  GET    /experiences                         → 200  feed, newest first
  GET    /experiences/search                  → 200  ?q=&scheduled_at=&tags=1,2
  GET    /experiences/favorites               → 200  caller's favorites
  POST   /experiences                         → 201
  GET    /experiences/:id                     → 200
  PATCH  /experiences/:id                     → 200  owner only
  DELETE /experiences/:id                     → 200  owner only
  POST   /experiences/:id/attend              → 200
  DELETE /experiences/:id/attend              → 200
  DELETE /experiences/:id/attendees/:uid      → 200  owner kicks an attendee
  GET    /experiences/:id/attendees           → 200  paginated
  POST   /experiences/:id/favorite            → 200
  DELETE /experiences/:id/favorite            → 200
  GET    /experiences/:id/comments            → 200
  POST   /experiences/:id/comments            → 201
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from app.extensions import db
from app.middleware.auth_middleware import require_auth
from app.schemas.comment_schema import CommentSchema
from app.schemas.experience_schema import ExperienceFiltersSchema, ExperienceSchema
from app.schemas.pagination_schema import load_page
from app.services import comment_service, experience_service

experiences_bp = Blueprint("experiences", __name__)


def _default_limit() -> int:
    return current_app.config["DEFAULT_EXPERIENCE_LIMIT"]


# ── Lists ──────────────────────────────────────────────────────────────────

@experiences_bp.route("/", methods=["GET"])
def feed():
    limit, cursor = load_page(request.args, _default_limit())
    result = experience_service.list_feed(
        viewer_id=g.user_id,
        limit=limit,
        cursor=cursor,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/search", methods=["GET"])
def search():
    filters = ExperienceFiltersSchema().load(request.args)
    result = experience_service.search_experiences(
        viewer_id=g.user_id,
        limit=filters["limit"] or _default_limit(),
        cursor=filters["cursor"],
        session=db.session,
        q=filters["q"],
        scheduled_at=filters["scheduled_at"],
        tags=filters["tags"],
    )
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/favorites", methods=["GET"])
@require_auth
def favorites():
    limit, cursor = load_page(request.args, _default_limit())
    result = experience_service.list_favorites(
        user_id=g.user_id,
        limit=limit,
        cursor=cursor,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


# ── Single experience ──────────────────────────────────────────────────────

@experiences_bp.route("/", methods=["POST"])
@require_auth
def create_experience():
    data = ExperienceSchema().load(request.get_json(force=True) or {})
    result = experience_service.create_experience(
        owner_id=g.user_id,
        title=data["title"],
        content=data["content"],
        scheduled_at=data["scheduled_at"],
        location=data["location"],
        session=db.session,
        url=data["url"],
        tag_ids=data["tag_ids"],
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201


@experiences_bp.route("/<int:experience_id>", methods=["GET"])
def get_experience(experience_id: int):
    result = experience_service.get_experience(
        experience_id=experience_id,
        viewer_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/<int:experience_id>", methods=["PATCH"])
@require_auth
def edit_experience(experience_id: int):
    data = ExperienceSchema().load(request.get_json(force=True) or {})
    result = experience_service.edit_experience(
        experience_id=experience_id,
        caller_id=g.user_id,
        title=data["title"],
        content=data["content"],
        scheduled_at=data["scheduled_at"],
        location=data["location"],
        session=db.session,
        url=data["url"],
        tag_ids=data["tag_ids"],
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/<int:experience_id>", methods=["DELETE"])
@require_auth
def delete_experience(experience_id: int):
    result = experience_service.delete_experience(
        experience_id=experience_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


# ── Attendance ─────────────────────────────────────────────────────────────

@experiences_bp.route("/<int:experience_id>/attend", methods=["POST"])
@require_auth
def attend(experience_id: int):
    result = experience_service.attend_experience(
        experience_id=experience_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/<int:experience_id>/attend", methods=["DELETE"])
@require_auth
def unattend(experience_id: int):
    result = experience_service.unattend_experience(
        experience_id=experience_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/<int:experience_id>/attendees/<int:target_uid>", methods=["DELETE"])
@require_auth
def kick(experience_id: int, target_uid: int):
    """DELETE /experiences/:id/attendees/:uid — Owner removes an attendee."""
    result = experience_service.kick_attendee(
        experience_id=experience_id,
        caller_id=g.user_id,
        target_user_id=target_uid,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/<int:experience_id>/attendees", methods=["GET"])
def list_attendees(experience_id: int):
    limit, cursor = load_page(request.args, current_app.config["DEFAULT_USER_LIMIT"])
    result = experience_service.list_attendees(
        experience_id=experience_id,
        viewer_id=g.user_id,
        limit=limit,
        cursor=cursor,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


# ── Favorites ──────────────────────────────────────────────────────────────

@experiences_bp.route("/<int:experience_id>/favorite", methods=["POST"])
@require_auth
def favorite(experience_id: int):
    result = experience_service.favorite_experience(
        experience_id=experience_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/<int:experience_id>/favorite", methods=["DELETE"])
@require_auth
def unfavorite(experience_id: int):
    result = experience_service.unfavorite_experience(
        experience_id=experience_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


# ── Comments ───────────────────────────────────────────────────────────────

@experiences_bp.route("/<int:experience_id>/comments", methods=["GET"])
def list_comments(experience_id: int):
    result = comment_service.list_comments(
        experience_id=experience_id,
        viewer_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@experiences_bp.route("/<int:experience_id>/comments", methods=["POST"])
@require_auth
def add_comment(experience_id: int):
    """POST /experiences/:id/comments — Notifies the owner unless they wrote it."""
    data = CommentSchema().load(request.get_json(force=True) or {})
    result = comment_service.add_comment(
        experience_id=experience_id,
        caller_id=g.user_id,
        content=data["content"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 201
