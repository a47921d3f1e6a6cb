"""
routes/users.py — Profiles and the follow graph.

Endpoints (base url_prefix=/api/v1/users):
  GET    /users/:id              → 200  profile + counts
  PATCH  /users/:id              → 200  self only
  POST   /users/:id/follow       → 200
  DELETE /users/:id/follow       → 200
  GET    /users/:id/followers    → 200  paginated
  GET    /users/:id/following    → 200  paginated
  GET    /users/:id/experiences  → 200  paginated
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from app.extensions import db
from app.middleware.auth_middleware import require_auth
from app.schemas.pagination_schema import load_page
from app.schemas.user_schema import EditProfileSchema
from app.services import experience_service, user_service

users_bp = Blueprint("users", __name__)


@users_bp.route("/<int:user_id>", methods=["GET"])
def get_profile(user_id: int):
    result = user_service.get_profile(
        user_id=user_id,
        viewer_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>", methods=["PATCH"])
@require_auth
def edit_profile(user_id: int):
    data = EditProfileSchema().load(request.get_json(force=True) or {})
    result = user_service.edit_profile(
        user_id=user_id,
        caller_id=g.user_id,
        name=data["name"],
        bio=data["bio"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>/follow", methods=["POST"])
@require_auth
def follow(user_id: int):
    """POST /users/:id/follow — Notifies the followed user."""
    result = user_service.follow_user(
        target_user_id=user_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>/follow", methods=["DELETE"])
@require_auth
def unfollow(user_id: int):
    result = user_service.unfollow_user(
        target_user_id=user_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>/followers", methods=["GET"])
def list_followers(user_id: int):
    limit, cursor = load_page(request.args, current_app.config["DEFAULT_USER_LIMIT"])
    result = user_service.list_followers(
        user_id=user_id,
        viewer_id=g.user_id,
        limit=limit,
        cursor=cursor,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>/following", methods=["GET"])
def list_following(user_id: int):
    limit, cursor = load_page(request.args, current_app.config["DEFAULT_USER_LIMIT"])
    result = user_service.list_following(
        user_id=user_id,
        viewer_id=g.user_id,
        limit=limit,
        cursor=cursor,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@users_bp.route("/<int:user_id>/experiences", methods=["GET"])
def list_experiences(user_id: int):
    """GET /users/:id/experiences — Experiences hosted by this user, newest first."""
    limit, cursor = load_page(request.args, current_app.config["DEFAULT_EXPERIENCE_LIMIT"])
    result = experience_service.list_by_user(
        user_id=user_id,
        viewer_id=g.user_id,
        limit=limit,
        cursor=cursor,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
