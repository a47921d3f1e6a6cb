"""
routes/comments.py — Comment edit/delete and likes.

Endpoints (base url_prefix=/api/v1/comments):
  PATCH  /comments/:id        → 200  author only
  DELETE /comments/:id        → 200  author or experience owner
  POST   /comments/:id/like   → 200
  DELETE /comments/:id/like   → 200
"""

from __future__ import annotations

from flask import Blueprint, g, jsonify, request

from app.extensions import db
from app.middleware.auth_middleware import require_auth
from app.schemas.comment_schema import CommentSchema
from app.services import comment_service

comments_bp = Blueprint("comments", __name__)


@comments_bp.route("/<int:comment_id>", methods=["PATCH"])
@require_auth
def edit_comment(comment_id: int):
    data = CommentSchema().load(request.get_json(force=True) or {})
    result = comment_service.edit_comment(
        comment_id=comment_id,
        caller_id=g.user_id,
        content=data["content"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@comments_bp.route("/<int:comment_id>", methods=["DELETE"])
@require_auth
def delete_comment(comment_id: int):
    result = comment_service.delete_comment(
        comment_id=comment_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@comments_bp.route("/<int:comment_id>/like", methods=["POST"])
@require_auth
def like(comment_id: int):
    result = comment_service.like_comment(
        comment_id=comment_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@comments_bp.route("/<int:comment_id>/like", methods=["DELETE"])
@require_auth
def unlike(comment_id: int):
    result = comment_service.unlike_comment(
        comment_id=comment_id,
        caller_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
