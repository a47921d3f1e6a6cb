"""
routes/tags.py — Read-only tag endpoints. Tags are seeded, not user-created.

Endpoints (base url_prefix=/api/v1/tags):
  GET /tags                  → 200  ordered by name, descending
  GET /tags/:id              → 200
  GET /tags/:id/experiences  → 200  paginated
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from app.extensions import db
from app.schemas.pagination_schema import load_page
from app.services import experience_service, tag_service

tags_bp = Blueprint("tags", __name__)


@tags_bp.route("/", methods=["GET"])
def list_tags():
    result = tag_service.list_tags(session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@tags_bp.route("/<int:tag_id>", methods=["GET"])
def get_tag(tag_id: int):
    result = tag_service.get_tag(tag_id=tag_id, session=db.session)
    return jsonify({"data": result, "warnings": []}), 200


@tags_bp.route("/<int:tag_id>/experiences", methods=["GET"])
def list_experiences(tag_id: int):
    limit, cursor = load_page(request.args, current_app.config["DEFAULT_EXPERIENCE_LIMIT"])
    result = experience_service.list_by_tag(
        tag_id=tag_id,
        viewer_id=g.user_id,
        limit=limit,
        cursor=cursor,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200
