"""
routes/notifications.py — The signed-in user's notification inbox.

All endpoints require auth and only ever see the caller's own notifications.

Endpoints (base url_prefix=/api/v1/notifications):
  GET    /notifications               → 200  newest first, paginated
  GET    /notifications/unread-count  → 200
  POST   /notifications/:id/read      → 200
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from app.extensions import db
from app.middleware.auth_middleware import require_auth
from app.schemas.pagination_schema import load_page
from app.services import notification_service

notifications_bp = Blueprint("notifications", __name__)


@notifications_bp.route("/", methods=["GET"])
@require_auth
def list_notifications():
    limit, cursor = load_page(
        request.args,
        current_app.config["DEFAULT_NOTIFICATION_LIMIT"],
    )
    result = notification_service.list_notifications(
        user_id=g.user_id,
        limit=limit,
        cursor=cursor,
        session=db.session,
    )
    return jsonify({"data": result, "warnings": []}), 200


@notifications_bp.route("/unread-count", methods=["GET"])
@require_auth
def unread_count():
    count = notification_service.unread_count(
        user_id=g.user_id,
        session=db.session,
    )
    return jsonify({"data": {"count": count}, "warnings": []}), 200


@notifications_bp.route("/<int:notification_id>/read", methods=["POST"])
@require_auth
def mark_as_read(notification_id: int):
    result = notification_service.mark_as_read(
        notification_id=notification_id,
        user_id=g.user_id,
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
