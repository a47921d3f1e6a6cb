"""
middleware/auth_middleware.py — Session loading and the @require_auth decorator.

load_session() runs before every request (registered in the app factory):
  1. Reads the Authorization header and the refresh-token cookie
  2. Resolves them through services.session_service.resolve_session
  3. Stores the result on flask.g:
       g.session_context  SessionContext (always set)
       g.current_user     User or None
       g.user_id          int or None

It never rejects a request. Public routes read g.current_user to tailor their
output (is_following, is_attending, ...); protected routes add @require_auth.

Strict responsibility boundary:
  - Middleware = authentication (401 UNAUTHENTICATED).
  - Services = authorization (403), given user_id as a plain int.
"""

from __future__ import annotations

import functools
from typing import Callable

from flask import current_app, g, request

from app.errors import AppError, ErrorCode
from app.extensions import db
from app.services.session_service import SessionContext, resolve_session
from app.services.token_service import TokenService


def get_token_service() -> TokenService:
    """The TokenService built by the app factory for the current app."""
    return current_app.extensions["token_service"]


def load_session() -> None:
    context = resolve_session(
        authorization=request.headers.get("Authorization"),
        refresh_cookie=request.cookies.get(current_app.config["REFRESH_COOKIE_NAME"]),
        tokens=get_token_service(),
        session=db.session,
    )
    _attach(context)


def _attach(context: SessionContext) -> None:
    g.session_context = context
    g.current_user = context.user
    g.user_id = context.user.id if context.user is not None else None


def require_auth(f: Callable) -> Callable:
    """
    Route decorator that rejects anonymous requests.

    Raises AppError(UNAUTHENTICATED, 401); the global error handler converts
    it to JSON. The client cannot tell "never logged in" from "session
    expired" and should re-authenticate in both cases.

    Usage:
        @bp.route("/notifications")
        @require_auth
        def list_notifications():
            user_id = g.user_id  # always an int when this runs
    """
    @functools.wraps(f)
    def decorated(*args, **kwargs):
        context = getattr(g, "session_context", None)
        if context is None or not context.is_authenticated:
            raise AppError(
                ErrorCode.UNAUTHENTICATED,
                "Not authenticated.",
                401,
            )
        return f(*args, **kwargs)

    return decorated
