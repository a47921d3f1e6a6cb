"""
routes/auth.py — Authentication route handlers.

Layer rules:
  - Parse request body
  - Validate with the appropriate schema (raises ValidationError on bad input)
  - Call exactly ONE service function
  - Commit the DB session
  - Return the standard response envelope: {"data": {...}, "warnings": []}

The refresh token never appears in a response body. It travels only in the
HttpOnly refresh cookie set here; the access token goes in the body.

Endpoints (base url_prefix=/api/v1/auth):
  POST   /auth/register  → 201
  POST   /auth/login     → 200
  POST   /auth/logout    → 200
  GET    /auth/me        → 200  (public; nulls when anonymous)
  PATCH  /auth/email     → 200
  PATCH  /auth/password  → 200
"""

from __future__ import annotations

from flask import Blueprint, current_app, g, jsonify, request

from app.extensions import db
from app.middleware.auth_middleware import get_token_service, require_auth
from app.schemas.auth_schema import (
    ChangeEmailSchema,
    ChangePasswordSchema,
    LoginSchema,
    RegisterSchema,
)
from app.services import auth_service

auth_bp = Blueprint("auth", __name__)


def _signed_in_response(result: dict, status: int):
    """Body gets the user and access token; the refresh token goes in the cookie."""
    response = jsonify({
        "data": {
            "user": result["user"],
            "access_token": result["access_token"],
        },
        "warnings": [],
    })
    response.set_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        result["refresh_token"],
        max_age=int(current_app.config["REFRESH_TOKEN_EXPIRES"].total_seconds()),
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response, status


@auth_bp.route("/register", methods=["POST"])
def register():
    """POST /auth/register — Create account; set the refresh cookie."""
    data = RegisterSchema().load(request.get_json(force=True) or {})
    result = auth_service.register_user(
        name=data["name"],
        email=data["email"],
        password=data["password"],
        tokens=get_token_service(),
        session=db.session,
        bcrypt_rounds=current_app.config["BCRYPT_LOG_ROUNDS"],
    )
    db.session.commit()
    return _signed_in_response(result, 201)


@auth_bp.route("/login", methods=["POST"])
def login():
    """POST /auth/login — Authenticate; set the refresh cookie."""
    data = LoginSchema().load(request.get_json(force=True) or {})
    result = auth_service.login_user(
        email=data["email"],
        password=data["password"],
        tokens=get_token_service(),
        session=db.session,
    )
    return _signed_in_response(result, 200)


@auth_bp.route("/logout", methods=["POST"])
@require_auth
def logout():
    """POST /auth/logout — Clear the refresh cookie."""
    response = jsonify({"data": {"success": True}, "warnings": []})
    response.delete_cookie(
        current_app.config["REFRESH_COOKIE_NAME"],
        httponly=True,
        secure=current_app.config["REFRESH_COOKIE_SECURE"],
        samesite="Lax",
    )
    return response, 200


@auth_bp.route("/me", methods=["GET"])
def me():
    """
    GET /auth/me — The resolved session.

    access_token is non-null only when this request restored the session from
    the refresh cookie and minted a replacement; a client whose own access
    token is still good keeps using it. current_user is null for an anonymous
    request.
    """
    context = g.session_context
    current_user = (
        auth_service.build_account_dict(context.user)
        if context.is_authenticated
        else None
    )
    return jsonify({
        "data": {
            "access_token": context.access_token,
            "current_user": current_user,
        },
        "warnings": [],
    }), 200


@auth_bp.route("/email", methods=["PATCH"])
@require_auth
def change_email():
    """PATCH /auth/email — Change email; the current password confirms it."""
    data = ChangeEmailSchema().load(request.get_json(force=True) or {})
    result = auth_service.change_email(
        user=g.current_user,
        new_email=data["email"],
        password=data["password"],
        session=db.session,
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200


@auth_bp.route("/password", methods=["PATCH"])
@require_auth
def change_password():
    """PATCH /auth/password"""
    data = ChangePasswordSchema().load(request.get_json(force=True) or {})
    result = auth_service.change_password(
        user=g.current_user,
        current_password=data["current_password"],
        new_password=data["new_password"],
        session=db.session,
        bcrypt_rounds=current_app.config["BCRYPT_LOG_ROUNDS"],
    )
    db.session.commit()
    return jsonify({"data": result, "warnings": []}), 200
