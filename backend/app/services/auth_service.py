"""
services/auth_service.py — Authentication business logic.

Responsibilities:
  - User registration and credential validation
  - Issuing the refresh/access token pair on register and login
  - Email and password changes for the signed-in user
  - Password hashing (bcrypt) and verification

Layer rules:
  - No imports from routes or schemas
  - No use of flask.request, flask.g, or HTTP cookies. The route sets the
    refresh cookie from the token this service returns.
  - The TokenService and bcrypt cost factor are passed in by the caller.

Token design (see services/token_service.py):
  - Refresh token: 7 days, payload {userId}. Goes to the client as an
    HttpOnly cookie. Not stored server-side.
  - Access token: 15 min, payload {refreshToken}. Goes to the client in the
    response body.

Password storage:
  - Hashed with bcrypt; raw password is never stored, never logged.
"""

from __future__ import annotations

import logging

import bcrypt
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.errors import AppError, ErrorCode
from app.models.timestamps import utcnow
from app.models.user import User
from app.services.token_service import TokenService

logger = logging.getLogger(__name__)

DEFAULT_BCRYPT_ROUNDS = 12


# ── Private helpers ────────────────────────────────────────────────────────

def _hash_password(password: str, rounds: int) -> str:
    return bcrypt.hashpw(
        password.encode("utf-8"),
        bcrypt.gensalt(rounds=rounds),
    ).decode("utf-8")


def _verify_password(password: str, password_hash: str) -> bool:
    # bcrypt.checkpw compares in constant time.
    return bcrypt.checkpw(
        password.encode("utf-8"),
        password_hash.encode("utf-8"),
    )


def _issue_tokens(user_id: int, tokens: TokenService) -> dict:
    refresh_token = tokens.create_refresh_token(user_id)
    return {
        "refresh_token": refresh_token,
        "access_token": tokens.create_access_token(refresh_token),
    }


def build_account_dict(user: User) -> dict:
    """The signed-in user's own view of their account: email included, hash never."""
    return {
        "id": user.id,
        "name": user.name,
        "bio": user.bio,
        "avatar_url": user.avatar_url,
        "email": user.email,
        "created_at": user.created_at.isoformat(),
        "updated_at": user.updated_at.isoformat(),
    }


def _email_taken(email: str, session: Session, exclude_user_id: int | None = None) -> bool:
    stmt = select(User.id).where(User.email == email)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return session.execute(stmt).scalar_one_or_none() is not None


# ── Public service functions ───────────────────────────────────────────────

def register_user(
        name: str,
        email: str,
        password: str,
        tokens: TokenService,
        session: Session,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> dict:
    """
    Creates a new user account and issues a refresh + access token pair.

    Raises:
      AppError(DUPLICATE_EMAIL, 409) — email already registered

    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    if _email_taken(email, session):
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            "This email is already registered. Please try logging in instead.",
            409,
            field="email",
        )

    user = User(
        name=name,
        email=email,
        password_hash=_hash_password(password, bcrypt_rounds),
    )
    # A concurrent register with the same email passes the check above and
    # fails here on uq_users_email.
    try:
        with session.begin_nested():
            session.add(user)
            session.flush()  # populate user.id before signing the refresh token
    except IntegrityError:
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            "This email is already registered. Please try logging in instead.",
            409,
            field="email",
        )

    logger.info("Registered user %s", user.id)

    return {
        "user": build_account_dict(user),
        **_issue_tokens(user.id, tokens),
    }


def login_user(
        email: str,
        password: str,
        tokens: TokenService,
        session: Session,
) -> dict:
    """
    Validates credentials and issues a new refresh + access token pair.

    Raises:
      AppError(INVALID_CREDENTIALS, 401) — email not found or password wrong.
      Uses the same error for both to avoid account enumeration.

    Returns: {"user": {...}, "access_token": "...", "refresh_token": "..."}
    """
    user = session.execute(
        select(User).where(User.email == email)
    ).scalar_one_or_none()

    if user is None or not _verify_password(password, user.password_hash):
        raise AppError(
            ErrorCode.INVALID_CREDENTIALS,
            "Invalid email or password. Please try again.",
            401,
        )

    return {
        "user": build_account_dict(user),
        **_issue_tokens(user.id, tokens),
    }


def change_email(
        user: User,
        new_email: str,
        password: str,
        session: Session,
) -> dict:
    """
    Changes the signed-in user's email after re-checking their password.

    Raises:
      AppError(INVALID_PASSWORD, 403) — password does not match
      AppError(DUPLICATE_EMAIL, 409)  — email belongs to another account
    """
    if not _verify_password(password, user.password_hash):
        raise AppError(
            ErrorCode.INVALID_PASSWORD,
            "Invalid password.",
            403,
            field="password",
        )

    if _email_taken(new_email, session, exclude_user_id=user.id):
        raise AppError(
            ErrorCode.DUPLICATE_EMAIL,
            "This email is already registered.",
            409,
            field="email",
        )

    user.email = new_email
    user.updated_at = utcnow()
    session.flush()
    return {"success": True}


def change_password(
        user: User,
        current_password: str,
        new_password: str,
        session: Session,
        bcrypt_rounds: int = DEFAULT_BCRYPT_ROUNDS,
) -> dict:
    """
    Replaces the signed-in user's password hash.

    Existing refresh tokens stay valid until they expire; they are not
    stored, so there is nothing to revoke.

    Raises:
      AppError(INVALID_PASSWORD, 403) — current password does not match
    """
    if not _verify_password(current_password, user.password_hash):
        raise AppError(
            ErrorCode.INVALID_PASSWORD,
            "Invalid password.",
            403,
            field="current_password",
        )

    user.password_hash = _hash_password(new_password, bcrypt_rounds)
    user.updated_at = utcnow()
    session.flush()
    return {"success": True}
