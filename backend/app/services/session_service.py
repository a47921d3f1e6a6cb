"""
services/session_service.py — Per-request session resolution.

Turns the two credential channels of a request into an identity:

  Authorization: Bearer <access token>   (short-lived, embeds a refresh token)
  Cookie: refreshToken=<refresh token>   (long-lived, carries the user id)

The access token is never trusted for identity on its own. It only says
"this refresh token was recently handed out"; the embedded refresh token is
re-verified on every request and its userId is what gets looked up.

Transitions (first matching row wins):

  no Authorization header                               → anonymous
  access token fails verification:
      no refresh cookie                                 → anonymous
      cookie fails verification / has no userId        → anonymous
      user not found                                    → anonymous
      user found                                        → authenticated,
                                                          new access token minted
  access token verifies:
      no embedded refreshToken                          → anonymous
      embedded token fails verification / no userId     → anonymous
      user not found                                    → anonymous
      user found                                        → authenticated

No transition raises. "No credentials" and "bad credentials" both produce
ANONYMOUS; routes that need an identity reject it via require_auth.
Only persistence errors escape.

Layer rules:
  - No Flask imports. Header and cookie values arrive as plain strings.
  - Never sets or clears cookies; only login/register/logout do that.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy.orm import Session

from app.models.user import User
from app.services.token_service import InvalidToken, TokenService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionContext:
    user: User | None = None
    # Set only when this request minted a replacement access token.
    access_token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


ANONYMOUS = SessionContext()


def _bearer_token(authorization: str) -> str:
    """Second space-separated part of the header; "" when there is none."""
    parts = authorization.split(" ")
    return parts[1] if len(parts) >= 2 else ""


def _user_from_refresh_token(
        refresh_token: str,
        tokens: TokenService,
        session: Session,
) -> User | None:
    result = tokens.verify_token(refresh_token)
    if isinstance(result, InvalidToken):
        logger.debug("Refresh token rejected: %s", result.reason)
        return None

    user_id = result.payload.user_id
    if user_id is None:
        logger.debug("Refresh token rejected: no userId claim")
        return None

    user = session.get(User, user_id)
    if user is None:
        logger.debug("Refresh token rejected: user %s no longer exists", user_id)
    return user


def resolve_session(
        authorization: str | None,
        refresh_cookie: str | None,
        tokens: TokenService,
        session: Session,
) -> SessionContext:
    """Resolves the request's identity. See the module docstring for the table."""
    if not authorization:
        return ANONYMOUS

    access = tokens.verify_token(_bearer_token(authorization))

    if isinstance(access, InvalidToken):
        # Access token expired or unusable: fall back to the cookie.
        if not refresh_cookie:
            return ANONYMOUS

        user = _user_from_refresh_token(refresh_cookie, tokens, session)
        if user is None:
            return ANONYMOUS

        logger.debug("Session for user %s refreshed from cookie", user.id)
        return SessionContext(
            user=user,
            access_token=tokens.create_access_token(refresh_cookie),
        )

    embedded = access.payload.refresh_token
    if not embedded:
        # Signed with our secret but not issued by the login/refresh flow.
        logger.debug("Access token rejected: no embedded refresh token")
        return ANONYMOUS

    user = _user_from_refresh_token(embedded, tokens, session)
    if user is None:
        return ANONYMOUS

    return SessionContext(user=user)
