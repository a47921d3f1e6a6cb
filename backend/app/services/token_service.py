"""
services/token_service.py — Signing and verification of session tokens.

Two token kinds share one signing secret and one payload shape:

  refresh token : 7 days,   payload {"userId": <int>}
                  delivered to the browser as the HttpOnly `refreshToken` cookie
  access token  : 15 min,   payload {"refreshToken": <refresh token string>}
                  returned in response bodies, sent back as a Bearer header

Nothing is persisted. A token is good if and only if its signature checks out
and its exp claim is in the future (no leeway).

verify_token() never raises for a bad token. Every failure (bad signature,
expiry, malformed input, payload of the wrong shape) comes back as an
InvalidToken value so callers can branch on it instead of catching.

Layer rules:
  - No Flask imports. The secret is passed to the constructor by the app
    factory; nothing here reads config or environment.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Union

import jwt
from marshmallow import ValidationError

from app.schemas.token_schema import TokenPayloadSchema

ACCESS_TOKEN_TTL = timedelta(minutes=15)
REFRESH_TOKEN_TTL = timedelta(days=7)

_payload_schema = TokenPayloadSchema()


@dataclass(frozen=True)
class TokenPayload:
    user_id: int | None = None
    refresh_token: str | None = None


@dataclass(frozen=True)
class ValidToken:
    payload: TokenPayload


@dataclass(frozen=True)
class InvalidToken:
    reason: str


TokenVerification = Union[ValidToken, InvalidToken]


class TokenService:

    def __init__(
            self,
            secret: str,
            algorithm: str = "HS256",
            access_ttl: timedelta = ACCESS_TOKEN_TTL,
            refresh_ttl: timedelta = REFRESH_TOKEN_TTL,
    ) -> None:
        if not secret:
            raise ValueError("TokenService requires a non-empty signing secret.")
        self._secret = secret
        self._algorithm = algorithm
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl

    def create_token(self, payload: TokenPayload, expires_in: timedelta) -> str:
        """Signs `payload` with exp = now + expires_in. Absent fields are omitted."""
        now = datetime.now(timezone.utc)
        claims = {
            key: value
            for key, value in _payload_schema.dump(payload).items()
            if value is not None
        }
        claims["iat"] = now
        claims["exp"] = now + expires_in
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify_token(
            self,
            token: str | None,
            options: dict | None = None,
    ) -> TokenVerification:
        """
        Returns ValidToken(payload) or InvalidToken(reason).

        `options` is forwarded to jwt.decode (e.g. {"verify_exp": False}).
        """
        if not token:
            return InvalidToken("missing")

        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options=options,
            )
        except jwt.ExpiredSignatureError:
            return InvalidToken("expired")
        except jwt.InvalidTokenError:
            # Covers: bad signature, malformed token, invalid claims, etc.
            return InvalidToken("invalid")

        try:
            data = _payload_schema.load(claims)
        except ValidationError:
            return InvalidToken("malformed payload")

        return ValidToken(TokenPayload(**data))

    def create_refresh_token(self, user_id: int) -> str:
        return self.create_token(TokenPayload(user_id=user_id), self.refresh_ttl)

    def create_access_token(self, refresh_token: str) -> str:
        return self.create_token(
            TokenPayload(refresh_token=refresh_token),
            self.access_ttl,
        )
