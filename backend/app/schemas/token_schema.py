"""
schemas/token_schema.py — Wire format of signed token payloads.

The signed payload is {"userId"?: int, "refreshToken"?: str} plus the
standard iat/exp claims. Keys stay camelCase for interop with existing
clients; Python code sees user_id / refresh_token.

Unknown keys (iat, exp, anything a foreign signer added) are dropped on load.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields


class TokenPayloadSchema(Schema):

    class Meta:
        unknown = EXCLUDE

    user_id = fields.Integer(
        data_key="userId",
        strict=True,
        allow_none=True,
        load_default=None,
    )
    refresh_token = fields.String(
        data_key="refreshToken",
        allow_none=True,
        load_default=None,
    )
