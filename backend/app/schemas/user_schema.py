"""
schemas/user_schema.py — Marshmallow schemas for profile endpoints.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class EditProfileSchema(Schema):
    """
    PATCH /users/:id

    Avatar uploads are not handled by this service; avatar_url is read-only.
    """

    name = fields.Str(
        required=True,
        validate=validate.Length(
            min=3,
            max=100,
            error="Name must be at least 3 characters long.",
        ),
    )
    bio = fields.Str(load_default=None, allow_none=True)
