"""
schemas/comment_schema.py — Marshmallow schemas for comment endpoints.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


class CommentSchema(Schema):
    """POST /experiences/:id/comments and PATCH /comments/:id"""

    content = fields.Str(
        required=True,
        validate=validate.Length(min=1, error="Comment is required."),
    )
