"""
schemas/pagination_schema.py — Offset pagination query parameters.

`cursor` is an offset into the ordered result set; `limit` is the page size.
A missing limit is resolved by the route from the app's DEFAULT_*_LIMIT
config value.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, fields, validate


class PaginationSchema(Schema):

    class Meta:
        unknown = EXCLUDE

    limit = fields.Int(
        load_default=None,
        validate=validate.Range(min=1, max=100),
    )
    cursor = fields.Int(
        load_default=0,
        validate=validate.Range(min=0),
    )


def load_page(args, default_limit: int) -> tuple[int, int]:
    """Validates limit/cursor query params; returns (limit, cursor)."""
    data = PaginationSchema().load(args)
    return data["limit"] or default_limit, data["cursor"]
