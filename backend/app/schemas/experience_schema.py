"""
schemas/experience_schema.py — Marshmallow schemas for experience endpoints.

Field rules:
  title        : required, non-empty
  content      : required, non-empty
  scheduled_at : ISO-8601 datetime; normalised to UTC
  url          : optional, valid URL, nullable
  location     : {display_name, lat, lon}
  tag_ids      : optional list of tag ids (existence checked in the service)

Filter rules (GET /experiences/search):
  q            : substring match on title or content
  scheduled_at : only experiences scheduled at or after this instant
  tags         : comma-separated tag ids, e.g. "1,4,7"
"""

from __future__ import annotations

from datetime import datetime, timezone

from marshmallow import (
    EXCLUDE,
    Schema,
    ValidationError,
    fields,
    post_load,
    validate,
    validates,
)

from app.errors import ErrorCode
from app.schemas.pagination_schema import PaginationSchema


def _to_utc(value: datetime) -> datetime:
    """Naive datetimes are taken to be UTC already."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class LocationSchema(Schema):

    display_name = fields.Str(required=True)
    lat = fields.Float(required=True, validate=validate.Range(min=-90, max=90))
    lon = fields.Float(required=True, validate=validate.Range(min=-180, max=180))


class ExperienceSchema(Schema):
    """POST /experiences and PATCH /experiences/:id"""

    title = fields.Str(
        required=True,
        validate=validate.Length(min=1, max=200, error="Title is required."),
    )
    content = fields.Str(
        required=True,
        validate=validate.Length(min=1, error="Content is required."),
    )
    scheduled_at = fields.DateTime(
        required=True,
        error_messages={"invalid": "Invalid date."},
    )
    url = fields.Url(
        load_default=None,
        allow_none=True,
        error_messages={"invalid": "Invalid link."},
    )
    location = fields.Nested(LocationSchema, required=True)
    tag_ids = fields.List(fields.Int(strict=True), load_default=list)

    @post_load
    def normalise(self, data: dict, **kwargs) -> dict:
        data["scheduled_at"] = _to_utc(data["scheduled_at"])
        # Order-preserving de-duplication; a tag is linked at most once.
        data["tag_ids"] = list(dict.fromkeys(data["tag_ids"]))
        return data


class ExperienceFiltersSchema(PaginationSchema):

    class Meta:
        unknown = EXCLUDE

    q = fields.Str(load_default=None)
    scheduled_at = fields.DateTime(load_default=None)
    tags = fields.Str(load_default=None)

    @validates("tags")
    def validate_tags(self, value: str | None, **kwargs) -> None:
        if value is None:
            return
        for part in value.split(","):
            if not part.strip().isdigit():
                raise ValidationError(ErrorCode.INVALID_TAGS)

    @post_load
    def normalise(self, data: dict, **kwargs) -> dict:
        if data.get("scheduled_at") is not None:
            data["scheduled_at"] = _to_utc(data["scheduled_at"])
        raw_tags = data.get("tags")
        data["tags"] = (
            [int(part) for part in raw_tags.split(",")] if raw_tags else []
        )
        return data
