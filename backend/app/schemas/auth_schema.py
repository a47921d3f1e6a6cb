"""
schemas/auth_schema.py — Marshmallow schemas for authentication endpoints.

Validation responsibility:
  - This file: field types, lengths, formats.
  - services/auth_service.py: DUPLICATE_EMAIL and password checks
    (require a DB lookup, not a schema concern).

All schemas inherit from marshmallow.Schema directly (see extensions.py).
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate


_NAME_LENGTH = validate.Length(
    min=3,
    max=100,
    error="Name must be at least 3 characters long.",
)

_PASSWORD_LENGTH = validate.Length(
    min=8,
    error="Password must be at least 8 characters long.",
)


class RegisterSchema(Schema):
    """
    POST /auth/register

    Field rules:
      name     : 3–100 chars
      email    : valid email format
      password : min 8 chars
    """

    name = fields.Str(required=True, validate=_NAME_LENGTH)
    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
        error_messages={"invalid": "Please enter a valid email address."},
    )
    password = fields.Str(required=True, load_only=True, validate=_PASSWORD_LENGTH)


class LoginSchema(Schema):
    """
    POST /auth/login

    Credential correctness is checked in auth_service.py
    (INVALID_CREDENTIALS, 401).
    """

    email = fields.Email(required=True)
    password = fields.Str(required=True, load_only=True, validate=_PASSWORD_LENGTH)


class ChangeEmailSchema(Schema):
    """PATCH /auth/email — the current password confirms the change."""

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
        error_messages={"invalid": "Please enter a valid email address."},
    )
    password = fields.Str(required=True, load_only=True, validate=_PASSWORD_LENGTH)


class ChangePasswordSchema(Schema):
    """PATCH /auth/password"""

    current_password = fields.Str(required=True, load_only=True, validate=_PASSWORD_LENGTH)
    new_password = fields.Str(required=True, load_only=True, validate=_PASSWORD_LENGTH)
