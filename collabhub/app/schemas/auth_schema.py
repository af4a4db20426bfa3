"""
schemas/auth_schema.py - Marshmallow schemas for authentication endpoints.

Validation responsibility:
  - This file: field types, lengths, formats, allowed roles.
  - services/auth_service.py: DUPLICATE_EMAIL (requires a DB lookup).

IMPORTANT: All schemas inherit from marshmallow.Schema directly so they can
           be exercised in unit tests without an app context.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, pre_load, validate, validates

from collabhub.app.models.user import Role


def _strip_strings(data, keys):
    if isinstance(data, dict):
        data = dict(data)
        for key in keys:
            if isinstance(data.get(key), str):
                data[key] = data[key].strip()
    return data


class SignupSchema(Schema):
    """
    POST /auth/signup

    Field rules:
      name     : 2–80 chars after trimming
      email    : valid email format, stored lower-cased
      password : 8–128 chars
      role     : BRAND or INFLUENCER (ADMIN accounts are never self-served)
    """

    name = fields.Str(
        required=True,
        validate=validate.Length(
            min=2,
            max=80,
            error="Name must be between 2 and 80 characters.",
        ),
    )

    email = fields.Email(
        required=True,
        validate=validate.Length(max=255),
    )

    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(
            min=8,
            max=128,
            error="Password must be between 8 and 128 characters.",
        ),
    )

    role = fields.Str(
        required=True,
        validate=validate.OneOf(
            Role.SELF_SERVE,
            error="Role must be BRAND or INFLUENCER.",
        ),
    )

    @pre_load
    def normalise(self, data, **kwargs):
        data = _strip_strings(data, ("name", "email"))
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data["email"] = data["email"].lower()
        return data

    @validates("name")
    def validate_name_not_blank(self, value: str, **kwargs) -> None:
        if not value.strip():
            raise ValidationError("Name must not be blank.")


class LoginSchema(Schema):
    """
    POST /auth/login

    Credential correctness is checked in auth_service.py
    (INVALID_CREDENTIALS, 401).
    """

    email = fields.Email(required=True)
    password = fields.Str(
        required=True,
        load_only=True,
        validate=validate.Length(min=8, max=128),
    )

    @pre_load
    def normalise(self, data, **kwargs):
        data = _strip_strings(data, ("email",))
        if isinstance(data, dict) and isinstance(data.get("email"), str):
            data["email"] = data["email"].lower()
        return data


class RefreshTokenSchema(Schema):
    """
    POST /auth/refresh - body fallback for clients that cannot hold cookies.
    Browsers send nothing; the cp_refresh cookie wins when present.
    """

    refresh_token = fields.Str(load_default=None)
