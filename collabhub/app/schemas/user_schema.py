"""
schemas/user_schema.py - Marshmallow schemas for profile and admin user endpoints.
"""

from __future__ import annotations

from marshmallow import Schema, ValidationError, fields, validate, validates_schema


class UpdateProfileSchema(Schema):
    """
    PATCH /users/profile - partial update; at least one field is required.

    engagement_rate is a percentage (0–100). follower_quality_score is a
    0–100 score; null clears it.
    """

    name = fields.Str(validate=validate.Length(min=2, max=80))
    niche = fields.Str(allow_none=True, validate=validate.Length(max=80))
    followers = fields.Int(strict=True, validate=validate.Range(min=0, max=2_000_000_000))
    engagement_rate = fields.Float(validate=validate.Range(min=0, max=100))
    follower_quality_score = fields.Float(
        allow_none=True,
        validate=validate.Range(min=0, max=100),
    )

    @validates_schema
    def validate_not_empty(self, data, **kwargs):
        if not data:
            raise ValidationError("Provide at least one field to update.")


class FraudFlagSchema(Schema):
    """PATCH /admin/users/:id/fraud-flag"""

    # JSON booleans only; "true", "1" and friends are rejected.
    is_fraud_flagged = fields.Bool(required=True, truthy={True}, falsy={False})
