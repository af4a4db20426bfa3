"""
schemas/transaction_schema.py - Marshmallow schemas for escrow and media endpoints.
"""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from collabhub.app.schemas.campaign_schema import MAX_AMOUNT

RESOURCE_TYPES = ("image", "video", "raw")


class CreateTransactionSchema(Schema):
    """
    POST /transactions

    proposal_id is optional; when given it must reference an ACCEPTED
    proposal of the same campaign/influencer pair (checked in the service).
    """

    campaign_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    influencer_id = fields.Int(required=True, strict=True, validate=validate.Range(min=1))
    proposal_id = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        validate=validate.Range(min=1),
    )
    amount = fields.Int(
        required=True,
        strict=True,
        validate=validate.Range(min=1, max=MAX_AMOUNT),
    )


class CreateMediaSchema(Schema):
    """POST /media"""

    url = fields.Url(required=True, validate=validate.Length(max=1000))
    public_id = fields.Str(required=True, validate=validate.Length(min=1, max=255))
    resource_type = fields.Str(required=True, validate=validate.OneOf(RESOURCE_TYPES))
    campaign_id = fields.Int(
        load_default=None,
        allow_none=True,
        strict=True,
        validate=validate.Range(min=1),
    )
