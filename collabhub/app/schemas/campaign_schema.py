"""
schemas/campaign_schema.py - Marshmallow schemas for campaigns, matches,
applications and proposals.

Cross-entity rules (ownership, campaign OPEN, duplicates, state machine)
are enforced in the services, not here.
"""

from __future__ import annotations

from marshmallow import EXCLUDE, Schema, ValidationError, fields, validate, validates

from collabhub.app.models.application import ApplicationStatus
from collabhub.app.models.proposal import ProposalStatus

MAX_AMOUNT = 100_000_000

_positive_id = validate.Range(min=1, error="Must be a positive integer.")
_money = validate.Range(min=1, max=MAX_AMOUNT, error=f"Must be between 1 and {MAX_AMOUNT}.")


def _not_blank(value: str) -> None:
    if not value.strip():
        raise ValidationError("This field must not be blank or contain only whitespace.")


class CreateCampaignSchema(Schema):
    """POST /campaigns"""

    title = fields.Str(
        required=True,
        validate=[validate.Length(min=3, max=120), _not_blank],
    )
    budget = fields.Int(required=True, strict=True, validate=_money)
    description = fields.Str(load_default="", validate=validate.Length(max=5000))
    target_niche = fields.Str(
        load_default=None,
        allow_none=True,
        validate=validate.Length(max=80),
    )

    @validates("title")
    def validate_title(self, value: str, **kwargs) -> None:
        if len(value.strip()) < 3:
            raise ValidationError("Title must be at least 3 characters.")


class CreateMatchSchema(Schema):
    """POST /matches"""

    campaign_id = fields.Int(required=True, strict=True, validate=_positive_id)
    influencer_id = fields.Int(required=True, strict=True, validate=_positive_id)


class RecommendationQuerySchema(Schema):
    """GET /matches/recommendations?campaign_id="""

    class Meta:
        unknown = EXCLUDE

    campaign_id = fields.Int(required=True, validate=_positive_id)


class CreateApplicationSchema(Schema):
    """POST /applications"""

    campaign_id = fields.Int(required=True, strict=True, validate=_positive_id)
    proposal_message = fields.Str(
        required=True,
        validate=[validate.Length(min=10, max=2000), _not_blank],
    )


class ApplicationStatusSchema(Schema):
    """PATCH /applications/:id/status - PENDING is never a target."""

    status = fields.Str(
        required=True,
        validate=validate.OneOf([
            ApplicationStatus.APPROVED,
            ApplicationStatus.REJECTED,
            ApplicationStatus.WITHDRAWN,
        ]),
    )


class CreateProposalSchema(Schema):
    """POST /proposals"""

    match_id = fields.Int(required=True, strict=True, validate=_positive_id)
    deliverables = fields.Str(
        required=True,
        validate=[validate.Length(min=3, max=500), _not_blank],
    )
    amount = fields.Int(required=True, strict=True, validate=_money)


class ProposalStatusSchema(Schema):
    """PATCH /proposals/:id/status"""

    status = fields.Str(required=True, validate=validate.OneOf(ProposalStatus.ALL))
