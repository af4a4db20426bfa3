"""
tests/unit/test_validation_schemas.py - Unit tests for the marshmallow schemas.

What this file proves:
  - Every schema accepts valid input and normalises it
  - Field-level rules (type, length, enum, range, strict ints) are enforced
  - Cross-entity rules (ownership, campaign OPEN, duplicates) are NOT tested
    here; they belong to the services

No database and no Flask application context: the schemas inherit from
marshmallow.Schema directly.
"""

from __future__ import annotations

import pytest
from marshmallow import ValidationError

from collabhub.app.schemas.auth_schema import LoginSchema, RefreshTokenSchema, SignupSchema
from collabhub.app.schemas.campaign_schema import (
    ApplicationStatusSchema,
    CreateApplicationSchema,
    CreateCampaignSchema,
    CreateMatchSchema,
    CreateProposalSchema,
    ProposalStatusSchema,
    RecommendationQuerySchema,
)
from collabhub.app.schemas.transaction_schema import CreateMediaSchema, CreateTransactionSchema
from collabhub.app.schemas.user_schema import FraudFlagSchema, UpdateProfileSchema


def _errors(schema, data) -> dict:
    with pytest.raises(ValidationError) as exc_info:
        schema.load(data)
    return exc_info.value.messages


# ═══════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════

class TestSignupSchema:

    def test_valid_payload_is_normalised(self):
        result = SignupSchema().load({
            "name": "  Alice  ",
            "email": "  Alice@Example.COM ",
            "password": "Password123",
            "role": "INFLUENCER",
        })
        assert result["name"]  == "Alice"
        assert result["email"] == "alice@example.com"

    def test_admin_role_rejected(self):
        errors = _errors(SignupSchema(), {
            "name": "Alice", "email": "a@b.com", "password": "Password123", "role": "ADMIN",
        })
        assert "role" in errors

    def test_blank_name_rejected(self):
        errors = _errors(SignupSchema(), {
            "name": "   ", "email": "a@b.com", "password": "Password123", "role": "BRAND",
        })
        assert "name" in errors

    def test_password_bounds(self):
        base = {"name": "Alice", "email": "a@b.com", "role": "BRAND"}
        assert "password" in _errors(SignupSchema(), {**base, "password": "x" * 7})
        assert "password" in _errors(SignupSchema(), {**base, "password": "x" * 129})
        SignupSchema().load({**base, "password": "x" * 8})

    def test_invalid_email(self):
        errors = _errors(SignupSchema(), {
            "name": "Alice", "email": "not-an-email", "password": "Password123", "role": "BRAND",
        })
        assert "email" in errors


class TestLoginSchema:

    def test_email_lowercased(self):
        result = LoginSchema().load({"email": "BOB@Example.com", "password": "Password123"})
        assert result["email"] == "bob@example.com"

    def test_missing_password(self):
        errors = _errors(LoginSchema(), {"email": "bob@example.com"})
        assert errors["password"] == ["Missing data for required field."]


class TestRefreshTokenSchema:

    def test_token_is_optional(self):
        assert RefreshTokenSchema().load({}) == {"refresh_token": None}


# ═══════════════════════════════════════════════════════════════════════════
# Campaigns, matches, applications, proposals
# ═══════════════════════════════════════════════════════════════════════════

class TestCreateCampaignSchema:

    def test_defaults(self):
        result = CreateCampaignSchema().load({"title": "Summer", "budget": 100})
        assert result["description"]  == ""
        assert result["target_niche"] is None

    @pytest.mark.parametrize("budget", [0, -1, 1.5, "100", 100_000_001])
    def test_budget_must_be_positive_int(self, budget):
        assert "budget" in _errors(CreateCampaignSchema(), {"title": "Summer", "budget": budget})

    def test_title_is_trimmed_for_length(self):
        assert "title" in _errors(CreateCampaignSchema(), {"title": "  a  ", "budget": 100})


class TestMatchSchemas:

    def test_create_match_requires_both_ids(self):
        errors = _errors(CreateMatchSchema(), {"campaign_id": 1})
        assert "influencer_id" in errors

    def test_recommendation_query_coerces_and_ignores_unknown(self):
        result = RecommendationQuerySchema().load({"campaign_id": "12", "page": "2"})
        assert result == {"campaign_id": 12}


class TestApplicationSchemas:

    def test_message_bounds(self):
        assert "proposal_message" in _errors(
            CreateApplicationSchema(), {"campaign_id": 1, "proposal_message": "too short"},
        )
        assert "proposal_message" in _errors(
            CreateApplicationSchema(), {"campaign_id": 1, "proposal_message": "x" * 2001},
        )
        CreateApplicationSchema().load({"campaign_id": 1, "proposal_message": "x" * 10})

    def test_pending_is_not_a_target(self):
        assert "status" in _errors(ApplicationStatusSchema(), {"status": "PENDING"})
        assert ApplicationStatusSchema().load({"status": "WITHDRAWN"}) == {"status": "WITHDRAWN"}


class TestProposalSchemas:

    def test_valid(self):
        result = CreateProposalSchema().load({"match_id": 1, "deliverables": "Two reels", "amount": 900})
        assert result["amount"] == 900

    def test_blank_deliverables(self):
        errors = _errors(CreateProposalSchema(), {"match_id": 1, "deliverables": "    ", "amount": 900})
        assert "deliverables" in errors

    def test_status_enum(self):
        assert "status" in _errors(ProposalStatusSchema(), {"status": "sent"})
        ProposalStatusSchema().load({"status": "SENT"})


# ═══════════════════════════════════════════════════════════════════════════
# Transactions, media, users
# ═══════════════════════════════════════════════════════════════════════════

class TestTransactionSchemas:

    def test_proposal_id_optional(self):
        result = CreateTransactionSchema().load({"campaign_id": 1, "influencer_id": 2, "amount": 50})
        assert result["proposal_id"] is None

    def test_amount_strict(self):
        errors = _errors(CreateTransactionSchema(), {"campaign_id": 1, "influencer_id": 2, "amount": 5.5})
        assert "amount" in errors


class TestMediaSchema:

    def test_valid(self):
        result = CreateMediaSchema().load({
            "url": "https://cdn.example.com/a.png", "public_id": "a", "resource_type": "image",
        })
        assert result["campaign_id"] is None

    def test_bad_url_and_type(self):
        errors = _errors(CreateMediaSchema(), {
            "url": "not a url", "public_id": "a", "resource_type": "gif",
        })
        assert {"url", "resource_type"} <= set(errors)


class TestUserSchemas:

    def test_profile_requires_a_field(self):
        errors = _errors(UpdateProfileSchema(), {})
        assert "_schema" in errors

    def test_profile_ranges(self):
        errors = _errors(UpdateProfileSchema(), {"engagement_rate": 101, "followers": -1})
        assert {"engagement_rate", "followers"} <= set(errors)

    def test_quality_score_can_be_cleared(self):
        assert UpdateProfileSchema().load({"follower_quality_score": None}) == {
            "follower_quality_score": None,
        }

    def test_fraud_flag_is_strict_bool(self):
        assert FraudFlagSchema().load({"is_fraud_flagged": False}) == {"is_fraud_flagged": False}
        assert "is_fraud_flagged" in _errors(FraudFlagSchema(), {"is_fraud_flagged": "true"})
