"""
tests/integration/test_applications_proposals.py - Applications and proposals.

State machines under test:
  application  PENDING → APPROVED | REJECTED | WITHDRAWN   (terminal after)
  proposal     DRAFT → SENT → ACCEPTED | REJECTED, SENT → DRAFT

Role limits:
  BRAND       approves/rejects applications, accepts/rejects proposals
  INFLUENCER  withdraws applications, drafts/sends proposals
"""

from __future__ import annotations

import pytest

from .conftest import apply, auth_headers, make_campaign, signup


@pytest.fixture
def parties(client):
    brand = signup(client, "brand")
    influencer = signup(client, "inf", role="INFLUENCER")
    campaign = make_campaign(client, brand["access_token"])
    return brand, influencer, campaign


def _set_application_status(client, token, application_id, status):
    return client.patch(
        f"/api/v1/applications/{application_id}/status",
        json={"status": status},
        headers=auth_headers(token),
    )


def _set_proposal_status(client, token, proposal_id, status):
    return client.patch(
        f"/api/v1/proposals/{proposal_id}/status",
        json={"status": status},
        headers=auth_headers(token),
    )


def _approved_match(client, brand, influencer, campaign) -> int:
    application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]
    _set_application_status(client, brand["access_token"], application["id"], "APPROVED")
    matches = client.get("/api/v1/matches", headers=auth_headers(influencer["access_token"]))
    return matches.get_json()["data"][0]["id"]


# ═══════════════════════════════════════════════════════════════════════════
# Applications
# ═══════════════════════════════════════════════════════════════════════════

class TestApplications:

    def test_influencer_applies(self, client, parties):
        _brand, influencer, campaign = parties
        resp = apply(client, influencer["access_token"], campaign["id"])
        assert resp.status_code == 201
        data = resp.get_json()["data"]
        assert data["status"]      == "PENDING"
        assert data["campaign_id"] == campaign["id"]

    def test_duplicate_application_returns_409(self, client, parties):
        _brand, influencer, campaign = parties
        apply(client, influencer["access_token"], campaign["id"])
        resp = apply(client, influencer["access_token"], campaign["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "DUPLICATE_APPLICATION"

    def test_short_message_returns_400(self, client, parties):
        _brand, influencer, campaign = parties
        resp = apply(client, influencer["access_token"], campaign["id"], message="hi")
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "proposal_message"

    def test_brand_cannot_apply(self, client, parties):
        brand, _influencer, campaign = parties
        resp = apply(client, brand["access_token"], campaign["id"])
        assert resp.status_code == 403

    def test_closed_campaign_rejects_applications(self, client, parties):
        brand, influencer, campaign = parties
        client.patch(f"/api/v1/campaigns/{campaign['id']}/close",
                     headers=auth_headers(brand["access_token"]))
        resp = apply(client, influencer["access_token"], campaign["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "CAMPAIGN_CLOSED"

    def test_approval_creates_match(self, client, parties):
        brand, influencer, campaign = parties
        application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]

        resp = _set_application_status(client, brand["access_token"], application["id"], "APPROVED")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "APPROVED"

        matches = client.get("/api/v1/matches", headers=auth_headers(brand["access_token"]))
        assert len(matches.get_json()["data"]) == 1

    def test_approval_reuses_existing_match(self, client, parties):
        brand, influencer, campaign = parties
        client.post(
            "/api/v1/matches",
            json={"campaign_id": campaign["id"], "influencer_id": influencer["user"]["id"]},
            headers=auth_headers(brand["access_token"]),
        )
        application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]
        resp = _set_application_status(client, brand["access_token"], application["id"], "APPROVED")
        assert resp.status_code == 200

        matches = client.get("/api/v1/matches", headers=auth_headers(brand["access_token"]))
        assert len(matches.get_json()["data"]) == 1

    def test_influencer_can_only_withdraw(self, client, parties):
        _brand, influencer, campaign = parties
        application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]

        resp = _set_application_status(client, influencer["access_token"], application["id"], "APPROVED")
        assert resp.status_code == 403

        resp = _set_application_status(client, influencer["access_token"], application["id"], "WITHDRAWN")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "WITHDRAWN"

    def test_brand_cannot_withdraw(self, client, parties):
        brand, influencer, campaign = parties
        application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]
        resp = _set_application_status(client, brand["access_token"], application["id"], "WITHDRAWN")
        assert resp.status_code == 403

    def test_terminal_status_cannot_change(self, client, parties):
        brand, influencer, campaign = parties
        application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]
        _set_application_status(client, brand["access_token"], application["id"], "REJECTED")

        resp = _set_application_status(client, brand["access_token"], application["id"], "APPROVED")
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "INVALID_TRANSITION"

    def test_pending_is_not_a_valid_target(self, client, parties):
        brand, influencer, campaign = parties
        application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]
        resp = _set_application_status(client, brand["access_token"], application["id"], "PENDING")
        assert resp.status_code == 400

    def test_other_brand_cannot_review(self, client, parties):
        _brand, influencer, campaign = parties
        other = signup(client, "other")
        application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]
        resp = _set_application_status(client, other["access_token"], application["id"], "APPROVED")
        assert resp.status_code == 403

    def test_list_is_scoped_by_role(self, client, parties):
        brand, influencer, campaign = parties
        apply(client, influencer["access_token"], campaign["id"])
        other_brand = signup(client, "other")
        other_inf = signup(client, "inf2", role="INFLUENCER")

        def count(token):
            resp = client.get("/api/v1/applications", headers=auth_headers(token))
            return len(resp.get_json()["data"])

        assert count(brand["access_token"])       == 1
        assert count(influencer["access_token"])  == 1
        assert count(other_brand["access_token"]) == 0
        assert count(other_inf["access_token"])   == 0

    def test_unknown_application_returns_404(self, client, parties):
        brand, _influencer, _campaign = parties
        resp = _set_application_status(client, brand["access_token"], 999999, "APPROVED")
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "APPLICATION_NOT_FOUND"


# ═══════════════════════════════════════════════════════════════════════════
# Proposals
# ═══════════════════════════════════════════════════════════════════════════

class TestProposals:

    def _create(self, client, token, match_id, amount=1500):
        return client.post(
            "/api/v1/proposals",
            json={"match_id": match_id, "deliverables": "Three reels and a story", "amount": amount},
            headers=auth_headers(token),
        )

    def test_influencer_drafts_and_sends(self, client, parties):
        brand, influencer, campaign = parties
        match_id = _approved_match(client, brand, influencer, campaign)

        resp = self._create(client, influencer["access_token"], match_id)
        assert resp.status_code == 201
        proposal = resp.get_json()["data"]
        assert proposal["status"] == "DRAFT"
        assert proposal["match"]["campaign"]["id"] == campaign["id"]

        resp = _set_proposal_status(client, influencer["access_token"], proposal["id"], "SENT")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "SENT"

    def test_brand_accepts_sent_proposal(self, client, parties):
        brand, influencer, campaign = parties
        match_id = _approved_match(client, brand, influencer, campaign)
        proposal = self._create(client, influencer["access_token"], match_id).get_json()["data"]
        _set_proposal_status(client, influencer["access_token"], proposal["id"], "SENT")

        resp = _set_proposal_status(client, brand["access_token"], proposal["id"], "ACCEPTED")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "ACCEPTED"

    def test_brand_cannot_accept_draft(self, client, parties):
        brand, influencer, campaign = parties
        match_id = _approved_match(client, brand, influencer, campaign)
        proposal = self._create(client, influencer["access_token"], match_id).get_json()["data"]

        resp = _set_proposal_status(client, brand["access_token"], proposal["id"], "ACCEPTED")
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "INVALID_TRANSITION"

    def test_influencer_cannot_accept(self, client, parties):
        brand, influencer, campaign = parties
        match_id = _approved_match(client, brand, influencer, campaign)
        proposal = self._create(client, influencer["access_token"], match_id).get_json()["data"]
        _set_proposal_status(client, influencer["access_token"], proposal["id"], "SENT")

        resp = _set_proposal_status(client, influencer["access_token"], proposal["id"], "ACCEPTED")
        assert resp.status_code == 403

    def test_sent_proposal_can_return_to_draft(self, client, parties):
        brand, influencer, campaign = parties
        match_id = _approved_match(client, brand, influencer, campaign)
        proposal = self._create(client, influencer["access_token"], match_id).get_json()["data"]
        _set_proposal_status(client, influencer["access_token"], proposal["id"], "SENT")

        resp = _set_proposal_status(client, influencer["access_token"], proposal["id"], "DRAFT")
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "DRAFT"

    def test_outsider_cannot_propose(self, client, parties):
        brand, influencer, campaign = parties
        match_id = _approved_match(client, brand, influencer, campaign)
        outsider = signup(client, "outsider", role="INFLUENCER")

        resp = self._create(client, outsider["access_token"], match_id)
        assert resp.status_code == 403

    def test_unknown_match_returns_404(self, client, parties):
        _brand, influencer, _campaign = parties
        resp = self._create(client, influencer["access_token"], 999999)
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "MATCH_NOT_FOUND"

    def test_amount_must_be_positive(self, client, parties):
        brand, influencer, campaign = parties
        match_id = _approved_match(client, brand, influencer, campaign)
        resp = self._create(client, influencer["access_token"], match_id, amount=0)
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "amount"
