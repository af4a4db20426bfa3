"""
tests/integration/test_transactions.py - Escrow, receipts, media and analytics.

Covers the full collaboration flow end to end:
  campaign → application → approval (match) → proposal SENT → ACCEPTED
  → escrow HELD → RELEASED → receipt → dashboard analytics.
"""

from __future__ import annotations

import pytest

from .conftest import apply, auth_headers, make_admin, make_campaign, set_profile, signup


def _accepted_proposal(client, brand, influencer, campaign, amount=1500) -> dict:
    application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]
    client.patch(
        f"/api/v1/applications/{application['id']}/status",
        json={"status": "APPROVED"},
        headers=auth_headers(brand["access_token"]),
    )
    match_id = client.get(
        "/api/v1/matches", headers=auth_headers(influencer["access_token"]),
    ).get_json()["data"][0]["id"]

    proposal = client.post(
        "/api/v1/proposals",
        json={"match_id": match_id, "deliverables": "Two reels", "amount": amount},
        headers=auth_headers(influencer["access_token"]),
    ).get_json()["data"]
    client.patch(f"/api/v1/proposals/{proposal['id']}/status", json={"status": "SENT"},
                 headers=auth_headers(influencer["access_token"]))
    resp = client.patch(f"/api/v1/proposals/{proposal['id']}/status", json={"status": "ACCEPTED"},
                        headers=auth_headers(brand["access_token"]))
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()["data"]


def _create_transaction(client, token, campaign_id, influencer_id, amount=1500, proposal_id=None):
    payload = {"campaign_id": campaign_id, "influencer_id": influencer_id, "amount": amount}
    if proposal_id is not None:
        payload["proposal_id"] = proposal_id
    return client.post("/api/v1/transactions", json=payload, headers=auth_headers(token))


@pytest.fixture
def parties(client):
    brand = signup(client, "brand")
    influencer = signup(client, "inf", role="INFLUENCER")
    set_profile(client, influencer["access_token"], niche="fitness",
                followers=10000, engagement_rate=4.5, follower_quality_score=80)
    campaign = make_campaign(client, brand["access_token"])
    return brand, influencer, campaign


# ═══════════════════════════════════════════════════════════════════════════
# Full flow
# ═══════════════════════════════════════════════════════════════════════════

class TestCollaborationFlow:

    def test_end_to_end(self, client, parties):
        brand, influencer, campaign = parties
        proposal = _accepted_proposal(client, brand, influencer, campaign)

        resp = _create_transaction(client, brand["access_token"], campaign["id"],
                                   influencer["user"]["id"], proposal_id=proposal["id"])
        assert resp.status_code == 201
        tx = resp.get_json()["data"]
        assert tx["status"]      == "HELD"
        assert tx["released_at"] is None

        resp = client.patch(f"/api/v1/transactions/{tx['id']}/release",
                            headers=auth_headers(brand["access_token"]))
        assert resp.status_code == 200
        released = resp.get_json()["data"]
        assert released["status"] == "RELEASED"
        assert released["released_at"] is not None

        resp = client.get(f"/api/v1/transactions/{tx['id']}/receipt",
                          headers=auth_headers(influencer["access_token"]))
        assert resp.status_code == 200
        receipt = resp.get_json()["data"]
        assert receipt["receipt_number"].startswith(f"TX-{tx['id']}-")
        assert receipt["amount"] == 1500
        assert receipt["influencer"]["id"] == influencer["user"]["id"]

        # brand dashboard: 10000 followers at 4.5% engagement
        resp = client.get("/api/v1/analytics/brand", headers=auth_headers(brand["access_token"]))
        assert resp.status_code == 200
        summary = resp.get_json()["data"]
        assert summary["totals"]["released_spend"]     == 1500
        assert summary["totals"]["held_spend"]         == 0
        assert summary["totals"]["accepted_proposals"] == 1
        assert summary["metrics"]["estimated_reach"]       == 10000
        assert summary["metrics"]["estimated_engagements"] == 450
        assert summary["metrics"]["estimated_conversions"] == 18
        assert summary["metrics"]["estimated_revenue"]     == 810
        assert summary["metrics"]["roi_percent"]           == -46.0
        assert summary["metrics"]["conversion_rate"]       == 0.18
        assert summary["metrics"]["cost_per_engagement"]   == 3.33

        resp = client.get("/api/v1/analytics/influencer",
                          headers=auth_headers(influencer["access_token"]))
        summary = resp.get_json()["data"]
        assert summary["totals"]["released_earnings"] == 1500
        assert summary["totals"]["pending_earnings"]  == 0
        assert summary["metrics"]["acceptance_rate"]   == 100.0
        assert summary["metrics"]["average_deal_size"] == 1500.0

        recent = client.get("/api/v1/notifications/recent",
                            headers=auth_headers(influencer["access_token"])).get_json()["data"]
        types = [event["type"] for event in recent]
        assert types[0] == "transaction.released"
        for expected in ("application.status.updated", "proposal.status.updated",
                         "transaction.created"):
            assert expected in types


# ═══════════════════════════════════════════════════════════════════════════
# Escrow rules
# ═══════════════════════════════════════════════════════════════════════════

class TestTransactions:

    def test_transaction_without_proposal(self, client, parties):
        brand, influencer, campaign = parties
        resp = _create_transaction(client, brand["access_token"], campaign["id"], influencer["user"]["id"])
        assert resp.status_code == 201
        assert resp.get_json()["data"]["proposal_id"] is None

    def test_unaccepted_proposal_returns_409(self, client, parties):
        brand, influencer, campaign = parties
        application = apply(client, influencer["access_token"], campaign["id"]).get_json()["data"]
        client.patch(f"/api/v1/applications/{application['id']}/status", json={"status": "APPROVED"},
                     headers=auth_headers(brand["access_token"]))
        match_id = client.get("/api/v1/matches",
                              headers=auth_headers(brand["access_token"])).get_json()["data"][0]["id"]
        draft = client.post(
            "/api/v1/proposals",
            json={"match_id": match_id, "deliverables": "One post", "amount": 300},
            headers=auth_headers(influencer["access_token"]),
        ).get_json()["data"]

        resp = _create_transaction(client, brand["access_token"], campaign["id"],
                                   influencer["user"]["id"], proposal_id=draft["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "PROPOSAL_NOT_ACCEPTED"

    def test_proposal_for_another_influencer_returns_409(self, client, parties):
        brand, influencer, campaign = parties
        proposal = _accepted_proposal(client, brand, influencer, campaign)
        other = signup(client, "inf2", role="INFLUENCER")

        resp = _create_transaction(client, brand["access_token"], campaign["id"],
                                   other["user"]["id"], proposal_id=proposal["id"])
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "PROPOSAL_MISMATCH"

    def test_influencer_cannot_create_transaction(self, client, parties):
        _brand, influencer, campaign = parties
        resp = _create_transaction(client, influencer["access_token"], campaign["id"],
                                   influencer["user"]["id"])
        assert resp.status_code == 403

    def test_other_brand_cannot_fund_campaign(self, client, parties):
        _brand, influencer, campaign = parties
        other = signup(client, "other")
        resp = _create_transaction(client, other["access_token"], campaign["id"],
                                   influencer["user"]["id"])
        assert resp.status_code == 403

    def test_non_influencer_target_returns_400(self, client, parties):
        brand, _influencer, campaign = parties
        resp = _create_transaction(client, brand["access_token"], campaign["id"], brand["user"]["id"])
        assert resp.status_code == 400
        assert resp.get_json()["error"]["code"] == "INVALID_INFLUENCER"

    def test_refund_then_release_is_invalid(self, client, parties):
        brand, influencer, campaign = parties
        tx = _create_transaction(client, brand["access_token"], campaign["id"],
                                 influencer["user"]["id"]).get_json()["data"]

        resp = client.patch(f"/api/v1/transactions/{tx['id']}/refund",
                            headers=auth_headers(brand["access_token"]))
        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "REFUNDED"
        assert resp.get_json()["data"]["released_at"] is None

        resp = client.patch(f"/api/v1/transactions/{tx['id']}/release",
                            headers=auth_headers(brand["access_token"]))
        assert resp.status_code == 409
        assert resp.get_json()["error"]["code"] == "INVALID_TRANSITION"

    def test_release_twice_is_invalid(self, client, parties):
        brand, influencer, campaign = parties
        tx = _create_transaction(client, brand["access_token"], campaign["id"],
                                 influencer["user"]["id"]).get_json()["data"]
        client.patch(f"/api/v1/transactions/{tx['id']}/release", headers=auth_headers(brand["access_token"]))
        resp = client.patch(f"/api/v1/transactions/{tx['id']}/release",
                            headers=auth_headers(brand["access_token"]))
        assert resp.status_code == 409

    def test_receipt_hidden_from_outsiders(self, client, parties):
        brand, influencer, campaign = parties
        tx = _create_transaction(client, brand["access_token"], campaign["id"],
                                 influencer["user"]["id"]).get_json()["data"]
        outsider = signup(client, "outsider", role="INFLUENCER")
        resp = client.get(f"/api/v1/transactions/{tx['id']}/receipt",
                          headers=auth_headers(outsider["access_token"]))
        assert resp.status_code == 403

    def test_admin_can_release(self, app, client, parties):
        brand, influencer, campaign = parties
        tx = _create_transaction(client, brand["access_token"], campaign["id"],
                                 influencer["user"]["id"]).get_json()["data"]
        admin = make_admin(app, client)
        resp = client.patch(f"/api/v1/transactions/{tx['id']}/release",
                            headers=auth_headers(admin["access_token"]))
        assert resp.status_code == 200

    def test_unknown_transaction_returns_404(self, client, parties):
        brand, _influencer, _campaign = parties
        resp = client.patch("/api/v1/transactions/999999/release",
                            headers=auth_headers(brand["access_token"]))
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "TRANSACTION_NOT_FOUND"

    def test_list_is_scoped_by_role(self, client, parties):
        brand, influencer, campaign = parties
        _create_transaction(client, brand["access_token"], campaign["id"], influencer["user"]["id"])
        outsider = signup(client, "outsider", role="INFLUENCER")

        def count(token):
            resp = client.get("/api/v1/transactions", headers=auth_headers(token))
            return len(resp.get_json()["data"])

        assert count(brand["access_token"])      == 1
        assert count(influencer["access_token"]) == 1
        assert count(outsider["access_token"])   == 0


# ═══════════════════════════════════════════════════════════════════════════
# Media
# ═══════════════════════════════════════════════════════════════════════════

class TestMedia:

    def _upload(self, client, token, campaign_id=None):
        payload = {
            "url": "https://cdn.example.com/u/reel.mp4",
            "public_id": "reels/reel-1",
            "resource_type": "video",
        }
        if campaign_id is not None:
            payload["campaign_id"] = campaign_id
        return client.post("/api/v1/media", json=payload, headers=auth_headers(token))

    def test_upload_without_campaign(self, client, parties):
        _brand, influencer, _campaign = parties
        resp = self._upload(client, influencer["access_token"])
        assert resp.status_code == 201
        assert resp.get_json()["data"]["campaign_id"] is None

        listed = client.get("/api/v1/media", headers=auth_headers(influencer["access_token"]))
        assert len(listed.get_json()["data"]) == 1

    def test_brand_attaches_to_own_campaign(self, client, parties):
        brand, _influencer, campaign = parties
        resp = self._upload(client, brand["access_token"], campaign["id"])
        assert resp.status_code == 201
        assert resp.get_json()["data"]["campaign_id"] == campaign["id"]

    def test_unmatched_influencer_cannot_attach(self, client, parties):
        _brand, influencer, campaign = parties
        resp = self._upload(client, influencer["access_token"], campaign["id"])
        assert resp.status_code == 403
        assert resp.get_json()["error"]["field"] == "campaign_id"

    def test_matched_influencer_can_attach(self, client, parties):
        brand, influencer, campaign = parties
        client.post(
            "/api/v1/matches",
            json={"campaign_id": campaign["id"], "influencer_id": influencer["user"]["id"]},
            headers=auth_headers(brand["access_token"]),
        )
        resp = self._upload(client, influencer["access_token"], campaign["id"])
        assert resp.status_code == 201

    def test_invalid_resource_type_returns_400(self, client, parties):
        _brand, influencer, _campaign = parties
        resp = client.post(
            "/api/v1/media",
            json={"url": "https://cdn.example.com/x", "public_id": "x", "resource_type": "pdf"},
            headers=auth_headers(influencer["access_token"]),
        )
        assert resp.status_code == 400
        assert resp.get_json()["error"]["field"] == "resource_type"


# ═══════════════════════════════════════════════════════════════════════════
# Analytics edge cases
# ═══════════════════════════════════════════════════════════════════════════

class TestAnalytics:

    def test_empty_brand_dashboard_reports_zero_ratios(self, client):
        brand = signup(client, "brand")
        resp = client.get("/api/v1/analytics/brand", headers=auth_headers(brand["access_token"]))
        metrics = resp.get_json()["data"]["metrics"]
        assert metrics["roi_percent"]         == 0
        assert metrics["conversion_rate"]     == 0
        assert metrics["cost_per_engagement"] == 0

    def test_influencer_cannot_read_brand_dashboard(self, client):
        influencer = signup(client, "inf", role="INFLUENCER")
        resp = client.get("/api/v1/analytics/brand", headers=auth_headers(influencer["access_token"]))
        assert resp.status_code == 403

    def test_profile_views_are_counted(self, client, parties):
        brand, influencer, _campaign = parties
        client.get(f"/api/v1/users/{influencer['user']['id']}", headers=auth_headers(brand["access_token"]))
        client.get(f"/api/v1/users/{influencer['user']['id']}", headers=auth_headers(brand["access_token"]))
        # own views are not counted
        client.get(f"/api/v1/users/{influencer['user']['id']}", headers=auth_headers(influencer["access_token"]))

        resp = client.get("/api/v1/analytics/influencer", headers=auth_headers(influencer["access_token"]))
        assert resp.get_json()["data"]["totals"]["profile_views"] == 2
