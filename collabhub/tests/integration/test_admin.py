"""
tests/integration/test_admin.py - ADMIN-only endpoints.

  GET    /admin/overview
  GET    /admin/users?role=
  PATCH  /admin/users/:id/fraud-flag
  GET    /admin/audit-logs?limit=
  POST   /admin/fraud-scan
"""

from __future__ import annotations

from .conftest import auth_headers, make_admin, make_campaign, set_profile, signup


class TestAdminGate:

    def test_brand_is_forbidden(self, client):
        brand = signup(client, "brand")
        resp = client.get("/api/v1/admin/overview", headers=auth_headers(brand["access_token"]))
        assert resp.status_code == 403
        assert resp.get_json()["error"]["code"] == "FORBIDDEN"

    def test_anonymous_is_unauthenticated(self, client):
        resp = client.get("/api/v1/admin/overview")
        assert resp.status_code == 401


class TestAdminEndpoints:

    def test_overview_counts_rows(self, app, client):
        brand = signup(client, "brand")
        signup(client, "inf", role="INFLUENCER")
        make_campaign(client, brand["access_token"])
        admin = make_admin(app, client)

        resp = client.get("/api/v1/admin/overview", headers=auth_headers(admin["access_token"]))
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert data["users"]        == 3
        assert data["campaigns"]    == 1
        assert data["applications"] == 0
        assert data["transactions"] == 0

    def test_list_users_filters_by_role(self, app, client):
        signup(client, "brand")
        signup(client, "inf", role="INFLUENCER")
        admin = make_admin(app, client)
        headers = auth_headers(admin["access_token"])

        influencers = client.get("/api/v1/admin/users?role=influencer", headers=headers).get_json()["data"]
        assert [u["name"] for u in influencers] == ["inf"]

        everyone = client.get("/api/v1/admin/users?role=nonsense", headers=headers).get_json()["data"]
        assert len(everyone) == 3

    def test_set_fraud_flag(self, app, client):
        influencer = signup(client, "inf", role="INFLUENCER")
        admin = make_admin(app, client)

        resp = client.patch(
            f"/api/v1/admin/users/{influencer['user']['id']}/fraud-flag",
            json={"is_fraud_flagged": True},
            headers=auth_headers(admin["access_token"]),
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["is_fraud_flagged"] is True

    def test_fraud_flag_requires_boolean(self, app, client):
        influencer = signup(client, "inf", role="INFLUENCER")
        admin = make_admin(app, client)
        resp = client.patch(
            f"/api/v1/admin/users/{influencer['user']['id']}/fraud-flag",
            json={"is_fraud_flagged": "yes"},
            headers=auth_headers(admin["access_token"]),
        )
        assert resp.status_code == 400

    def test_fraud_flag_unknown_user_returns_404(self, app, client):
        admin = make_admin(app, client)
        resp = client.patch(
            "/api/v1/admin/users/999999/fraud-flag",
            json={"is_fraud_flagged": True},
            headers=auth_headers(admin["access_token"]),
        )
        assert resp.status_code == 404
        assert resp.get_json()["error"]["code"] == "USER_NOT_FOUND"

    def test_fraud_scan_flags_and_clears(self, app, client):
        bot = signup(client, "bot", role="INFLUENCER")
        honest = signup(client, "honest", role="INFLUENCER")
        set_profile(client, bot["access_token"], followers=250000, engagement_rate=0.1)
        set_profile(client, honest["access_token"], followers=5000, engagement_rate=3.0)
        admin = make_admin(app, client)
        headers = auth_headers(admin["access_token"])

        # a manual flag does not survive a scan
        client.patch(f"/api/v1/admin/users/{honest['user']['id']}/fraud-flag",
                     json={"is_fraud_flagged": True}, headers=headers)

        resp = client.post("/api/v1/admin/fraud-scan", headers=headers)
        assert resp.status_code == 200
        assert resp.get_json()["data"]["flagged_count"] == 1

        users = {
            u["name"]: u["is_fraud_flagged"]
            for u in client.get("/api/v1/admin/users?role=INFLUENCER", headers=headers).get_json()["data"]
        }
        assert users == {"bot": True, "honest": False}

    def test_audit_log_records_actions_newest_first(self, app, client):
        brand = signup(client, "brand")
        make_campaign(client, brand["access_token"])
        admin = make_admin(app, client)

        resp = client.get("/api/v1/admin/audit-logs?limit=2", headers=auth_headers(admin["access_token"]))
        assert resp.status_code == 200
        rows = resp.get_json()["data"]
        assert len(rows) == 2
        assert rows[0]["action"] == "auth.login"

        everything = client.get("/api/v1/admin/audit-logs",
                                headers=auth_headers(admin["access_token"])).get_json()["data"]
        create = next(r for r in everything if r["action"] == "campaign.create")
        assert create["actor_id"]    == brand["user"]["id"]
        assert create["entity_type"] == "campaign"
        assert create["metadata"]    == {"title": "Summer Launch"}
