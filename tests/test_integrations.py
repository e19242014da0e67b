"""
Tests for the ApiKey-authenticated integration endpoints.
"""

import pytest

from poap_gateway.models import CLAIM_CONFIRMED, CLAIM_PENDING, Claim


@pytest.fixture
def api_key_headers(client, auth_headers):
    key = client.post("/api/auth/api-keys", json={"name": "ticketing"}, headers=auth_headers).json()["data"]
    return {"Authorization": f"ApiKey {key['key']}"}


class TestIntegrationCampaigns:

    def test_lists_active_campaigns_without_secrets(self, client, api_key_headers, create_campaign, db):
        active = create_campaign(name="Open", secretCode="HUSH")
        create_campaign(name="Closed", isActive=False)
        db.add(Claim(campaign_id=active["id"], user_public_key="wallet-a", status=CLAIM_CONFIRMED))
        db.commit()

        resp = client.get("/api/integrations/campaigns", headers=api_key_headers)
        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["total"] == 1
        campaign = data["campaigns"][0]
        assert campaign["name"] == "Open"
        assert campaign["_count"]["claims"] == 1
        assert "secretCode" not in campaign

    def test_bearer_token_not_accepted(self, client, auth_headers):
        resp = client.get("/api/integrations/campaigns", headers=auth_headers)
        assert resp.status_code == 401
        assert "ApiKey <your-key>" in resp.json()["error"]

    def test_deactivated_key_rejected(self, client, auth_headers):
        key = client.post("/api/auth/api-keys", json={"name": "old"}, headers=auth_headers).json()["data"]
        client.delete(f"/api/auth/api-keys/{key['id']}", headers=auth_headers)

        resp = client.get("/api/integrations/campaigns", headers={"Authorization": f"ApiKey {key['key']}"})
        assert resp.status_code == 401
        assert resp.json()["error"] == "Invalid or inactive API key"


class TestIntegrationClaims:

    def test_confirmed_claims_only(self, client, api_key_headers, create_campaign, db):
        campaign = create_campaign()
        db.add(Claim(campaign_id=campaign["id"], user_public_key="wallet-a", status=CLAIM_CONFIRMED))
        db.add(Claim(campaign_id=campaign["id"], user_public_key="wallet-b", status=CLAIM_PENDING))
        db.commit()

        data = client.get(
            f"/api/integrations/campaigns/{campaign['id']}/claims", headers=api_key_headers
        ).json()["data"]
        assert data["total"] == 1
        assert data["claims"][0]["userPublicKey"] == "wallet-a"

    def test_other_organizers_campaign(self, client, api_key_headers, register):
        token_b, _ = register(email="b@example.com")
        other = client.post(
            "/api/campaigns", json={"name": "Theirs"}, headers={"Authorization": f"Bearer {token_b}"}
        ).json()["data"]

        resp = client.get(f"/api/integrations/campaigns/{other['id']}/claims", headers=api_key_headers)
        assert resp.status_code == 404
