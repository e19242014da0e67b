"""
Tests for campaign CRUD and organizer scoping.
"""

from poap_gateway.models import CLAIM_CONFIRMED, Claim


def _bearer(token):
    return {"Authorization": f"Bearer {token}"}


class TestCreateCampaign:

    def test_create_with_all_fields(self, client, auth_headers):
        resp = client.post("/api/campaigns", headers=auth_headers, json={
            "name": "Solana Breakpoint",
            "description": "Annual conference",
            "eventDate": "2026-11-20T09:00:00Z",
            "location": "Lisbon",
            "externalUrl": "https://example.com/event",
            "secretCode": "BREAKPOINT",
            "maxClaims": 500,
            "metadata": {"track": "main"},
        })
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["name"] == "Solana Breakpoint"
        assert data["eventDate"] == "2026-11-20T09:00:00"
        assert data["secretCode"] == "BREAKPOINT"
        assert data["maxClaims"] == 500
        assert data["symbol"] == "POAP"
        assert data["isActive"] is True
        assert data["metadata"] == {"track": "main"}
        assert data["_count"] == {"claims": 0}

    def test_name_required(self, client, auth_headers):
        resp = client.post("/api/campaigns", headers=auth_headers, json={"description": "no name"})
        assert resp.status_code == 400
        assert resp.json()["success"] is False

    def test_max_claims_must_be_positive(self, client, auth_headers):
        resp = client.post("/api/campaigns", headers=auth_headers, json={"name": "x", "maxClaims": 0})
        assert resp.status_code == 400

    def test_external_url_must_be_http(self, client, auth_headers):
        resp = client.post("/api/campaigns", headers=auth_headers, json={
            "name": "x", "externalUrl": "javascript:alert(1)",
        })
        assert resp.status_code == 400

    def test_requires_authentication(self, client):
        resp = client.post("/api/campaigns", json={"name": "x"})
        assert resp.status_code == 401


class TestListCampaigns:

    def test_pagination_and_counts(self, client, auth_headers, create_campaign):
        for i in range(3):
            create_campaign(name=f"Event {i}")

        resp = client.get("/api/campaigns?page=1&limit=2", headers=auth_headers)
        data = resp.json()["data"]
        assert data["total"] == 3
        assert data["page"] == 1
        assert data["limit"] == 2
        assert len(data["campaigns"]) == 2

        second = client.get("/api/campaigns?page=2&limit=2", headers=auth_headers).json()["data"]
        assert len(second["campaigns"]) == 1

    def test_search_is_case_insensitive(self, client, auth_headers, create_campaign):
        create_campaign(name="Rust Meetup")
        create_campaign(name="Python Night", location="Berlin")

        names = [c["name"] for c in client.get(
            "/api/campaigns?search=RUST", headers=auth_headers
        ).json()["data"]["campaigns"]]
        assert names == ["Rust Meetup"]

        by_location = client.get("/api/campaigns?search=berlin", headers=auth_headers).json()["data"]
        assert by_location["total"] == 1

    def test_filter_by_active(self, client, auth_headers, create_campaign):
        create_campaign(name="Live")
        create_campaign(name="Paused", isActive=False)

        data = client.get("/api/campaigns?isActive=false", headers=auth_headers).json()["data"]
        assert [c["name"] for c in data["campaigns"]] == ["Paused"]

    def test_limit_out_of_range(self, client, auth_headers):
        resp = client.get("/api/campaigns?limit=500", headers=auth_headers)
        assert resp.status_code == 400

    def test_only_own_campaigns_listed(self, client, register, create_campaign):
        token_a, _ = register(email="a@example.com")
        token_b, _ = register(email="b@example.com")
        create_campaign(headers=_bearer(token_a), name="A's event")

        data = client.get("/api/campaigns", headers=_bearer(token_b)).json()["data"]
        assert data["total"] == 0


class TestOrganizerScoping:
    """A campaign owned by another organizer looks exactly like a missing one."""

    def test_other_organizers_campaign_is_404(self, client, register, create_campaign):
        token_a, _ = register(email="a@example.com")
        token_b, _ = register(email="b@example.com")
        campaign = create_campaign(headers=_bearer(token_a))

        for method, path in [
            ("get", f"/api/campaigns/{campaign['id']}"),
            ("put", f"/api/campaigns/{campaign['id']}"),
            ("delete", f"/api/campaigns/{campaign['id']}"),
            ("get", f"/api/campaigns/{campaign['id']}/analytics"),
            ("get", f"/api/campaigns/{campaign['id']}/claims"),
        ]:
            kwargs = {"headers": _bearer(token_b)}
            if method == "put":
                kwargs["json"] = {"name": "hijacked"}
            resp = getattr(client, method)(path, **kwargs)
            assert resp.status_code == 404, path
            assert resp.json() == {"success": False, "error": "Campaign not found"}

    def test_missing_campaign_is_404(self, client, auth_headers):
        resp = client.get("/api/campaigns/does-not-exist", headers=auth_headers)
        assert resp.status_code == 404


class TestUpdateAndDelete:

    def test_partial_update(self, client, auth_headers, create_campaign):
        campaign = create_campaign(location="Paris", secretCode="OLD")

        resp = client.put(f"/api/campaigns/{campaign['id']}", headers=auth_headers, json={"name": "Renamed"})
        data = resp.json()["data"]
        assert data["name"] == "Renamed"
        assert data["location"] == "Paris"
        assert data["secretCode"] == "OLD"

    def test_null_secret_code_clears_it(self, client, auth_headers, create_campaign):
        campaign = create_campaign(secretCode="OLD")
        resp = client.put(f"/api/campaigns/{campaign['id']}", headers=auth_headers, json={"secretCode": None})
        assert resp.json()["data"]["secretCode"] is None

    def test_null_name_is_ignored(self, client, auth_headers, create_campaign):
        campaign = create_campaign(name="Keep me")
        resp = client.put(f"/api/campaigns/{campaign['id']}", headers=auth_headers, json={"name": None})
        assert resp.json()["data"]["name"] == "Keep me"

    def test_delete_cascades_claims(self, client, auth_headers, create_campaign, db, wallet):
        campaign = create_campaign()
        db.add(Claim(campaign_id=campaign["id"], user_public_key=str(wallet.pubkey()), status=CLAIM_CONFIRMED))
        db.commit()

        resp = client.delete(f"/api/campaigns/{campaign['id']}", headers=auth_headers)
        assert resp.status_code == 200

        db.expire_all()
        assert db.query(Claim).count() == 0
        assert client.get(f"/api/campaigns/{campaign['id']}", headers=auth_headers).status_code == 404


class TestCampaignClaims:

    def test_claims_newest_first(self, client, auth_headers, create_campaign, db):
        from datetime import datetime

        from solders.keypair import Keypair

        campaign = create_campaign()
        older = Claim(campaign_id=campaign["id"], user_public_key=str(Keypair().pubkey()),
                      status=CLAIM_CONFIRMED, claimed_at=datetime(2026, 1, 1))
        newer = Claim(campaign_id=campaign["id"], user_public_key=str(Keypair().pubkey()),
                      status=CLAIM_CONFIRMED, claimed_at=datetime(2026, 2, 1))
        db.add_all([older, newer])
        db.commit()

        data = client.get(f"/api/campaigns/{campaign['id']}/claims", headers=auth_headers).json()["data"]
        assert data["total"] == 2
        assert [c["id"] for c in data["claims"]] == [newer.id, older.id]
