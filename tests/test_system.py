"""
Tests for monitoring endpoints and app-wide error handling.
"""

from poap_gateway import __version__
from poap_gateway.api import system
from poap_gateway.main import app
from poap_gateway.relayer.minter import get_minter


class TestHealth:

    def test_healthy(self, client, minter):
        resp = client.get("/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "healthy"
        assert data["version"] == __version__
        assert data["database"]["ok"] is True
        assert data["relayer"] == {
            "configured": True,
            "publicKey": str(minter.relayer_pubkey),
            "network": "devnet",
        }

    def test_degraded_without_relayer(self, client):
        app.dependency_overrides[get_minter] = lambda: None
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "degraded"
        assert resp.json()["relayer"] == {"configured": False}

    def test_database_down(self, client, monkeypatch):
        monkeypatch.setattr(system, "test_db_connection", lambda: {"ok": False, "error": "refused"})
        resp = client.get("/health")
        assert resp.status_code == 503
        assert resp.json()["status"] == "degraded"

    def test_build_info(self, client):
        data = client.get("/").json()
        assert data["service"] == "poap-gateway"
        assert data["status"] == "ok"
        assert data["version"] == __version__


class TestSystemEndpoints:

    def test_stats(self, client, auth_headers, create_campaign):
        create_campaign()
        create_campaign(isActive=False)
        data = client.get("/api/system/stats").json()["data"]
        assert data["counts"]["organizers"] == 1
        assert data["counts"]["campaigns"] == 2
        assert data["counts"]["activeCampaigns"] == 1
        assert data["counts"]["claims"] == 0
        assert data["relayer"]["configured"] is True
        assert data["uptimeSeconds"] >= 0

    def test_migration_status(self, client):
        data = client.get("/api/system/migration-status").json()["data"]
        assert data["upToDate"] is True
        assert data["missingTables"] == []
        assert set(data["expectedTables"]) == {"organizers", "api_keys", "campaigns", "claims", "legacy_mints"}

    def test_db_round_trip(self, client):
        resp = client.get("/api/system/test-db")
        assert resp.status_code == 200
        assert resp.json()["data"]["connected"] is True

    def test_db_round_trip_failure(self, client, monkeypatch):
        monkeypatch.setattr(system, "test_db_connection", lambda: {"ok": False, "error": "refused"})
        resp = client.get("/api/system/test-db")
        assert resp.status_code == 503
        assert resp.json() == {"success": False, "error": "Database connection failed"}

    def test_docs_catalogue(self, client):
        data = client.get("/api/docs").json()
        assert data["version"] == __version__
        assert data["baseUrl"].endswith("/api")
        assert "POST /poap/claim" in data["endpoints"]["poap"]
        assert "POST /nft/claim-with-signature" in data["endpoints"]["relayer"]

    def test_metrics(self, client):
        resp = client.get("/metrics")
        assert resp.status_code == 200
        assert "poap_claims_total" in resp.text


class TestErrorHandling:

    def test_unknown_route(self, client):
        resp = client.get("/api/does-not-exist")
        assert resp.status_code == 404
        body = resp.json()
        assert body["success"] is False
        assert body["error"] == "Endpoint not found"
        assert "GET /health" in body["availableEndpoints"]

    def test_validation_error_is_400(self, client):
        resp = client.post("/api/auth/register", json={"email": "not-an-email", "password": "supersecret", "name": "Acme"})
        assert resp.status_code == 400
        body = resp.json()
        assert body["success"] is False
        assert body["error"].startswith("email:")

    def test_http_errors_use_envelope(self, client):
        resp = client.get("/api/campaigns")
        assert resp.status_code == 401
        assert resp.json() == {"success": False, "error": "Access token required"}
