"""
Tests for the per-IP rate limiter and its middleware.
"""

from poap_gateway.config import settings
from poap_gateway.utils import rate_limiter


class TestRateLimiter:

    def test_allows_up_to_limit(self, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_MAX_REQUESTS", 3)
        results = [rate_limiter.check_rate_limit("api", "1.2.3.4", now=1000)[0] for _ in range(4)]
        assert results == [True, True, True, False]

    def test_window_resets(self, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_MAX_REQUESTS", 1)
        assert rate_limiter.check_rate_limit("api", "1.2.3.4", now=1000)[0]
        assert not rate_limiter.check_rate_limit("api", "1.2.3.4", now=1001)[0]
        later = 1000 + settings.RATE_LIMIT_WINDOW_SECONDS
        assert rate_limiter.check_rate_limit("api", "1.2.3.4", now=later)[0]

    def test_keys_are_independent(self, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_MAX_REQUESTS", 1)
        assert rate_limiter.check_rate_limit("api", "1.1.1.1", now=0)[0]
        assert rate_limiter.check_rate_limit("api", "2.2.2.2", now=0)[0]
        assert rate_limiter.check_rate_limit("auth", "1.1.1.1", now=0)[0]

    def test_stats(self, monkeypatch):
        monkeypatch.setattr(settings, "AUTH_RATE_LIMIT_MAX_REQUESTS", 5)
        allowed, stats = rate_limiter.check_rate_limit("auth", "9.9.9.9", now=50)
        assert allowed
        assert stats == {"limit": 5, "remaining": 4, "reset_at": 50 + settings.RATE_LIMIT_WINDOW_SECONDS}

    def test_cleanup_expired(self):
        rate_limiter.check_rate_limit("api", "1.1.1.1", now=0)
        rate_limiter.check_rate_limit("api", "2.2.2.2", now=10_000)
        removed = rate_limiter.cleanup_expired(now=settings.RATE_LIMIT_WINDOW_SECONDS + 1)
        assert removed == 1


class TestRateLimitMiddleware:

    def test_api_limit_returns_429(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_MAX_REQUESTS", 2)
        assert client.get("/api/docs").status_code == 200
        assert client.get("/api/docs").status_code == 200

        resp = client.get("/api/docs")
        assert resp.status_code == 429
        assert resp.json() == {
            "success": False,
            "error": "Too many requests from this IP, please try again later.",
        }

    def test_auth_limit_is_stricter(self, client, monkeypatch):
        monkeypatch.setattr(settings, "AUTH_RATE_LIMIT_MAX_REQUESTS", 2)
        body = {"email": "x@example.com", "password": "whatever1"}
        assert client.post("/api/auth/login", json=body).status_code == 401
        assert client.post("/api/auth/login", json=body).status_code == 401

        resp = client.post("/api/auth/login", json=body)
        assert resp.status_code == 429
        assert resp.json()["error"] == "Too many authentication attempts, please try again later."

        # Other API routes still have budget
        assert client.get("/api/docs").status_code == 200

    def test_non_api_paths_not_limited(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_MAX_REQUESTS", 1)
        for _ in range(3):
            assert client.get("/health").status_code == 200

    def test_disabled(self, client, monkeypatch):
        monkeypatch.setattr(settings, "RATE_LIMIT_ENABLED", False)
        monkeypatch.setattr(settings, "RATE_LIMIT_MAX_REQUESTS", 1)
        for _ in range(3):
            assert client.get("/api/docs").status_code == 200
