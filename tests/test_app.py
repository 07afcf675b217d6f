"""
tests/test_app.py -- Application wiring: headers, health endpoints, error mapping, configuration.

Coverage:
  - every response carries the no-cache headers; WebKit user agents get the extras
  - CORS echoes the caller's origin, including on preflight
  - /health, /ready, /api/version and /api/cache-bust
  - request validation errors -> 400 with a field list
  - Settings.missing_required / validate_required and fail-fast startup
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from app.config.settings import ConfigurationError, Settings
from app.database.supabase_client import SupabaseClients
from app.main import BUILD_TIMESTAMP, create_app
from fakes import auth

IPHONE_UA = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) Version/17.4 Mobile/15E148 Safari/604.1"
)
ORIGIN = "https://app.example.com"


class TestCacheHeaders:
    """No-cache headers on every response."""

    @pytest.mark.parametrize("path", ["/health", "/api/version", "/api/practitioners", "/api/auth/user"])
    def test_no_cache_headers(self, client: TestClient, path: str) -> None:
        resp = client.get(path)
        assert resp.headers["cache-control"] == "no-cache, no-store, must-revalidate, private, max-age=0"
        assert resp.headers["pragma"] == "no-cache"
        assert resp.headers["expires"] == "0"
        assert resp.headers["x-content-type-options"] == "nosniff"

    def test_webkit_extras(self, client: TestClient) -> None:
        resp = client.get("/health", headers={"User-Agent": IPHONE_UA})
        assert resp.headers["clear-site-data"] == '"cache"'
        assert resp.headers["x-ios-cache-bust"] == BUILD_TIMESTAMP

    def test_no_extras_for_other_agents(self, client: TestClient) -> None:
        resp = client.get("/health", headers={"User-Agent": "Mozilla/5.0 (X11; Linux x86_64; rv:125.0) Gecko/20100101 Firefox/125.0"})
        assert "clear-site-data" not in resp.headers
        assert "x-ios-cache-bust" not in resp.headers


class TestCors:
    """Cross-origin headers."""

    def test_origin_echoed(self, client: TestClient) -> None:
        resp = client.get("/api/practitioners", headers={"Origin": ORIGIN})
        assert resp.headers["access-control-allow-origin"] == ORIGIN
        assert resp.headers["access-control-allow-credentials"] == "true"

    def test_preflight(self, client: TestClient) -> None:
        resp = client.options("/api/agora/token", headers={
            "Origin": ORIGIN,
            "Access-Control-Request-Method": "GET",
            "Access-Control-Request-Headers": "Authorization",
        })
        assert resp.status_code == 200, f"Preflight failed: {resp.status_code} {resp.text}"
        assert resp.headers["access-control-allow-origin"] == ORIGIN
        assert "GET" in resp.headers["access-control-allow-methods"]
        assert resp.headers["cache-control"].startswith("no-cache")

    def test_restricted_origins(self, test_settings: Settings, clients: SupabaseClients) -> None:
        restricted = test_settings.model_copy(update={"cors_origins": "https://allowed.example.com"})
        with TestClient(create_app(restricted, clients=clients)) as client:
            allowed = client.get("/health", headers={"Origin": "https://allowed.example.com"})
            denied = client.get("/health", headers={"Origin": "https://evil.example.com"})
        assert allowed.headers["access-control-allow-origin"] == "https://allowed.example.com"
        assert "access-control-allow-origin" not in denied.headers


class TestHealthEndpoints:
    """Health, readiness, build version and cache bust."""

    def test_health(self, client: TestClient) -> None:
        body = client.get("/health").json()
        assert body["status"] == "ok"
        assert body["timestamp"]

    def test_ready(self, client: TestClient) -> None:
        assert client.get("/ready").json() == {"status": "ready"}

    def test_version(self, client: TestClient) -> None:
        body = client.get("/api/version").json()
        assert body == {"timestamp": BUILD_TIMESTAMP, "version": "1.0.0", "requiresReload": False}

    def test_cache_bust_forces_reload(self, client: TestClient) -> None:
        resp = client.get("/api/cache-bust", headers={"User-Agent": IPHONE_UA})
        assert resp.status_code == 200
        assert resp.headers["x-force-reload"] == "true"
        assert resp.headers["cache-control"] == "no-cache, no-store, must-revalidate, private, max-age=0"
        body = resp.json()
        assert body["buildTimestamp"] == BUILD_TIMESTAMP
        assert body["version"] == "1.0.0"
        assert body["cacheClear"] is True
        assert body["message"] == "Cache cleared - please reload"
        assert body["userAgent"] == IPHONE_UA
        assert isinstance(body["serverTime"], int)
        assert body["serverTime"] >= int(BUILD_TIMESTAMP)



class TestErrorMapping:
    """Validation errors and error kinds."""

    def test_body_validation_is_400(self, client: TestClient, guest: tuple[str, str]) -> None:
        resp = client.post("/api/sessions", json={}, headers=auth(guest[1]))
        assert resp.status_code == 400
        body = resp.json()
        assert body["detail"] == "Invalid input"
        assert any("practitionerId" in e["field"] for e in body["errors"]), body["errors"]

    def test_malformed_json_is_400(self, client: TestClient, guest: tuple[str, str]) -> None:
        resp = client.post(
            "/api/sessions", content=b"{not json", headers={**auth(guest[1]), "Content-Type": "application/json"}
        )
        assert resp.status_code == 400


class TestSettings:
    """Configuration is validated once, with every problem listed."""

    def test_complete_settings_pass(self, test_settings: Settings) -> None:
        assert test_settings.missing_required() == []
        assert test_settings.validate_required() is test_settings

    def test_missing_fields_enumerated(self) -> None:
        incomplete = Settings(
            _env_file=None,
            supabase_url="",
            supabase_key="",
            supabase_service_role_key=None,
            agora_app_id="",
            agora_app_certificate="",
            environment="test",
        )
        problems = incomplete.missing_required()
        assert problems == [
            "SUPABASE_URL is required",
            "SUPABASE_KEY is required",
            "SUPABASE_SERVICE_ROLE_KEY is required",
            "AGORA_APP_ID is required",
            "AGORA_APP_CERTIFICATE is required",
        ]
        with pytest.raises(ConfigurationError) as excinfo:
            incomplete.validate_required()
        assert excinfo.value.problems == problems

    def test_invalid_values(self, test_settings: Settings) -> None:
        bad = test_settings.model_copy(update={
            "supabase_url": "project.supabase.co",
            "agora_token_ttl_seconds": 0,
            "environment": "prod",
        })
        problems = bad.missing_required()
        assert "SUPABASE_URL must be an http(s) URL" in problems
        assert "AGORA_TOKEN_TTL_SECONDS must be positive" in problems
        assert any(p.startswith("ENVIRONMENT must be one of") for p in problems)

    def test_cors_origin_list(self, test_settings: Settings) -> None:
        settings = test_settings.model_copy(update={"cors_origins": "https://a.example.com, https://b.example.com,"})
        assert settings.get_cors_origins_list() == ["https://a.example.com", "https://b.example.com"]

    def test_startup_fails_fast(self, test_settings: Settings, clients: SupabaseClients) -> None:
        broken = test_settings.model_copy(update={"agora_app_id": ""})
        with pytest.raises(ConfigurationError):
            with TestClient(create_app(broken, clients=clients)):
                pass
