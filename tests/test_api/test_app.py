"""Tests for app-level behavior: auth, error mapping, request ids."""

import pytest
from fastapi.testclient import TestClient

from smaraa.api.app import create_app, error_status
from smaraa.api.dependencies import get_settings_service
from smaraa.config.settings import get_settings
from smaraa.errors import (
    PermissionDenied,
    ProviderUnavailable,
    RetentionSweepPartialFailure,
    StoreError,
    ValidationError,
)
from smaraa.guilds.service import GuildSettingsService


class TestErrorStatus:
    @pytest.mark.parametrize(
        "exc, status",
        [
            (ValidationError("bad"), 422),
            (PermissionDenied("g1", "search"), 403),
            (ProviderUnavailable("embedding", "down"), 503),
            (StoreError("insert failed"), 500),
            (RetentionSweepPartialFailure(["g1"]), 500),
        ],
    )
    def test_mapping(self, exc, status):
        assert error_status(exc) == status


class TestRequestId:
    def test_generated_when_absent(self, client):
        response = client.get("/")
        assert response.headers["X-Request-ID"]

    def test_propagated_when_present(self, client):
        response = client.get("/", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"


@pytest.fixture
def secured_client(monkeypatch, settings_repo, audit_log):
    monkeypatch.setenv("API_KEYS", "k1,k2")
    get_settings.cache_clear()
    app = create_app()
    service = GuildSettingsService(settings_repo, audit_log)
    app.dependency_overrides[get_settings_service] = lambda: service
    with TestClient(app) as c:
        yield c
    get_settings.cache_clear()


class TestApiKeyAuth:
    def test_missing_key(self, secured_client):
        response = secured_client.get("/admin/settings/g1")
        assert response.status_code == 401

    def test_invalid_key(self, secured_client):
        response = secured_client.get("/admin/settings/g1", headers={"X-API-KEY": "nope"})
        assert response.status_code == 401

    def test_valid_key(self, secured_client):
        response = secured_client.get("/admin/settings/g1", headers={"X-API-KEY": "k2"})
        assert response.status_code == 200

    def test_root_is_public(self, secured_client):
        assert secured_client.get("/").status_code == 200


class TestIpAllowlist:
    def test_disallowed_address(self, monkeypatch, settings_repo, audit_log):
        monkeypatch.setenv("ALLOWED_IPS", "10.0.0.1")
        get_settings.cache_clear()
        try:
            app = create_app()
            service = GuildSettingsService(settings_repo, audit_log)
            app.dependency_overrides[get_settings_service] = lambda: service
            with TestClient(app) as c:
                response = c.get("/admin/settings/g1")
            assert response.status_code == 403
        finally:
            get_settings.cache_clear()
