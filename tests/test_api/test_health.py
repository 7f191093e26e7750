"""Tests for the health endpoint."""

from unittest.mock import AsyncMock

from smaraa.api import dependencies
from smaraa.api.dependencies import get_health_database


class TestHealthEndpoint:
    def test_healthy(self, client):
        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["components"]["database"]["status"] == "healthy"
        assert data["components"]["database"]["details"]["pgvector"] is True
        assert data["breakers"] == {"embedding": "closed", "generation": "closed"}
        assert data["cache_available"] is True

    def test_database_down_is_unhealthy(self, client, mock_database):
        mock_database.health_check = AsyncMock(return_value=False)

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["components"]["database"]["details"]["pgvector"] is False

    def test_missing_pgvector_is_degraded(self, client, mock_database):
        mock_database.check_pgvector_extension = AsyncMock(return_value=False)

        response = client.get("/healthz")

        assert response.status_code == 200
        assert response.json()["status"] == "degraded"

    def test_open_embedding_breaker_is_unhealthy(self, client, archive_body, fake_provider):
        fake_provider.embed_error = ConnectionError("provider down")
        for i in range(2):
            assert client.post("/archive", json=archive_body(message_id=f"m{i}")).status_code == 503

        response = client.get("/healthz")

        assert response.status_code == 503
        assert response.json()["breakers"]["embedding"] == "open"

    def test_open_generation_breaker_is_degraded(self, client, archive_body, fake_provider):
        client.post("/archive", json=archive_body())
        fake_provider.generate_error = ConnectionError("llm down")
        for _ in range(2):
            summary = client.post("/summarize", json={"tenantId": "g1", "query": "release notes"})
            assert summary.json()["degraded"] is True

        response = client.get("/healthz")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "degraded"
        assert data["breakers"]["generation"] == "open"

    def test_unreachable_database_is_unhealthy(self, app, client):
        app.dependency_overrides[get_health_database] = lambda: None

        response = client.get("/healthz")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "unhealthy"
        assert data["components"]["database"]["details"] == {"pgvector": False, "connected": False}


class TestHealthDatabaseDependency:
    async def test_connect_failure_yields_none(self, monkeypatch):
        failing = AsyncMock()
        failing.connect.side_effect = ConnectionError("refused")
        monkeypatch.setattr(dependencies, "Database", lambda: failing)
        monkeypatch.setattr(dependencies, "_database", None)

        assert await dependencies.get_health_database() is None
        assert dependencies._database is None
