"""Shared fixtures for API tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from smaraa.api.app import create_app
from smaraa.api.auth import verify_api_key
from smaraa.api.dependencies import (
    get_archive_store,
    get_audit_log,
    get_database,
    get_health_database,
    get_gateway,
    get_search_engine,
    get_settings_service,
    get_summarization_engine,
)
from smaraa.guilds.service import GuildSettingsService


@pytest.fixture
def mock_database():
    """Mock Database for the health endpoint."""
    db = MagicMock()
    db.health_check = AsyncMock(return_value=True)
    db.check_pgvector_extension = AsyncMock(return_value=True)
    db.get_pool_stats = MagicMock(return_value={"connected": True, "size": 2, "idle": 2})
    return db


@pytest.fixture
def app(
    archive_store,
    search_engine,
    summarization_engine,
    settings_repo,
    audit_log,
    gateway,
    mock_database,
):
    """App wired to in-memory services, with auth bypassed."""
    application = create_app()
    settings_service = GuildSettingsService(settings_repo, audit_log)

    application.dependency_overrides[verify_api_key] = lambda: "test-key"
    application.dependency_overrides[get_archive_store] = lambda: archive_store
    application.dependency_overrides[get_search_engine] = lambda: search_engine
    application.dependency_overrides[get_summarization_engine] = lambda: summarization_engine
    application.dependency_overrides[get_settings_service] = lambda: settings_service
    application.dependency_overrides[get_audit_log] = lambda: audit_log
    application.dependency_overrides[get_gateway] = lambda: gateway
    application.dependency_overrides[get_database] = lambda: mock_database
    application.dependency_overrides[get_health_database] = lambda: mock_database
    return application


@pytest.fixture
def client(app):
    with TestClient(app) as c:
        yield c


@pytest.fixture
def archive_body():
    """Factory for /archive request bodies in the platform's camelCase."""

    def _make(message_id="m1", content="ship the release notes Friday", **kwargs):
        body = {
            "tenantId": "g1",
            "messageId": message_id,
            "channelId": "c1",
            "authorId": "u1",
            "authorUsername": "alice",
            "content": content,
            "timestamp": "2026-03-01T12:00:00Z",
        }
        body.update(kwargs)
        return body

    return _make
