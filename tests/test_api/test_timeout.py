"""Tests for request timeout middleware."""

import asyncio

from fastapi import FastAPI
from fastapi.testclient import TestClient

from smaraa.api.middleware.timeout import TimeoutMiddleware


def _create_test_app(timeout: float = 1.0, overrides: dict[str, float] | None = None) -> FastAPI:
    app = FastAPI()
    app.add_middleware(TimeoutMiddleware, timeout_seconds=timeout, overrides=overrides)

    @app.get("/search")
    async def search():
        return {"status": "ok"}

    @app.get("/summarize")
    async def summarize():
        await asyncio.sleep(0.3)
        return {"status": "ok"}

    @app.get("/slow")
    async def slow():
        await asyncio.sleep(10)
        return {"status": "ok"}

    @app.get("/healthz")
    async def healthz():
        await asyncio.sleep(0.3)
        return {"status": "healthy"}

    return app


class TestTimeoutMiddleware:
    def test_fast_request_succeeds(self):
        client = TestClient(_create_test_app(timeout=5.0))
        response = client.get("/search")
        assert response.status_code == 200

    def test_slow_request_returns_retryable_504(self):
        client = TestClient(_create_test_app(timeout=0.1))
        response = client.get("/slow")

        assert response.status_code == 504
        data = response.json()
        assert data["error_type"] == "timeout"
        assert data["retryable"] is True

    def test_override_extends_budget(self):
        client = TestClient(_create_test_app(timeout=0.1, overrides={"/summarize": 5.0}))
        assert client.get("/summarize").status_code == 200

    def test_health_is_unbounded(self):
        client = TestClient(_create_test_app(timeout=0.1))
        assert client.get("/healthz").status_code == 200


class TestBudgetFor:
    def test_longest_prefix_wins(self):
        middleware = TimeoutMiddleware(
            FastAPI(), timeout_seconds=30.0, overrides={"/admin": 10.0, "/admin/audit": 2.0}
        )

        assert middleware.budget_for("/admin/audit/g1") == 2.0
        assert middleware.budget_for("/admin/settings") == 10.0
        assert middleware.budget_for("/search") == 30.0
        assert middleware.budget_for("/healthz") is None
