"""Tests for the Database retry policy and health helpers."""

from contextlib import asynccontextmanager
from unittest.mock import AsyncMock

import asyncpg
import pytest

from smaraa.errors import StoreError
from smaraa.storage.database import Database


@pytest.fixture
def db():
    return Database(database_url="postgresql://localhost/smaraa_test", max_retries=2, retry_base_delay=0.0)


class TestRun:
    async def test_returns_result(self, db):
        fn = AsyncMock(return_value="ok")
        assert await db.run("op", fn) == "ok"
        assert fn.await_count == 1

    async def test_retries_transient_errors(self, db):
        fn = AsyncMock(side_effect=[ConnectionError("reset"), ConnectionError("reset"), "ok"])
        assert await db.run("op", fn) == "ok"
        assert fn.await_count == 3

    async def test_exhausted_retries_raise_store_error(self, db):
        fn = AsyncMock(side_effect=ConnectionError("reset"))
        with pytest.raises(StoreError, match="op failed") as exc_info:
            await db.run("op", fn)
        assert fn.await_count == 3
        assert exc_info.value.retryable is False

    async def test_non_idempotent_not_retried(self, db):
        fn = AsyncMock(side_effect=[ConnectionError("reset"), "ok"])
        with pytest.raises(StoreError):
            await db.run("audit_record", fn, idempotent=False)
        assert fn.await_count == 1

    async def test_postgres_errors_not_retried(self, db):
        fn = AsyncMock(side_effect=asyncpg.exceptions.UndefinedTableError("relation missing"))
        with pytest.raises(StoreError):
            await db.run("op", fn)
        assert fn.await_count == 1

    async def test_store_error_passes_through(self, db):
        original = StoreError("inner failed")
        fn = AsyncMock(side_effect=original)
        with pytest.raises(StoreError) as exc_info:
            await db.run("op", fn)
        assert exc_info.value is original


class TestFetchWithSettings:
    async def test_settings_applied_in_transaction_before_query(self, db):
        conn = AsyncMock()
        conn.fetch.return_value = [{"id": "m1"}]

        @asynccontextmanager
        async def _transaction():
            yield conn

        db.transaction = _transaction

        rows = await db.fetch_with_settings(
            "SELECT id FROM archived_messages WHERE guild_id = $1",
            "g1",
            settings={"hnsw.ef_search": "100", "hnsw.iterative_scan": "strict_order"},
        )

        assert rows == [{"id": "m1"}]
        assert [c.args for c in conn.execute.await_args_list] == [
            ("SELECT set_config($1, $2, true)", "hnsw.ef_search", "100"),
            ("SELECT set_config($1, $2, true)", "hnsw.iterative_scan", "strict_order"),
        ]
        conn.fetch.assert_awaited_once_with("SELECT id FROM archived_messages WHERE guild_id = $1", "g1")


class TestHealth:
    async def test_health_check(self, db):
        db.fetchval = AsyncMock(return_value=1)
        assert await db.health_check() is True

    async def test_health_check_failure(self, db):
        db.fetchval = AsyncMock(side_effect=ConnectionError("refused"))
        assert await db.health_check() is False

    async def test_pgvector_missing(self, db):
        db.fetchval = AsyncMock(return_value=None)
        assert await db.check_pgvector_extension() is False

    def test_pool_stats_when_disconnected(self, db):
        assert db.get_pool_stats() == {"connected": False}

    def test_pool_requires_connect(self, db):
        with pytest.raises(RuntimeError):
            _ = db.pool
