"""
PostgreSQL database connection management.

Uses asyncpg for async database operations with pgvector.
Provides connection pooling, transaction management and the store-level
retry policy: connection-class failures are retried with backoff a bounded
number of times, then every failure surfaces as a non-retryable StoreError.
"""

import logging
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from types import TracebackType
from typing import Any, TypeVar

import asyncpg

from smaraa.config.settings import get_settings
from smaraa.errors import StoreError
from smaraa.resilience.backoff import ExponentialBackoff

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Connection-class failures. The statement may or may not have committed,
# so only operations marked idempotent are retried on them.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.InterfaceError,
    asyncpg.PostgresConnectionError,
    asyncpg.TooManyConnectionsError,
    asyncpg.CannotConnectNowError,
    ConnectionError,
    OSError,
    TimeoutError,
)


class Database:
    """
    Async PostgreSQL database connection manager.

    Usage:
        db = Database()
        await db.connect()

        async with db.transaction() as conn:
            await conn.execute("INSERT INTO ...")

        await db.close()
    """

    def __init__(
        self,
        database_url: str | None = None,
        min_size: int | None = None,
        max_size: int | None = None,
        max_retries: int | None = None,
        retry_base_delay: float | None = None,
    ):
        """
        Initialize database connection manager.

        Args:
            database_url: PostgreSQL connection URL
            min_size: Minimum pool size
            max_size: Maximum pool size
            max_retries: Retries for connection-class failures per operation
            retry_base_delay: First backoff delay between retries (seconds)
        """
        settings = get_settings()

        self._database_url = database_url or str(settings.database_url)
        self._min_size = min_size or settings.db_pool_min_size
        self._max_size = max_size or settings.db_pool_max_size
        self._command_timeout = settings.db_command_timeout
        self._max_retries = settings.db_max_retries if max_retries is None else max_retries
        self._retry_base_delay = (
            settings.db_retry_base_delay if retry_base_delay is None else retry_base_delay
        )

        self._pool: asyncpg.Pool | None = None

    async def connect(self) -> None:
        """Establish the database connection pool."""
        try:
            self._pool = await asyncpg.create_pool(
                self._database_url,
                min_size=self._min_size,
                max_size=self._max_size,
                command_timeout=self._command_timeout,
            )
            logger.info(f"Database connected (pool: {self._min_size}-{self._max_size})")
        except Exception as e:
            logger.error(f"Failed to connect to database: {e}")
            raise

    async def close(self) -> None:
        """Close database connection pool."""
        if self._pool:
            await self._pool.close()
            self._pool = None
            logger.info("Database connection closed")

    async def __aenter__(self) -> "Database":
        await self.connect()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    @property
    def pool(self) -> asyncpg.Pool:
        """Get connection pool, raising if not connected."""
        if self._pool is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._pool

    async def run(
        self,
        operation: str,
        fn: Callable[[], Awaitable[T]],
        idempotent: bool = True,
    ) -> T:
        """
        Run a store operation under the retry policy.

        Args:
            operation: Name used in logs and error messages
            fn: Zero-argument coroutine factory, called once per attempt
            idempotent: False for writes a repeat would duplicate; those
                fail on the first connection-class error instead of retrying

        Raises:
            StoreError: Non-transient failure, or retries exhausted
        """
        backoff = ExponentialBackoff(base_delay=self._retry_base_delay, max_delay=5.0)
        attempt = 0
        while True:
            try:
                return await fn()
            except StoreError:
                raise
            except TRANSIENT_ERRORS as e:
                if not idempotent or attempt >= self._max_retries:
                    logger.error(
                        f"Store operation {operation} failed after {attempt + 1} attempts: {e}"
                    )
                    raise StoreError(f"{operation} failed: {type(e).__name__}") from e
                attempt += 1
                delay = await backoff.wait()
                logger.warning(
                    f"Store operation {operation} transient failure "
                    f"(attempt {attempt}/{self._max_retries}, retry in {delay:.2f}s): {e}"
                )
            except asyncpg.PostgresError as e:
                logger.error(f"Store operation {operation} failed: {e}")
                raise StoreError(f"{operation} failed: {type(e).__name__}") from e

    @asynccontextmanager
    async def acquire(self) -> AsyncIterator[asyncpg.Connection]:
        """Acquire a connection from the pool."""
        async with self.pool.acquire() as conn:
            yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[asyncpg.Connection]:
        """
        Start a transaction. Either every statement commits or none does.

        Usage:
            async with db.transaction() as conn:
                await conn.execute("DELETE ...")
                await conn.execute("INSERT ...")
        """
        async with self.pool.acquire() as conn:
            async with conn.transaction():
                yield conn

    async def execute(self, query: str, *args: Any) -> str:
        """Execute a query without returning results."""
        async with self.acquire() as conn:
            return await conn.execute(query, *args)

    async def fetch(self, query: str, *args: Any) -> list[asyncpg.Record]:
        """Execute a query and fetch all results."""
        async with self.acquire() as conn:
            return await conn.fetch(query, *args)

    async def fetch_with_settings(
        self,
        query: str,
        *args: Any,
        settings: dict[str, str],
    ) -> list[asyncpg.Record]:
        """
        Fetch inside a transaction with transaction-local planner settings.

        Each setting is applied with ``set_config(name, value, true)``
        (equivalent to ``SET LOCAL``) and reverts when the transaction ends,
        so pooled connections never carry it over.
        """
        async with self.transaction() as conn:
            for name, value in settings.items():
                await conn.execute("SELECT set_config($1, $2, true)", name, value)
            return await conn.fetch(query, *args)

    async def fetchrow(self, query: str, *args: Any) -> asyncpg.Record | None:
        """Execute a query and fetch one result."""
        async with self.acquire() as conn:
            return await conn.fetchrow(query, *args)

    async def fetchval(self, query: str, *args: Any) -> Any:
        """Execute a query and fetch a single value."""
        async with self.acquire() as conn:
            return await conn.fetchval(query, *args)

    async def health_check(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            result = await self.fetchval("SELECT 1")
            return result == 1
        except Exception as e:
            logger.error(f"Health check failed: {e}")
            return False

    async def check_pgvector_extension(self) -> bool:
        """Return True if the pgvector extension is installed."""
        try:
            result = await self.fetchval("SELECT 1 FROM pg_extension WHERE extname = 'vector'")
            return result == 1
        except Exception as e:
            logger.error(f"pgvector extension check failed: {e}")
            return False

    def get_pool_stats(self) -> dict[str, Any]:
        """Connection pool statistics for health output."""
        if self._pool is None:
            return {"connected": False}
        return {
            "connected": True,
            "size": self._pool.get_size(),
            "idle": self._pool.get_idle_size(),
            "min_size": self._pool.get_min_size(),
            "max_size": self._pool.get_max_size(),
        }
