"""
Dependency injection for FastAPI endpoints.

Services are built once per process on first use and share one database
pool, one embedding gateway and one search result cache.
"""

import redis.asyncio as redis
import structlog

from smaraa.archive.service import ArchiveStore
from smaraa.audit.log import AuditLog
from smaraa.config.settings import get_settings
from smaraa.embedding.cache import EmbeddingCache, MemoryEmbeddingCache, RedisEmbeddingCache
from smaraa.embedding.config import EmbeddingConfig
from smaraa.embedding.gateway import EmbeddingGateway
from smaraa.guilds.permissions import PermissionGate
from smaraa.guilds.repository import GuildSettingsRepository
from smaraa.guilds.service import GuildSettingsService
from smaraa.provider.client import ProviderClient
from smaraa.search.cache import SearchResultCache
from smaraa.search.config import SearchConfig
from smaraa.search.service import SearchEngine
from smaraa.storage.database import Database
from smaraa.summarize.config import SummarizeConfig
from smaraa.summarize.service import SummarizationEngine
from smaraa.vectorstore.pgvector_store import PgVectorStore

logger = structlog.get_logger(__name__)

# Global service instances (initialized on first request)
_database: Database | None = None
_redis_client: redis.Redis | None = None
_gateway: EmbeddingGateway | None = None
_result_cache: SearchResultCache | None = None
_search_config: SearchConfig | None = None
_archive_store: ArchiveStore | None = None
_search_engine: SearchEngine | None = None
_summarization_engine: SummarizationEngine | None = None
_settings_service: GuildSettingsService | None = None


async def get_database() -> Database:
    """Get the shared, connected Database."""
    global _database

    if _database is None:
        database = Database()
        await database.connect()
        _database = database

    return _database


async def get_health_database() -> Database | None:
    """The shared Database, or None when it cannot be reached."""
    try:
        return await get_database()
    except Exception as e:
        logger.warning("Database unreachable for health check", error=str(e))
        return None


def _get_redis_client() -> redis.Redis:
    global _redis_client

    if _redis_client is None:
        _redis_client = redis.from_url(
            str(get_settings().redis_url),
            encoding="utf-8",
            decode_responses=True,
        )
    return _redis_client


def _build_embedding_cache(config: EmbeddingConfig) -> EmbeddingCache:
    if config.cache_backend == "redis":
        return RedisEmbeddingCache(
            _get_redis_client(),
            ttl_seconds=config.cache_ttl_seconds,
            key_prefix=config.cache_key_prefix,
        )
    return MemoryEmbeddingCache(
        max_entries=config.cache_max_entries,
        ttl_seconds=config.cache_ttl_seconds,
    )


async def get_gateway() -> EmbeddingGateway:
    """
    Get the embedding gateway.

    Creates a singleton gateway with the configured cache backend.
    """
    global _gateway

    if _gateway is None:
        config = EmbeddingConfig()
        _gateway = EmbeddingGateway(
            ProviderClient(),
            config=config,
            cache=_build_embedding_cache(config),
        )

    return _gateway


def get_result_cache() -> SearchResultCache:
    global _result_cache, _search_config

    if _result_cache is None:
        _search_config = _search_config or SearchConfig()
        _result_cache = SearchResultCache(
            ttl_seconds=_search_config.result_cache_ttl_seconds,
            max_entries=_search_config.result_cache_max_entries,
        )
    return _result_cache


async def get_audit_log() -> AuditLog:
    return AuditLog(await get_database())


async def get_settings_repository() -> GuildSettingsRepository:
    return GuildSettingsRepository(await get_database())


async def get_archive_store() -> ArchiveStore:
    global _archive_store

    if _archive_store is None:
        database = await get_database()
        gateway = await get_gateway()
        _archive_store = ArchiveStore(
            store=PgVectorStore(database, dimensions=gateway.dimensions),
            gateway=gateway,
            audit=AuditLog(database),
            permissions=PermissionGate(GuildSettingsRepository(database)),
            result_cache=get_result_cache(),
        )

    return _archive_store


async def get_search_engine() -> SearchEngine:
    global _search_engine, _search_config

    if _search_engine is None:
        database = await get_database()
        gateway = await get_gateway()
        _search_config = _search_config or SearchConfig()
        _search_engine = SearchEngine(
            store=PgVectorStore(database, dimensions=gateway.dimensions),
            gateway=gateway,
            audit=AuditLog(database),
            permissions=PermissionGate(GuildSettingsRepository(database)),
            config=_search_config,
            result_cache=get_result_cache(),
        )

    return _search_engine


async def get_summarization_engine() -> SummarizationEngine:
    global _summarization_engine

    if _summarization_engine is None:
        database = await get_database()
        _summarization_engine = SummarizationEngine(
            search=await get_search_engine(),
            gateway=await get_gateway(),
            audit=AuditLog(database),
            permissions=PermissionGate(GuildSettingsRepository(database)),
            config=SummarizeConfig(),
        )

    return _summarization_engine


async def get_settings_service() -> GuildSettingsService:
    global _settings_service

    if _settings_service is None:
        database = await get_database()
        _settings_service = GuildSettingsService(
            GuildSettingsRepository(database),
            AuditLog(database),
        )

    return _settings_service


async def cleanup_dependencies() -> None:
    """Clean up global dependencies on shutdown."""
    global _database, _redis_client, _gateway, _result_cache, _search_config
    global _archive_store, _search_engine, _summarization_engine, _settings_service

    _archive_store = None
    _search_engine = None
    _summarization_engine = None
    _settings_service = None
    _result_cache = None
    _search_config = None

    if _gateway is not None:
        await _gateway.close()
        _gateway = None

    if _database is not None:
        await _database.close()
        _database = None

    if _redis_client is not None:
        await _redis_client.aclose()
        _redis_client = None
