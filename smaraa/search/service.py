"""
Search engine: semantic nearest-neighbor search over one tenant's archive.

Pipeline per request:
1. Validate the query, limit and cursor
2. Check the actor may search in the tenant
3. Embed the query through the gateway
4. Fetch ``limit + 1`` candidates ordered by (distance, id) from the store
5. Emit a cursor when the extra candidate shows another page exists
"""

import json
import time

import structlog

from smaraa.audit.log import AuditLog
from smaraa.audit.schemas import AuditAction
from smaraa.embedding.gateway import EmbeddingGateway
from smaraa.errors import ValidationError
from smaraa.guilds.permissions import ANONYMOUS_ACTOR, Actor, PermissionGate
from smaraa.observability.metrics import get_metrics
from smaraa.search.cache import SearchResultCache
from smaraa.search.config import SearchConfig
from smaraa.search.cursor import Cursor, decode_cursor, encode_cursor, query_fingerprint
from smaraa.search.schemas import SearchPage, SearchResult
from smaraa.vectorstore.base import MessageVectorStore, Neighbor, SearchFilter

logger = structlog.get_logger(__name__)


class SearchEngine:
    """
    Ranked, filtered, paginated semantic search.

    Usage:
        engine = SearchEngine(store, gateway, audit_log, gate)
        page = await engine.search("g1", "release notes", actor=actor)
        while page.next_cursor:
            page = await engine.search("g1", "release notes", cursor=page.next_cursor)
    """

    def __init__(
        self,
        store: MessageVectorStore,
        gateway: EmbeddingGateway,
        audit: AuditLog,
        permissions: PermissionGate,
        config: SearchConfig | None = None,
        result_cache: SearchResultCache | None = None,
    ):
        self._store = store
        self._gateway = gateway
        self._audit = audit
        self._permissions = permissions
        self._config = config or SearchConfig()
        self._result_cache = result_cache

    @property
    def config(self) -> SearchConfig:
        return self._config

    def resolve_limit(self, limit: int | None) -> int:
        if limit is None:
            return self._config.default_limit
        if limit < 1 or limit > self._config.max_limit:
            raise ValidationError(
                f"limit must be between 1 and {self._config.max_limit}, got {limit}"
            )
        return limit

    async def has_content(self, tenant_id: str) -> bool:
        """Whether the tenant has anything archived; never calls the provider."""
        return await self._store.count(tenant_id) > 0

    async def retrieve(
        self,
        tenant_id: str,
        query: str,
        filters: SearchFilter | None = None,
        limit: int = 10,
        after: tuple[float, str] | None = None,
    ) -> list[Neighbor]:
        """
        Embed the query and return ranked candidates.

        No permission check and no audit entry: callers own both.
        """
        if not tenant_id.strip():
            raise ValidationError("tenantId is required")
        vector = await self._gateway.embed(query)
        return await self._store.nearest_neighbors(
            tenant_id, vector, filters=filters, limit=limit, after=after
        )

    async def search(
        self,
        tenant_id: str,
        query: str,
        filters: SearchFilter | None = None,
        limit: int | None = None,
        cursor: str | None = None,
        actor: Actor | None = None,
    ) -> SearchPage:
        """
        Run one search request and audit it.

        An empty result list is a valid response, not an error.

        Raises:
            ValidationError: Empty tenant or query, bad limit, bad cursor
            PermissionDenied: Actor may not search in this tenant
            ProviderUnavailable: Query embedding failed
        """
        start = time.perf_counter()
        if not tenant_id.strip():
            raise ValidationError("tenantId is required")
        if not query.strip():
            raise ValidationError("query must not be empty")
        page_size = self.resolve_limit(limit)
        fingerprint = query_fingerprint(tenant_id, query, filters)
        position = decode_cursor(cursor, fingerprint).position if cursor else None

        actor = actor or ANONYMOUS_ACTOR
        await self._permissions.require_search(tenant_id, actor)

        cache_key = json.dumps([fingerprint, page_size, cursor])
        page = self._cache_get(tenant_id, cache_key)
        if page is None:
            neighbors = await self.retrieve(
                tenant_id, query, filters=filters, limit=page_size + 1, after=position
            )
            page = self._build_page(neighbors, page_size, fingerprint)
            self._cache_set(tenant_id, cache_key, page)

        await self._audit.record(
            tenant_id,
            actor.actor_id,
            AuditAction.SEARCH,
            {
                "filter": filters.to_payload() if filters else {},
                "limit": page_size,
                "resultCount": len(page.results),
                "paged": cursor is not None,
            },
        )

        latency = time.perf_counter() - start
        get_metrics().record_search(len(page.results), latency)
        logger.info(
            "Search completed",
            tenant_id=tenant_id,
            results=len(page.results),
            has_more=page.next_cursor is not None,
            latency_ms=round(latency * 1000, 1),
        )
        return page

    @staticmethod
    def _build_page(neighbors: list[Neighbor], page_size: int, fingerprint: str) -> SearchPage:
        visible = neighbors[:page_size]
        next_cursor = None
        if len(neighbors) > page_size and visible:
            last = visible[-1]
            next_cursor = encode_cursor(
                Cursor(
                    distance=last.distance,
                    message_id=last.message.id,
                    fingerprint=fingerprint,
                )
            )
        return SearchPage(
            results=[SearchResult.from_neighbor(n) for n in visible],
            next_cursor=next_cursor,
        )

    def _cache_get(self, tenant_id: str, key: str) -> SearchPage | None:
        if self._result_cache is None:
            return None
        return self._result_cache.get(tenant_id, key)

    def _cache_set(self, tenant_id: str, key: str, page: SearchPage) -> None:
        if self._result_cache is not None:
            self._result_cache.set(tenant_id, key, page)
