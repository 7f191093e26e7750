"""
Content-hash keyed embedding caches.

Entries are derived data: any entry may be evicted or recomputed at any
time. Two backends are provided:

- ``MemoryEmbeddingCache``: bounded in-process LRU with a maximum age.
- ``RedisEmbeddingCache``: shared cache using SETEX with a TTL.

Cache failures never fail a request; they are logged and read as misses.
"""

import hashlib
import json
import logging
import time
from abc import ABC, abstractmethod
from collections import OrderedDict
from collections.abc import Callable
from dataclasses import dataclass

import redis.asyncio as redis

logger = logging.getLogger(__name__)


def content_hash(text: str, model_name: str) -> str:
    """Stable hash of normalized text (trimmed, case preserved) for a model."""
    normalized = text.strip()
    digest = hashlib.sha256(f"{model_name}\x00{normalized}".encode("utf-8"))
    return digest.hexdigest()


@dataclass(frozen=True)
class EmbeddingCacheEntry:
    vector: tuple[float, ...]
    created_at: float


class EmbeddingCache(ABC):
    """Keyed storage of embedding vectors by content hash."""

    @abstractmethod
    async def get(self, key: str) -> list[float] | None:
        ...

    @abstractmethod
    async def set(self, key: str, vector: list[float]) -> None:
        ...

    async def ping(self) -> bool:
        return True

    async def close(self) -> None:
        return None


class MemoryEmbeddingCache(EmbeddingCache):
    """
    Bounded LRU cache held in process memory.

    Reads and writes never await, so under one event loop every operation
    is atomic. Existing entries are never mutated; a set on an existing key
    only refreshes its recency.
    """

    def __init__(
        self,
        max_entries: int = 10_000,
        ttl_seconds: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max_entries = max_entries
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: OrderedDict[str, EmbeddingCacheEntry] = OrderedDict()

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> list[float] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._ttl_seconds is not None and self._clock() - entry.created_at > self._ttl_seconds:
            del self._entries[key]
            return None
        self._entries.move_to_end(key)
        return list(entry.vector)

    async def set(self, key: str, vector: list[float]) -> None:
        if key in self._entries:
            self._entries.move_to_end(key)
            return
        self._entries[key] = EmbeddingCacheEntry(vector=tuple(vector), created_at=self._clock())
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)


class RedisEmbeddingCache(EmbeddingCache):
    """Shared cache backed by Redis string keys with a TTL."""

    def __init__(
        self,
        redis_client: redis.Redis,
        ttl_seconds: int,
        key_prefix: str = "smaraa:emb:",
    ):
        self._redis = redis_client
        self._ttl_seconds = ttl_seconds
        self._key_prefix = key_prefix

    def _key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    async def get(self, key: str) -> list[float] | None:
        try:
            cached = await self._redis.get(self._key(key))
        except Exception as e:
            logger.warning(f"Cache retrieval failed: {e}")
            return None
        if not cached:
            return None
        return json.loads(cached)

    async def set(self, key: str, vector: list[float]) -> None:
        try:
            await self._redis.setex(self._key(key), self._ttl_seconds, json.dumps(vector))
        except Exception as e:
            logger.warning(f"Cache storage failed: {e}")

    async def ping(self) -> bool:
        try:
            await self._redis.ping()
            return True
        except Exception:
            return False

    async def close(self) -> None:
        await self._redis.aclose()
