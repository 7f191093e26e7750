"""
Embedding gateway: the single point of contact with the external provider.

Provides:
- Content-hash caching of embeddings (trimmed, case-preserved text)
- Retry with exponential backoff and jitter, per-attempt timeouts
- Independent circuit breakers for the embedding and generation paths
- Order- and length-preserving batch embedding
"""

from typing import Any

import structlog

from smaraa.embedding.cache import EmbeddingCache, MemoryEmbeddingCache, content_hash
from smaraa.embedding.config import EmbeddingConfig
from smaraa.errors import ValidationError
from smaraa.observability.metrics import get_metrics
from smaraa.provider.client import ProviderClient
from smaraa.provider.config import ProviderConfig
from smaraa.resilience.circuit_breaker import BreakerSnapshot, CircuitBreaker
from smaraa.resilience.guard import NonRetryableProviderError, ProviderGuard

logger = structlog.get_logger(__name__)


def build_guard(name: str, config: ProviderConfig, timeout: float) -> ProviderGuard:
    """Create a guard with its own breaker from provider configuration."""
    breaker = CircuitBreaker(
        failure_threshold=config.circuit_failure_threshold,
        recovery_timeout=config.circuit_recovery_timeout,
        name=name,
    )
    return ProviderGuard(
        name=name,
        breaker=breaker,
        max_attempts=config.max_attempts,
        timeout=timeout,
        base_delay=config.backoff_base_seconds,
        max_delay=config.backoff_max_seconds,
        jitter_range=config.backoff_jitter,
    )


class EmbeddingGateway:
    """
    Wraps the external provider for embeddings and generation.

    Usage:
        gateway = EmbeddingGateway(ProviderClient())
        vector = await gateway.embed("ship the release notes")
        vectors = await gateway.embed_batch(["a", "b", "a"])
        text = await gateway.generate(system_prompt, user_prompt)
    """

    def __init__(
        self,
        provider: ProviderClient,
        config: EmbeddingConfig | None = None,
        cache: EmbeddingCache | None = None,
        embedding_guard: ProviderGuard | None = None,
        generation_guard: ProviderGuard | None = None,
    ):
        """
        Initialize the gateway.

        Args:
            provider: SDK wrapper performing one network call per method
            config: Embedding configuration (uses defaults if None)
            cache: Embedding cache (bounded in-memory LRU if None)
            embedding_guard: Guard for embedding calls (built from provider config if None)
            generation_guard: Guard for generation calls (built from provider config if None)
        """
        self._provider = provider
        self._config = config or EmbeddingConfig()
        self._cache = cache or MemoryEmbeddingCache(
            max_entries=self._config.cache_max_entries,
            ttl_seconds=self._config.cache_ttl_seconds,
        )
        provider_config = provider.config
        self._embedding_guard = embedding_guard or build_guard(
            "embedding", provider_config, provider_config.embedding_timeout
        )
        self._generation_guard = generation_guard or build_guard(
            "generation", provider_config, provider_config.generation_timeout
        )

        logger.info(
            "EmbeddingGateway created",
            model=self._config.model_name,
            dimensions=self._config.dimensions,
            cache_enabled=self._config.cache_enabled,
            cache_backend=type(self._cache).__name__,
        )

    @property
    def dimensions(self) -> int:
        return self._config.dimensions

    @property
    def model_name(self) -> str:
        return self._config.model_name

    def _key(self, text: str) -> str:
        return content_hash(text, self._config.model_name)

    async def _cache_get(self, key: str) -> list[float] | None:
        if not self._config.cache_enabled:
            return None
        vector = await self._cache.get(key)
        get_metrics().record_cache_lookup(hit=vector is not None)
        return vector

    async def _cache_set(self, key: str, vector: list[float]) -> None:
        if self._config.cache_enabled:
            await self._cache.set(key, vector)

    async def _fetch(self, texts: list[str]) -> list[list[float]]:
        """One guarded provider request for already-normalized texts."""

        async def _call() -> list[list[float]]:
            vectors = await self._provider.embed_texts(self._config.model_name, texts)
            for vector in vectors:
                if len(vector) != self._config.dimensions:
                    raise NonRetryableProviderError(
                        f"Embedding dimension {len(vector)} does not match "
                        f"configured {self._config.dimensions}"
                    )
            return vectors

        return await self._embedding_guard.run(_call)

    async def embed(self, text: str) -> list[float]:
        """
        Embed one text, serving from cache when possible.

        Raises:
            ValidationError: Text is empty after trimming
            ProviderUnavailable: Provider failed after retries or breaker open
        """
        normalized = text.strip()
        if not normalized:
            raise ValidationError("Cannot embed empty text")

        key = self._key(normalized)
        cached = await self._cache_get(key)
        if cached is not None:
            return cached

        vector = (await self._fetch([normalized]))[0]
        await self._cache_set(key, vector)
        return vector

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """
        Embed many texts, preserving input order and length.

        Identical normalized texts are sent to the provider once. Cache
        misses are requested in chunks of ``batch_size``.
        """
        if not texts:
            return []

        normalized = [t.strip() for t in texts]
        if any(not t for t in normalized):
            raise ValidationError("Cannot embed empty text")

        keys = [self._key(t) for t in normalized]
        resolved: dict[str, list[float]] = {}
        pending: dict[str, str] = {}

        for key, text in zip(keys, normalized):
            if key in resolved or key in pending:
                continue
            cached = await self._cache_get(key)
            if cached is not None:
                resolved[key] = cached
            else:
                pending[key] = text

        pending_items = list(pending.items())
        batch_size = self._config.batch_size
        for start in range(0, len(pending_items), batch_size):
            chunk = pending_items[start : start + batch_size]
            vectors = await self._fetch([text for _, text in chunk])
            for (key, _), vector in zip(chunk, vectors):
                await self._cache_set(key, vector)
                resolved[key] = vector

        logger.debug(
            "Embedded batch",
            texts=len(texts),
            unique=len(resolved),
            fetched=len(pending_items),
        )
        return [resolved[key] for key in keys]

    async def generate(self, system: str, prompt: str) -> str:
        """Run one guarded generation call (independent breaker from embeddings)."""

        async def _call() -> str:
            return await self._provider.generate(system, prompt)

        return await self._generation_guard.run(_call)

    def breaker_states(self) -> dict[str, BreakerSnapshot]:
        return {
            "embedding": self._embedding_guard.breaker.snapshot(),
            "generation": self._generation_guard.breaker.snapshot(),
        }

    async def is_cache_available(self) -> bool:
        if not self._config.cache_enabled:
            return False
        return await self._cache.ping()

    def get_stats(self) -> dict[str, Any]:
        return {
            "model": self._config.model_name,
            "dimensions": self._config.dimensions,
            "cache_enabled": self._config.cache_enabled,
            "cache_backend": type(self._cache).__name__,
            "breakers": {
                name: snap.state.value for name, snap in self.breaker_states().items()
            },
        }

    async def close(self) -> None:
        """Release provider clients and the cache connection."""
        await self._provider.close()
        await self._cache.close()
        logger.info("EmbeddingGateway closed")
