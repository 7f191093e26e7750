"""Tests for EmbeddingGateway caching, batching and breaker isolation."""

import pytest

from smaraa.embedding.cache import MemoryEmbeddingCache
from smaraa.embedding.config import EmbeddingConfig
from smaraa.embedding.gateway import EmbeddingGateway
from smaraa.errors import ProviderUnavailable, ValidationError
from smaraa.resilience.circuit_breaker import CircuitState


class TestEmbed:
    async def test_returns_configured_dimension(self, gateway):
        vector = await gateway.embed("hello world")
        assert len(vector) == gateway.dimensions

    async def test_same_text_hits_cache(self, gateway, fake_provider):
        first = await gateway.embed("deploy is blocked")
        second = await gateway.embed("  deploy is blocked  ")
        assert first == second
        assert len(fake_provider.embed_calls) == 1

    async def test_case_is_significant(self, gateway, fake_provider):
        await gateway.embed("Deploy")
        await gateway.embed("deploy")
        assert len(fake_provider.embed_calls) == 2

    async def test_empty_text_rejected_before_provider(self, gateway, fake_provider):
        with pytest.raises(ValidationError):
            await gateway.embed("   ")
        assert fake_provider.embed_calls == []

    async def test_cache_disabled_always_calls_provider(self, fake_provider):
        gateway = EmbeddingGateway(
            fake_provider,
            config=EmbeddingConfig(dimensions=16, cache_enabled=False),
        )
        await gateway.embed("x")
        await gateway.embed("x")
        assert len(fake_provider.embed_calls) == 2
        assert await gateway.is_cache_available() is False

    async def test_dimension_mismatch_is_not_retried(self, gateway, fake_provider):
        fake_provider.vectors["odd"] = [1.0, 0.0]
        with pytest.raises(ProviderUnavailable):
            await gateway.embed("odd")
        assert len(fake_provider.embed_calls) == 1


class TestEmbedBatch:
    async def test_preserves_order_and_length(self, gateway):
        texts = ["alpha", "beta", "alpha", "gamma"]
        vectors = await gateway.embed_batch(texts)
        assert len(vectors) == 4
        assert vectors[0] == vectors[2]
        assert vectors[0] == await gateway.embed("alpha")
        assert vectors[3] == await gateway.embed("gamma")

    async def test_duplicates_sent_once(self, gateway, fake_provider):
        await gateway.embed_batch(["a", "b", "a", "b", "a"])
        sent = [t for call in fake_provider.embed_calls for t in call]
        assert sorted(sent) == ["a", "b"]

    async def test_cached_texts_not_resent(self, gateway, fake_provider):
        await gateway.embed("a")
        fake_provider.embed_calls.clear()
        await gateway.embed_batch(["a", "b"])
        assert fake_provider.embed_calls == [["b"]]

    async def test_chunks_by_batch_size(self, gateway, fake_provider):
        await gateway.embed_batch([f"text {i}" for i in range(10)])
        assert [len(call) for call in fake_provider.embed_calls] == [4, 4, 2]

    async def test_empty_batch(self, gateway, fake_provider):
        assert await gateway.embed_batch([]) == []
        assert fake_provider.embed_calls == []

    async def test_rejects_blank_member(self, gateway):
        with pytest.raises(ValidationError):
            await gateway.embed_batch(["ok", " "])


class TestBreakers:
    async def test_embedding_breaker_opens_and_fails_fast(self, gateway, fake_provider):
        fake_provider.embed_error = ConnectionError("provider down")
        for text in ("one", "two"):
            with pytest.raises(ProviderUnavailable):
                await gateway.embed(text)

        assert gateway.breaker_states()["embedding"].state == CircuitState.OPEN

        calls_before = len(fake_provider.embed_calls)
        with pytest.raises(ProviderUnavailable):
            await gateway.embed("three")
        assert len(fake_provider.embed_calls) == calls_before

    async def test_cached_embeddings_served_while_breaker_open(self, gateway, fake_provider):
        vector = await gateway.embed("cached text")
        fake_provider.embed_error = ConnectionError("provider down")
        for text in ("one", "two"):
            with pytest.raises(ProviderUnavailable):
                await gateway.embed(text)

        assert await gateway.embed("cached text") == vector

    async def test_generation_breaker_is_independent(self, gateway, fake_provider):
        fake_provider.generate_error = ConnectionError("llm down")
        for _ in range(2):
            with pytest.raises(ProviderUnavailable):
                await gateway.generate("system", "prompt")

        states = gateway.breaker_states()
        assert states["generation"].state == CircuitState.OPEN
        assert states["embedding"].state == CircuitState.CLOSED
        assert len(await gateway.embed("still works")) == gateway.dimensions

    async def test_generate_returns_raw_text(self, gateway, fake_provider):
        fake_provider.generate_response = "plain answer"
        assert await gateway.generate("system", "prompt") == "plain answer"
        assert fake_provider.generate_calls == [("system", "prompt")]


class TestLifecycle:
    async def test_stats(self, gateway):
        stats = gateway.get_stats()
        assert stats["dimensions"] == 16
        assert stats["cache_backend"] == "MemoryEmbeddingCache"
        assert stats["breakers"] == {"embedding": "closed", "generation": "closed"}

    async def test_close_releases_provider(self, fake_provider, embedding_config):
        gateway = EmbeddingGateway(fake_provider, config=embedding_config, cache=MemoryEmbeddingCache())
        await gateway.close()
        assert fake_provider.closed is True
