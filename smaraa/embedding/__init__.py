"""
Embedding gateway module.

This module provides:
- EmbeddingGateway: cached, guarded access to the embedding/generation provider
- EmbeddingCache backends: MemoryEmbeddingCache (LRU) and RedisEmbeddingCache
- EmbeddingConfig: Configuration settings for the gateway
"""

from smaraa.embedding.cache import (
    EmbeddingCache,
    MemoryEmbeddingCache,
    RedisEmbeddingCache,
    content_hash,
)
from smaraa.embedding.config import EmbeddingConfig
from smaraa.embedding.gateway import EmbeddingGateway, build_guard

__all__ = [
    "EmbeddingCache",
    "EmbeddingConfig",
    "EmbeddingGateway",
    "MemoryEmbeddingCache",
    "RedisEmbeddingCache",
    "build_guard",
    "content_hash",
]
