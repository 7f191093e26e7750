"""
Vector store adapter for archived messages.

Main components:
- MessageVectorStore: Abstract adapter contract (tenant-scoped)
- PgVectorStore: pgvector implementation over asyncpg
- SearchFilter: Author/channel/time predicates
- Neighbor: A ranked candidate with its cosine distance
"""

from smaraa.vectorstore.base import MessageVectorStore, Neighbor, SearchFilter
from smaraa.vectorstore.config import VectorStoreConfig
from smaraa.vectorstore.pgvector_store import PgVectorStore, to_pgvector

__all__ = [
    "MessageVectorStore",
    "Neighbor",
    "PgVectorStore",
    "SearchFilter",
    "VectorStoreConfig",
    "to_pgvector",
]
