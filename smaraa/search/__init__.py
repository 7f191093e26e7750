"""Semantic search over archived messages."""

from smaraa.search.cache import SearchResultCache
from smaraa.search.config import SearchConfig
from smaraa.search.cursor import Cursor, decode_cursor, encode_cursor, query_fingerprint
from smaraa.search.schemas import SearchPage, SearchResult
from smaraa.search.service import SearchEngine

__all__ = [
    "Cursor",
    "SearchConfig",
    "SearchEngine",
    "SearchPage",
    "SearchResult",
    "SearchResultCache",
    "decode_cursor",
    "encode_cursor",
    "query_fingerprint",
]
