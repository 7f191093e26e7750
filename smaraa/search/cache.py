"""
Short-lived cache of search result pages.

Pages are keyed per tenant so that an archive or a retention sweep can drop
everything cached for that tenant without touching the others.
"""

import time
from collections import OrderedDict
from collections.abc import Callable
from typing import Any


class SearchResultCache:
    """
    Bounded TTL cache for search pages.

    Usage:
        cache = SearchResultCache(ttl_seconds=30)
        page = cache.get("g1", key)
        cache.set("g1", key, page)
        cache.invalidate_tenant("g1")
    """

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        max_entries: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[tuple[str, str], tuple[float, Any]] = OrderedDict()

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, tenant_id: str, key: str) -> Any | None:
        if not self.enabled:
            return None
        entry = self._entries.get((tenant_id, key))
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at > self._ttl:
            del self._entries[(tenant_id, key)]
            return None
        self._entries.move_to_end((tenant_id, key))
        return value

    def set(self, tenant_id: str, key: str, value: Any) -> None:
        if not self.enabled:
            return
        self._entries[(tenant_id, key)] = (self._clock(), value)
        self._entries.move_to_end((tenant_id, key))
        while len(self._entries) > self._max_entries:
            self._entries.popitem(last=False)

    def invalidate_tenant(self, tenant_id: str) -> int:
        """Drop every cached page for one tenant; return how many were dropped."""
        stale = [k for k in self._entries if k[0] == tenant_id]
        for k in stale:
            del self._entries[k]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()
