"""
Infrastructure adapter: cachetools TLRUCache → IResponseCache.

Every entry carries its own time-to-live, so quotes and search results can
share one bounded cache. Expired entries are never returned; reads after expiry
behave exactly like a miss.
"""

import time
from typing import Any, Callable, NamedTuple, Optional

from cachetools import TLRUCache

from stockquotes_mcp.domain.ports.response_cache_port import IResponseCache


class _Entry(NamedTuple):
    value: Any
    ttl_seconds: float


def _expires_at(_key: str, entry: _Entry, now: float) -> float:
    return now + entry.ttl_seconds


class TTLResponseCache(IResponseCache):
    """In-process key/value store with a per-entry time-to-live."""

    DEFAULT_MAX_SIZE: int = 1024

    def __init__(
        self,
        max_size: int = DEFAULT_MAX_SIZE,
        timer: Callable[[], float] = time.monotonic,
    ) -> None:
        self._entries: TLRUCache = TLRUCache(maxsize=max_size, ttu=_expires_at, timer=timer)

    def get(self, key: str) -> Optional[Any]:
        entry = self._entries.get(key)
        return entry.value if entry is not None else None

    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        if ttl_seconds <= 0:
            self._entries.pop(key, None)
            return
        self._entries[key] = _Entry(value, ttl_seconds)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        self._entries.expire()
        return len(self._entries)
