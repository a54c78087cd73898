"""
Port (interface) for the in-process response cache.
Infrastructure adapters (e.g. TTLResponseCache) must implement this interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional


class IResponseCache(ABC):
    @abstractmethod
    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None when absent or expired."""
        ...

    @abstractmethod
    def set(self, key: str, value: Any, ttl_seconds: float) -> None:
        """Store *value* under *key* for *ttl_seconds*."""
        ...

    @abstractmethod
    def clear(self) -> None: ...
