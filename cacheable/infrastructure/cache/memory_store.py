"""
In-Memory Cache Store

Process-local CacheStore: an LRU-ordered dict with per-entry expiry.

Used for tests, development and single-process deployments. It is not
shared across workers; use RedisCacheStore for that.

Implementation Details:
- OrderedDict for O(1) access and LRU ordering
- asyncio.Lock so concurrent tasks never interleave inside one operation
- Expired entries are dropped lazily on access
"""

import asyncio
import time
from collections import OrderedDict
from typing import Any

from cacheable.core.config.constants import DEFAULT_BACKEND


class InMemoryCacheStore:
    """
    TTL-aware in-memory store for one backend namespace.

    Args:
        namespace: Backend id this store serves; clear() only acts on it
        max_size: Maximum number of entries before LRU eviction (None = unbounded)
        clock: Monotonic time source (injectable for tests)
    """

    def __init__(self, namespace: str = DEFAULT_BACKEND, max_size: int | None = None, clock=time.monotonic):
        self.namespace = namespace
        self._max_size = max_size
        self._clock = clock
        self._cache: OrderedDict[str, tuple[Any, float | None]] = OrderedDict()
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._cache.get(key)
            if entry is None:
                return None

            value, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._cache[key]
                return None

            self._cache.move_to_end(key)
            return value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        async with self._lock:
            expires_at = self._clock() + ttl if ttl else None

            if key in self._cache:
                self._cache.move_to_end(key)
            self._cache[key] = (value, expires_at)

            if self._max_size is not None:
                while len(self._cache) > self._max_size:
                    self._cache.popitem(last=False)
            return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            if key in self._cache:
                del self._cache[key]
                return True
            return False

    async def clear(self, namespace: str | None = None) -> int:
        async with self._lock:
            if namespace is not None and namespace != self.namespace:
                return 0
            removed = len(self._cache)
            self._cache.clear()
            return removed

    def get_size(self) -> int:
        """Current number of entries (expired ones included until touched)."""
        return len(self._cache)

    def get_keys(self) -> list[str]:
        """All keys, least recently used first."""
        return list(self._cache.keys())
