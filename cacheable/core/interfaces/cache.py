"""
Cache Store Protocol

The only contract the cache layer has with a physical cache backend
(in-memory dict, Redis, anything else). The layer never inspects how entries
are stored.

Architectural Decision: Protocol-based abstraction
- Backends are swappable and injected
- Test doubles need no inheritance
- Runtime checkable so registries can reject non-stores early
"""

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CacheStore(Protocol):
    """
    Protocol for cache backend implementations.

    Implementations:
    - InMemoryCacheStore: process-local, TTL-aware dict (tests, development)
    - RedisCacheStore: Redis-backed distributed store

    All methods may raise CacheBackendError. Each call is a single awaited
    unit; callers never observe a partially applied result.
    """

    async def get(self, key: str) -> Any | None:
        """
        Get value from the store.

        Returns:
            The stored value, or None when absent or expired
        """
        ...

    async def set(self, key: str, value: Any, ttl: int) -> bool:
        """
        Store a value.

        Args:
            key: Cache key
            value: Opaque payload
            ttl: Time-to-live in seconds

        Returns:
            True if stored
        """
        ...

    async def delete(self, key: str) -> bool:
        """
        Delete one key. Idempotent.

        Returns:
            True if an entry was removed
        """
        ...

    async def clear(self, namespace: str) -> int:
        """
        Remove every entry belonging to ``namespace``.

        Args:
            namespace: Backend identifier configured on the entity

        Returns:
            Number of entries removed (best effort for remote stores)
        """
        ...
