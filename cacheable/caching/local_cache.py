"""
Local Request Cache

In-memory key -> value map owned by one unit of work. It spares a second
backend round-trip when the same key is read twice in one operation, and
remembers which entity each key belongs to so clear_all() can find them.

A LocalRequestCache is never shared between concurrent units. Either give
each unit its own CacheableBehavior, or share one behavior and open a
unit_of_work() scope per request: inside the scope the behavior uses the
scope's cache instead of its own.
"""

from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from contextvars import ContextVar
from typing import Any

from cacheable.core.logging.logger import reset_unit_id, set_unit_id


class LocalRequestCache:
    """Per-unit-of-work cache, grouped by entity name."""

    def __init__(self):
        self._entries: dict[str, dict[str, Any]] = {}

    def get(self, key: str) -> Any | None:
        for entries in self._entries.values():
            if key in entries:
                return entries[key]
        return None

    def set(self, entity: str, key: str, value: Any) -> None:
        self._entries.setdefault(entity, {})[key] = value

    def delete(self, key: str) -> bool:
        removed = False
        for entries in self._entries.values():
            if key in entries:
                del entries[key]
                removed = True
        return removed

    def keys_for(self, entity: str) -> list[str]:
        return list(self._entries.get(entity, {}))

    def entities(self) -> list[str]:
        return [name for name, entries in self._entries.items() if entries]

    def clear(self, entity: str | None = None) -> None:
        if entity is None:
            self._entries.clear()
        else:
            self._entries.pop(entity, None)

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._entries.values())

    def __contains__(self, key: str) -> bool:
        return any(key in entries for entries in self._entries.values())


LocalCacheProvider = Callable[[], LocalRequestCache]

_scoped_cache: ContextVar[LocalRequestCache | None] = ContextVar("cacheable_local_cache", default=None)


def current_local_cache() -> LocalRequestCache | None:
    """The cache of the innermost active unit_of_work() scope, if any."""
    return _scoped_cache.get()


@asynccontextmanager
async def unit_of_work(unit_id: str | None = None) -> AsyncIterator[LocalRequestCache]:
    """
    Scope a fresh LocalRequestCache to the current task.

    The cache is cleared when the scope exits. unit_id, when given, is bound
    to every log line emitted inside the scope.

    Usage:
        async with unit_of_work("req-42"):
            user = await behavior.read("User", query, executor)
    """
    cache = LocalRequestCache()
    token = _scoped_cache.set(cache)
    unit_token = set_unit_id(unit_id) if unit_id else None
    try:
        yield cache
    finally:
        cache.clear()
        _scoped_cache.reset(token)
        if unit_token is not None:
            reset_unit_id(unit_token)


def as_provider(local_cache: LocalRequestCache | LocalCacheProvider) -> LocalCacheProvider:
    """Accept either a cache instance or a zero-argument provider."""
    if isinstance(local_cache, LocalRequestCache):
        return lambda: local_cache
    return local_cache
