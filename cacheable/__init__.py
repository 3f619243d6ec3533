"""
cacheable: read-through / write-invalidate caching for a data-access layer.
"""

from cacheable.caching import (
    BackendRegistry,
    CacheableBehavior,
    EntitySettingsRegistry,
    HookDispatcher,
    LifecycleEvent,
    QuerySpec,
    WriteContext,
    WriteKind,
    unit_of_work,
)
from cacheable.infrastructure.cache import InMemoryCacheStore, RedisCacheStore

__version__ = "1.0.0"

__all__ = [
    "BackendRegistry",
    "CacheableBehavior",
    "EntitySettingsRegistry",
    "HookDispatcher",
    "LifecycleEvent",
    "QuerySpec",
    "WriteContext",
    "WriteKind",
    "unit_of_work",
    "InMemoryCacheStore",
    "RedisCacheStore",
]
