from cacheable.caching.backends import BackendRegistry
from cacheable.caching.behavior import CacheableBehavior
from cacheable.caching.dispatch import HookDispatcher
from cacheable.caching.invalidation import InvalidationEngine
from cacheable.caching.key_builder import CacheKeyBuilder, content_hash
from cacheable.caching.local_cache import LocalRequestCache, unit_of_work
from cacheable.caching.models import (
    EntitySettings,
    EventToggles,
    InvalidationReport,
    LifecycleEvent,
    QuerySpec,
    ReadDecision,
    ReadState,
    WriteContext,
    WriteKind,
    entity_name,
)
from cacheable.caching.observer import CacheObserver
from cacheable.caching.read_interceptor import ReadInterceptor, strip_provenance
from cacheable.caching.registry import PRESETS, EntitySettingsRegistry, merge_settings
from cacheable.caching.ttl import TTLResolver, parse_duration

__all__ = [
    "BackendRegistry",
    "CacheableBehavior",
    "HookDispatcher",
    "InvalidationEngine",
    "CacheKeyBuilder",
    "content_hash",
    "LocalRequestCache",
    "unit_of_work",
    "EntitySettings",
    "EventToggles",
    "InvalidationReport",
    "LifecycleEvent",
    "QuerySpec",
    "ReadDecision",
    "ReadState",
    "WriteContext",
    "WriteKind",
    "entity_name",
    "CacheObserver",
    "ReadInterceptor",
    "strip_provenance",
    "PRESETS",
    "EntitySettingsRegistry",
    "merge_settings",
    "TTLResolver",
    "parse_duration",
]
