"""
Cacheable Behavior

The concrete CacheHooks implementation a data-access layer plugs in. It wires
the key builder, TTL resolver, read interceptor and invalidation engine to
one set of backends and one local cache, and adds the helpers application
code uses directly (with_cache, read_cache / write_cache / delete_cache).

Lifecycle:
- one behavior per unit of work: use it as an async context manager, the
  local cache is dropped on exit (close)
- one behavior shared by many units: open unit_of_work() per unit; the
  behavior then uses the scope's local cache
- teardown() when the owner is unloaded: clear_all for every entity seen
"""

import inspect
from collections.abc import Callable
from typing import Any

from cacheable.caching.backends import BackendRegistry
from cacheable.caching.invalidation import InvalidationEngine
from cacheable.caching.key_builder import CacheKeyBuilder
from cacheable.caching.local_cache import LocalRequestCache, current_local_cache
from cacheable.caching.models import (
    EntityType,
    InvalidationReport,
    QuerySpec,
    ReadDecision,
    WriteContext,
    WriteKind,
    entity_name,
)
from cacheable.caching.observer import CacheObserver
from cacheable.caching.read_interceptor import ReadInterceptor
from cacheable.caching.registry import EntitySettingsRegistry
from cacheable.caching.ttl import TTLResolver, TTLValue
from cacheable.core.config.constants import CacheTier, Stage
from cacheable.core.config.settings import Settings, get_settings
from cacheable.core.exceptions import CacheError, InvalidCallbackError
from cacheable.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


async def _call(func: Callable[..., Any], *args: Any) -> Any:
    result = func(*args)
    if inspect.isawaitable(result):
        result = await result
    return result


class CacheableBehavior:
    """
    Read-through / write-invalidate caching for registered entity types.

    Usage:
        registry = EntitySettingsRegistry()
        registry.register("User", ttl_default="+1 hour")
        backends = BackendRegistry({"default": InMemoryCacheStore()})

        async with CacheableBehavior(registry, backends) as cache:
            user = await cache.read("User", QuerySpec(cache=["getById", 7]), load_user)
            await cache.write("User", save_user, identity={"id": 7})
            total = await cache.with_cache("User", "getCount", count_users)
    """

    def __init__(
        self,
        registry: EntitySettingsRegistry,
        backends: BackendRegistry,
        *,
        settings: Settings | None = None,
        observer: CacheObserver | None = None,
    ):
        self._settings = settings or get_settings()
        self._registry = registry
        self._backends = backends
        self._observer = observer or CacheObserver()
        self._own_local = LocalRequestCache()
        self._seen: set[str] = set()

        self._keys = CacheKeyBuilder(registry)
        self._ttl = TTLResolver(registry)

        components = {
            "key_builder": self._keys,
            "ttl_resolver": self._ttl,
            "observer": self._observer,
            "settings": self._settings,
        }
        self._reads = ReadInterceptor(registry, backends, self._local, **components)
        self._invalidation = InvalidationEngine(registry, backends, self._local, **components)

    @property
    def registry(self) -> EntitySettingsRegistry:
        return self._registry

    @property
    def local_cache(self) -> LocalRequestCache:
        return self._local()

    @property
    def enabled(self) -> bool:
        return not self._settings.CACHE_DISABLED

    def _local(self) -> LocalRequestCache:
        scoped = current_local_cache()
        return scoped if scoped is not None else self._own_local

    def cache_key(self, entity: EntityType, key_input: Any, apply_prefix: bool = True) -> str:
        return self._keys.build_key(entity, key_input, apply_prefix=apply_prefix)

    def resolve_ttl(self, entity: EntityType, explicit: TTLValue | None = None) -> TTLValue:
        return self._ttl.resolve(entity, explicit)

    # -------------------------------------------------------------------------
    # CacheHooks
    # -------------------------------------------------------------------------

    async def before_read(self, entity: EntityType, query: QuerySpec) -> ReadDecision:
        self._seen.add(entity_name(entity))
        return await self._reads.before_read(entity, query)

    async def after_read(self, entity: EntityType, results: Any) -> Any:
        return await self._reads.after_read(entity, results)

    async def after_write(self, entity: EntityType, context: WriteContext) -> InvalidationReport:
        if context.kind == WriteKind.DELETE:
            return await self._invalidation.on_delete_success(entity, context)
        return await self._invalidation.on_write_success(entity, context)

    async def after_delete(self, entity: EntityType, context: WriteContext) -> InvalidationReport:
        return await self._invalidation.on_delete_success(entity, context)

    # -------------------------------------------------------------------------
    # Read / write around an executor
    # -------------------------------------------------------------------------

    async def read(self, entity: EntityType, query: QuerySpec, executor: Callable[[QuerySpec], Any]) -> Any:
        """Run executor(query) through the read interceptor."""
        self._seen.add(entity_name(entity))
        return await self._reads.read(entity, query, executor)

    async def write(
        self,
        entity: EntityType,
        executor: Callable[[], Any],
        *,
        identity: Any = None,
        kind: WriteKind = WriteKind.UPDATE,
    ) -> Any:
        """
        Run a write and invalidate once it has succeeded.

        An executor that raises leaves the cache untouched. A mapping returned
        by the executor is used as the written record (refresh_on_write) and
        fills in identity fields the caller did not pass.

        Returns:
            Whatever the executor returned
        """
        result = await _call(executor)

        record = result if isinstance(result, dict) else None
        if identity is None or isinstance(identity, dict):
            fields = {**(record or {}), **(identity or {})}
        else:
            fields = {**(record or {}), self._registry.get(entity).primary_key: identity}

        context = WriteContext(entity=entity_name(entity), identity=fields, kind=kind, record=record)
        await self.after_write(entity, context)
        return result

    # -------------------------------------------------------------------------
    # Direct cache access
    # -------------------------------------------------------------------------

    async def with_cache(
        self,
        entity: EntityType,
        key_input: Any,
        compute: Callable[[], Any],
        ttl: TTLValue | None = None,
    ) -> Any:
        """
        Read-through for an arbitrary computation.

        Args:
            entity: Entity type whose settings govern the entry
            key_input: Flat key or ordered [operation, *args]
            compute: Zero-argument callable (sync or async) producing the value
            ttl: Explicit TTL override

        Raises:
            InvalidCallbackError: If compute is not callable (before any cache access)
        """
        if not callable(compute):
            raise InvalidCallbackError(
                f"Compute step for {key_input!r} is not callable",
                details={"entity": entity_name(entity), "type": type(compute).__name__},
            )

        if not self.enabled:
            return await _call(compute)

        name = entity_name(entity)
        self._seen.add(name)
        key = self.cache_key(entity, key_input)

        cached = await self._lookup(entity, key)
        if cached:
            return cached

        self._observer.record_miss(name, key)
        value = await _call(compute)
        if value:
            await self._store(entity, key, value, ttl)
        return value

    async def read_cache(self, entity: EntityType, key_input: Any) -> Any | None:
        """Cached value for key_input, or None. Backend failures read as None."""
        if not self.enabled:
            return None
        self._seen.add(entity_name(entity))
        return await self._lookup(entity, self.cache_key(entity, key_input))

    async def write_cache(
        self, entity: EntityType, key_input: Any, value: Any, ttl: TTLValue | None = None
    ) -> bool:
        """Store value under key_input. Returns False when disabled or the backend failed."""
        if not self.enabled:
            return False
        self._seen.add(entity_name(entity))
        return await self._store(entity, self.cache_key(entity, key_input), value, ttl)

    async def delete_cache(self, entity: EntityType, key_input: Any) -> bool:
        """Delete one entry from both tiers. Returns False when disabled or the backend failed."""
        if not self.enabled:
            return False

        name = entity_name(entity)
        key = self.cache_key(entity, key_input)
        self._local().delete(key)

        store = self._backends.get(self._registry.get(entity).cache_backend)
        try:
            return await store.delete(key)
        except CacheError as e:
            self._observer.record_backend_error("delete", e, entity=name, cache_key=key)
            return False

    async def reset(self, entity: EntityType, identity: Any = None) -> InvalidationReport:
        return await self._invalidation.reset(entity, identity)

    async def clear_all(self, entity: EntityType) -> InvalidationReport:
        self._seen.discard(entity_name(entity))
        return await self._invalidation.clear_all(entity)

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def close(self) -> None:
        """End of the unit of work: drop the local cache."""
        self._local().clear()

    async def teardown(self) -> list[InvalidationReport]:
        """Owner unloaded: clear every entity this behavior has cached."""
        entities = sorted(self._seen | set(self._local().entities()))
        reports = []
        for name in entities:
            if self._registry.is_registered(name):
                reports.append(await self.clear_all(name))
        self._seen.clear()
        await self.close()
        log_stage(logger, Stage.CLEAR, "Cache behavior torn down", entities=entities)
        return reports

    async def __aenter__(self) -> "CacheableBehavior":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    def stats(self) -> dict[str, Any]:
        return {
            **self._observer.get_stats(),
            "enabled": self.enabled,
            "local_entries": len(self._local()),
            "entities_seen": sorted(self._seen),
        }

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _lookup(self, entity: EntityType, key: str) -> Any | None:
        name = entity_name(entity)
        local = self._local()

        cached = local.get(key)
        if cached:
            self._observer.record_hit(CacheTier.LOCAL, name, key)
            return cached

        store = self._backends.get(self._registry.get(entity).cache_backend)
        try:
            cached = await store.get(key)
        except CacheError as e:
            self._observer.record_backend_error("get", e, entity=name, cache_key=key)
            return None

        if cached:
            local.set(name, key, cached)
            self._observer.record_hit(CacheTier.BACKEND, name, key)
            return cached
        return None

    async def _store(self, entity: EntityType, key: str, value: Any, ttl: TTLValue | None) -> bool:
        name = entity_name(entity)
        seconds = self._ttl.resolve_seconds(entity, ttl)
        store = self._backends.get(self._registry.get(entity).cache_backend)

        try:
            stored = await store.set(key, value, seconds)
        except CacheError as e:
            self._observer.record_backend_error("set", e, entity=name, cache_key=key)
            return False

        self._local().set(name, key, value)
        self._observer.record_set(name, key, seconds)
        return stored
