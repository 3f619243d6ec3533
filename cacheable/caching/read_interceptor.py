"""
Read Interceptor

The check-then-populate protocol for one read:

    Idle ──(directive, caching enabled)──> Intercepting
    Intercepting ──> HitLocal    value from the local cache, executor skipped
                 ──> HitBackend  value from the CacheStore, copied locally,
                                 executor skipped
                 ──> Miss        executor runs; after_read stamps provenance
                                 (optional) and writes backend + local
    every path ──> Resolved      current-query context cleared

Hits short-circuit explicitly: before_read returns a ReadDecision carrying
the value and the caller does not run its executor at all.

The current-query context lives in a ContextVar, so two tasks reading
through the same interceptor never see each other's state.

Backend failures never fail a read: a failed get is a miss, a failed set is
logged and the executor's result is returned as-is.
"""

import inspect
from collections.abc import Callable, Mapping
from contextvars import ContextVar
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from cacheable.caching.backends import BackendRegistry
from cacheable.caching.key_builder import CacheKeyBuilder, content_hash
from cacheable.caching.local_cache import LocalCacheProvider, LocalRequestCache, as_provider
from cacheable.caching.models import (
    EntityType,
    QuerySpec,
    ReadDecision,
    ReadState,
    entity_name,
)
from cacheable.caching.observer import CacheObserver
from cacheable.caching.registry import EntitySettingsRegistry
from cacheable.caching.ttl import TTLResolver, TTLValue, parse_duration
from cacheable.core.config.constants import (
    ENTITY_PLACEHOLDER,
    KEY_NAMESPACE_SEPARATOR,
    PROVENANCE_FIELD,
    QUERY_SENTINEL_OPERATION,
    CacheTier,
)
from cacheable.core.config.settings import Settings, get_settings
from cacheable.core.exceptions import CacheError, ConfigurationError


@dataclass(frozen=True)
class QueryContext:
    """Key and expiry of the read currently being intercepted."""

    entity: str
    key: str
    expires: TTLValue
    ttl: int
    backend: str
    append_metadata: bool

    def provenance(self) -> dict[str, Any]:
        expires = self.ttl if isinstance(self.expires, timedelta) else self.expires
        return {"key": self.key, "expires": expires}


def stamp_provenance(results: Any, metadata: dict[str, Any]) -> Any:
    """Copy of results with metadata attached to every mapping row."""
    if isinstance(results, Mapping):
        return {**results, PROVENANCE_FIELD: metadata}
    if isinstance(results, (list, tuple)):
        return [
            {**row, PROVENANCE_FIELD: metadata} if isinstance(row, Mapping) else row
            for row in results
        ]
    return results


def strip_provenance(results: Any) -> Any:
    """
    Copy of results without provenance metadata.

    For consumers that send cached rows back through a write path.
    """
    if isinstance(results, Mapping):
        return {k: v for k, v in results.items() if k != PROVENANCE_FIELD}
    if isinstance(results, (list, tuple)):
        return [strip_provenance(row) if isinstance(row, Mapping) else row for row in results]
    return results


class ReadInterceptor:
    """
    Implements before_read / after_read for cacheable reads.

    Usage:
        interceptor = ReadInterceptor(registry, backends, LocalRequestCache())

        decision = await interceptor.before_read("User", query)
        if decision.short_circuit:
            return decision.results
        rows = await run_query(query)
        return await interceptor.after_read("User", rows)

        # or, equivalently
        rows = await interceptor.read("User", query, run_query)
    """

    def __init__(
        self,
        registry: EntitySettingsRegistry,
        backends: BackendRegistry,
        local_cache: LocalRequestCache | LocalCacheProvider,
        *,
        key_builder: CacheKeyBuilder | None = None,
        ttl_resolver: TTLResolver | None = None,
        observer: CacheObserver | None = None,
        settings: Settings | None = None,
    ):
        self._registry = registry
        self._backends = backends
        self._local = as_provider(local_cache)
        self._keys = key_builder or CacheKeyBuilder(registry)
        self._ttl = ttl_resolver or TTLResolver(registry)
        self._observer = observer or CacheObserver()
        self._settings = settings or get_settings()
        self._current: ContextVar[QueryContext | None] = ContextVar(
            f"cacheable_read_{id(self)}", default=None
        )

    @property
    def is_caching(self) -> bool:
        """True between a Miss in before_read and the matching after_read."""
        return self._current.get() is not None

    @property
    def current_query(self) -> QueryContext | None:
        return self._current.get()

    # -------------------------------------------------------------------------
    # Key / TTL resolution
    # -------------------------------------------------------------------------

    def resolve_key_input(self, query: QuerySpec) -> tuple[Any, TTLValue | None]:
        """
        Turn a cache directive into key input and an explicit TTL (if any).

        Raises:
            ConfigurationError: On a mapping directive without a "key"
        """
        directive = query.cache
        expires = query.cache_expires

        if isinstance(directive, Mapping):
            if directive.get("expires"):
                expires = directive["expires"]
            if "key" not in directive:
                raise ConfigurationError(
                    "Cache directive mapping must contain a 'key'",
                    details={"directive": {k: repr(v) for k, v in directive.items()}},
                )
            directive = directive["key"]

        if directive is True:
            head = f"{ENTITY_PLACEHOLDER}{KEY_NAMESPACE_SEPARATOR}{QUERY_SENTINEL_OPERATION}"
            return [head, content_hash(query.query)], expires

        return directive, expires

    def resolve_context(self, entity: EntityType, query: QuerySpec) -> QueryContext:
        settings = self._registry.get(entity)
        key_input, explicit = self.resolve_key_input(query)
        expires = self._ttl.resolve(entity, explicit)

        return QueryContext(
            entity=entity_name(entity),
            key=self._keys.build_key(entity, key_input),
            expires=expires,
            ttl=parse_duration(expires),
            backend=settings.cache_backend,
            append_metadata=settings.append_metadata,
        )

    # -------------------------------------------------------------------------
    # Protocol
    # -------------------------------------------------------------------------

    async def before_read(self, entity: EntityType, query: QuerySpec) -> ReadDecision:
        """
        Decide whether the read can be answered from cache.

        Returns:
            ReadDecision; short_circuit=True means "do not run the executor"
        """
        self._current.set(None)

        if self._settings.CACHE_DISABLED or not query.has_directive:
            return ReadDecision.proceed(ReadState.IDLE)

        context = self.resolve_context(entity, query)
        self._current.set(context)

        local = self._local()
        cached = local.get(context.key)
        if cached:
            self._current.set(None)
            self._observer.record_hit(CacheTier.LOCAL, context.entity, context.key)
            return ReadDecision.hit(ReadState.HIT_LOCAL, cached, context.key)

        store = self._backends.get(context.backend)
        try:
            cached = await store.get(context.key)
        except CacheError as e:
            self._observer.record_backend_error("get", e, entity=context.entity, cache_key=context.key)
            cached = None

        if cached:
            local.set(context.entity, context.key, cached)
            self._current.set(None)
            self._observer.record_hit(CacheTier.BACKEND, context.entity, context.key)
            return ReadDecision.hit(ReadState.HIT_BACKEND, cached, context.key)

        self._observer.record_miss(context.entity, context.key)
        return ReadDecision.proceed(ReadState.MISS, context.key)

    async def after_read(self, entity: EntityType, results: Any) -> Any:
        """
        Populate the cache with a miss's results.

        Returns the results to hand to the caller (stamped with provenance
        when the entity asks for it). Passes results through untouched when
        no read is being intercepted.
        """
        context = self._current.get()
        if context is None:
            return results

        try:
            if context.entity != entity_name(entity) or not results:
                return results

            if context.append_metadata:
                results = stamp_provenance(results, context.provenance())

            await self._populate(context, results)
            return results
        finally:
            self._current.set(None)

    async def read(self, entity: EntityType, query: QuerySpec, executor: Callable[[QuerySpec], Any]) -> Any:
        """
        Run the whole protocol around executor.

        executor may be sync or async; it is not called on a cache hit.
        """
        decision = await self.before_read(entity, query)
        if decision.short_circuit:
            return decision.results

        try:
            results = executor(query)
            if inspect.isawaitable(results):
                results = await results
        except BaseException:
            self._current.set(None)
            raise

        return await self.after_read(entity, results)

    async def _populate(self, context: QueryContext, results: Any) -> None:
        store = self._backends.get(context.backend)
        try:
            await store.set(context.key, results, context.ttl)
            self._observer.record_set(context.entity, context.key, context.ttl)
        except CacheError as e:
            self._observer.record_backend_error("set", e, entity=context.entity, cache_key=context.key)

        self._local().set(context.entity, context.key, results)
