"""
Invalidation Engine

After a successful write, computes every key that may now be stale and
deletes it from the local cache and the backend.

Per write:
1. Collection entries (getAll / getList, getCount) always go: any write can
   change a list or a count.
2. The single-record lookup entry for the written identity (primary key via
   lookup_hooks), when the entity's event toggle for the write kind is on.
3. Every reset hook: True hooks by operation name alone, field-list hooks
   only when the identity carries every required field. Also gated by the
   event toggle.

Keys are de-duplicated and deleted exactly once. A delete that fails is
reported (InvalidationReport.failed, error log, failure counter) and never
raised: the write has already committed.
"""

from collections.abc import Mapping
from typing import Any

from cacheable.caching.backends import BackendRegistry
from cacheable.caching.key_builder import CacheKeyBuilder
from cacheable.caching.local_cache import LocalCacheProvider, LocalRequestCache, as_provider
from cacheable.caching.models import (
    EntitySettings,
    EntityType,
    InvalidationReport,
    WriteContext,
    WriteKind,
    entity_name,
)
from cacheable.caching.observer import CacheObserver
from cacheable.caching.registry import EntitySettingsRegistry
from cacheable.caching.ttl import TTLResolver
from cacheable.core.config.constants import COUNT_LEVEL_OPERATIONS, LIST_LEVEL_OPERATIONS
from cacheable.core.config.settings import Settings, get_settings
from cacheable.core.exceptions import CacheError

RESET_KIND = "reset"
CLEAR_KIND = "clear"


class InvalidationEngine:
    """
    Write-side half of the cache layer.

    Usage:
        engine = InvalidationEngine(registry, backends, LocalRequestCache())
        report = await engine.on_write_success("User", WriteContext(entity="User", identity={"id": 7}))
        if not report.complete:
            ...  # stale entries may survive until their TTL
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

    # -------------------------------------------------------------------------
    # Write hooks
    # -------------------------------------------------------------------------

    async def on_write_success(self, entity: EntityType, context: WriteContext) -> InvalidationReport:
        """
        Invalidate after a create or update (or a delete, when context.kind says so).

        Nothing happens for unsuccessful writes or while caching is disabled.

        Raises:
            ConfigurationError: If the entity type is not registered
        """
        name = entity_name(entity)
        if not context.success or self._settings.CACHE_DISABLED:
            return InvalidationReport(entity=name)

        settings = self._registry.get(entity)
        kind = WriteKind(context.kind)
        identity = self._identity(settings, context.identity)

        keys = self.collection_keys(entity, settings)
        skipped: list[str] = []

        if settings.event_toggles.enabled_for(kind):
            lookup_key = self.lookup_key(entity, settings, identity)
            if lookup_key:
                keys.append(lookup_key)

        hook_keys, skipped = self.hook_keys(entity, settings, identity)
        keys.extend(hook_keys)

        report = await self._delete(name, settings, keys, kind.value)
        report.skipped_hooks.extend(skipped)

        if (
            settings.refresh_on_write
            and kind != WriteKind.DELETE
            and settings.event_toggles.enabled_for(kind)
            and context.record
        ):
            await self._refresh(entity, settings, identity, context.record)

        return report

    async def on_delete_success(self, entity: EntityType, context: WriteContext) -> InvalidationReport:
        """Invalidate after a delete; context.kind is forced to DELETE."""
        if context.kind != WriteKind.DELETE:
            context = context.model_copy(update={"kind": WriteKind.DELETE})
        return await self.on_write_success(entity, context)

    # -------------------------------------------------------------------------
    # Manual invalidation
    # -------------------------------------------------------------------------

    async def reset(self, entity: EntityType, identity: Any = None) -> InvalidationReport:
        """
        Invalidate collection entries and, given an identity, the record's hooks.

        identity may be a mapping of identity fields or a bare primary key value.
        """
        name = entity_name(entity)
        if self._settings.CACHE_DISABLED:
            return InvalidationReport(entity=name)

        settings = self._registry.get(entity)
        keys = self.collection_keys(entity, settings)
        skipped: list[str] = []

        if identity not in (None, "") and identity != {}:
            identity = self._identity(settings, identity)
            lookup_key = self.lookup_key(entity, settings, identity)
            if lookup_key:
                keys.append(lookup_key)
            hook_keys, skipped = self.hook_keys(entity, settings, identity)
            keys.extend(hook_keys)

        report = await self._delete(name, settings, keys, RESET_KIND)
        report.skipped_hooks.extend(skipped)
        return report

    async def clear_all(self, entity: EntityType) -> InvalidationReport:
        """
        Drop everything cached for an entity type.

        Every local key tracked for the entity is deleted from both tiers,
        then the entity's backend namespace is cleared.
        """
        name = entity_name(entity)
        if self._settings.CACHE_DISABLED:
            return InvalidationReport(entity=name)

        settings = self._registry.get(entity)
        local = self._local()
        local_keys = local.keys_for(name)

        report = await self._delete(name, settings, local_keys, CLEAR_KIND)
        local.clear(name)

        store = self._backends.get(settings.cache_backend)
        try:
            await store.clear(settings.cache_backend)
        except CacheError as e:
            self._observer.record_backend_error("clear", e, entity=name, namespace=settings.cache_backend)
            report.failed.append(f"{settings.cache_backend}:*")

        self._observer.record_clear(name, settings.cache_backend, len(local_keys))
        return report

    # -------------------------------------------------------------------------
    # Key computation
    # -------------------------------------------------------------------------

    def collection_keys(self, entity: EntityType, settings: EntitySettings) -> list[str]:
        """Keys of the list-level and count-level operations the entity exposes."""
        keys = []
        for logical in LIST_LEVEL_OPERATIONS + COUNT_LEVEL_OPERATIONS:
            if logical not in settings.method_aliases:
                continue
            operation = settings.operation(logical)
            if operation:
                keys.append(self._keys.build_key(entity, operation))
        return keys

    def lookup_key(self, entity: EntityType, settings: EntitySettings, identity: Mapping[str, Any]) -> str | None:
        """Key of the single-record lookup by primary key, if it can be built."""
        logical = settings.lookup_hooks.get(settings.primary_key)
        value = identity.get(settings.primary_key)
        if not logical or value is None:
            return None

        operation = settings.operation(logical)
        if not operation:
            return None
        return self._keys.build_key(entity, [operation, value])

    def hook_keys(
        self, entity: EntityType, settings: EntitySettings, identity: Mapping[str, Any]
    ) -> tuple[list[str], list[str]]:
        """
        Keys produced by the entity's reset hooks.

        Returns:
            (keys, skipped hook names); a field-list hook is skipped when the
            identity lacks any of its fields, an aliased-away hook silently
        """
        keys: list[str] = []
        skipped: list[str] = []

        for hook, required in settings.reset_hooks.items():
            operation = settings.operation(hook)
            if not operation:
                continue

            if required is True:
                keys.append(self._keys.build_key(entity, operation))
                continue

            values = [identity.get(field) for field in required]
            if any(value is None for value in values):
                skipped.append(hook)
                continue
            keys.append(self._keys.build_key(entity, [operation, *values]))

        return keys, skipped

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    @staticmethod
    def _identity(settings: EntitySettings, identity: Any) -> Mapping[str, Any]:
        if isinstance(identity, Mapping):
            return identity
        return {settings.primary_key: identity}

    async def _delete(
        self, name: str, settings: EntitySettings, keys: list[str], kind: str
    ) -> InvalidationReport:
        report = InvalidationReport(entity=name)
        local = self._local()
        store = self._backends.get(settings.cache_backend)

        for key in dict.fromkeys(keys):
            local.delete(key)
            try:
                await store.delete(key)
                report.deleted.append(key)
            except CacheError as e:
                report.failed.append(key)
                self._observer.record_backend_error("delete", e, entity=name, cache_key=key)

        self._observer.record_invalidation(name, kind, report.deleted, report.failed)
        return report

    async def _refresh(
        self, entity: EntityType, settings: EntitySettings, identity: Mapping[str, Any], record: Any
    ) -> None:
        key = self.lookup_key(entity, settings, identity)
        if key is None:
            return

        name = entity_name(entity)
        ttl = self._ttl.resolve_seconds(entity)
        try:
            await self._backends.get(settings.cache_backend).set(key, record, ttl)
            self._observer.record_set(name, key, ttl)
        except CacheError as e:
            self._observer.record_backend_error("set", e, entity=name, cache_key=key)
            return

        self._local().set(name, key, record)
