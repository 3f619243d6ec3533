"""
Entity Settings Registry

Typed per-entity-type configuration, populated at startup and read-only
afterwards (reconfigure() is the only way to change a registered entity).

Settings are merged structurally onto a named preset: scalar fields replace
the preset's value, mapping fields (method_aliases, reset_hooks, lookup_hooks,
event_toggles) merge key by key. A reset hook or alias set to False/None in
the overrides is removed / disabled.

Presets:
- eager: every write kind refreshes per-record entries, provenance metadata
  is stamped, the lookup entry is re-populated with the written record
- lean: creates do not touch per-record entries, no metadata, pure
  invalidation
"""

from collections.abc import Mapping
from typing import Any

from pydantic import ValidationError

from cacheable.caching.models import (
    EntitySettings,
    EntityType,
    EventToggles,
    entity_name,
)
from cacheable.core.config.constants import Stage
from cacheable.core.config.settings import Settings, get_settings
from cacheable.core.exceptions import ConfigurationError
from cacheable.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)

PRESET_EAGER = "eager"
PRESET_LEAN = "lean"

PRESETS: dict[str, EntitySettings] = {
    PRESET_EAGER: EntitySettings(
        append_metadata=True,
        event_toggles=EventToggles(on_create=True, on_update=True, on_delete=True),
        refresh_on_write=True,
    ),
    PRESET_LEAN: EntitySettings(
        append_metadata=False,
        event_toggles=EventToggles(on_create=False, on_update=True, on_delete=True),
        refresh_on_write=False,
    ),
}

_MAPPING_FIELDS = ("method_aliases", "reset_hooks", "lookup_hooks")


def merge_settings(base: EntitySettings, overrides: Mapping[str, Any]) -> EntitySettings:
    """
    Merge overrides onto base field by field.

    Raises:
        ConfigurationError: On unknown fields or values that fail validation
    """
    unknown = set(overrides) - set(EntitySettings.model_fields)
    if unknown:
        raise ConfigurationError(
            f"Unknown entity settings: {sorted(unknown)}",
            details={"allowed": sorted(EntitySettings.model_fields)},
        )

    data = base.model_dump()

    for field_name, value in overrides.items():
        if field_name in _MAPPING_FIELDS and isinstance(value, Mapping):
            merged = dict(data[field_name])
            for key, item in value.items():
                if field_name == "reset_hooks" and item in (False, None):
                    merged.pop(key, None)
                else:
                    merged[key] = list(item) if isinstance(item, (list, tuple)) else item
            data[field_name] = merged
        elif field_name == "event_toggles" and isinstance(value, (Mapping, EventToggles)):
            toggles = value.model_dump() if isinstance(value, EventToggles) else dict(value)
            data[field_name] = {**data[field_name], **toggles}
        else:
            data[field_name] = value

    try:
        return EntitySettings(**data)
    except ValidationError as e:
        raise ConfigurationError.from_exception(e, message="Invalid entity settings")


class EntitySettingsRegistry:
    """
    Entity type -> EntitySettings.

    Usage:
        registry = EntitySettingsRegistry()
        registry.register("User", ttl_default="+1 hour", key_prefix="app:")
        registry.register(Post, preset="eager", reset_hooks={"getByAuthor": ["author_id"]})

        settings = registry.get("User")
    """

    def __init__(self, settings: Settings | None = None, default_preset: str | None = None):
        settings = settings or get_settings()
        self._default_preset = default_preset or settings.CACHE_SETTINGS_PRESET
        if self._default_preset not in PRESETS:
            raise ConfigurationError(
                f"Unknown settings preset: {self._default_preset!r}",
                details={"presets": sorted(PRESETS)},
            )
        self._entities: dict[str, EntitySettings] = {}

    @property
    def default_preset(self) -> str:
        return self._default_preset

    def register(
        self,
        entity: EntityType,
        settings: EntitySettings | Mapping[str, Any] | None = None,
        *,
        preset: str | None = None,
        **overrides: Any,
    ) -> EntitySettings:
        """
        Register (or re-register) an entity type.

        Args:
            entity: Entity type name or class
            settings: Complete EntitySettings (used as-is) or a mapping of overrides
            preset: Preset to merge onto (registry default if omitted)
            **overrides: Additional field overrides

        Returns:
            The stored settings
        """
        name = entity_name(entity)

        if isinstance(settings, EntitySettings):
            resolved = merge_settings(settings, overrides) if overrides else settings
        else:
            base = self._preset(preset or self._default_preset)
            resolved = merge_settings(base, {**(settings or {}), **overrides})

        self._entities[name] = resolved

        log_stage(
            logger,
            Stage.CONFIGURATION,
            "Entity registered",
            level="debug",
            entity=name,
            backend=resolved.cache_backend,
            reset_hooks=list(resolved.reset_hooks),
        )
        return resolved

    def reconfigure(self, entity: EntityType, **overrides: Any) -> EntitySettings:
        """Merge overrides onto an already registered entity."""
        name = entity_name(entity)
        current = self.get(name)
        self._entities[name] = merge_settings(current, overrides)
        log_stage(logger, Stage.CONFIGURATION, "Entity reconfigured", entity=name, fields=sorted(overrides))
        return self._entities[name]

    def get(self, entity: EntityType) -> EntitySettings:
        """
        Settings for an entity type.

        Raises:
            ConfigurationError: If the entity type was never registered
        """
        name = entity_name(entity)
        try:
            return self._entities[name]
        except KeyError:
            raise ConfigurationError(
                f"Entity type {name!r} is not registered for caching",
                details={"entity": name, "registered": sorted(self._entities)},
            ).with_suggestion("Call EntitySettingsRegistry.register() at startup")

    def unregister(self, entity: EntityType) -> None:
        self._entities.pop(entity_name(entity), None)

    def is_registered(self, entity: EntityType) -> bool:
        return entity_name(entity) in self._entities

    def entities(self) -> list[str]:
        return list(self._entities)

    @staticmethod
    def _preset(name: str) -> EntitySettings:
        try:
            return PRESETS[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown settings preset: {name!r}", details={"presets": sorted(PRESETS)}
            )
