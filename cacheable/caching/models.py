"""
Cache Layer Data Models

Pydantic models for everything callers hand to the cache layer (entity
settings, read directives, write contexts) and dataclasses for what the layer
hands back (read decisions, invalidation reports).
"""

from dataclasses import dataclass, field
from datetime import timedelta
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from cacheable.caching.ttl import parse_duration
from cacheable.core.config.constants import (
    DEFAULT_BACKEND,
    OP_GET_ALL,
    OP_GET_BY_ID,
    OP_GET_BY_SLUG,
    OP_GET_COUNT,
    OP_GET_LIST,
)
from cacheable.core.exceptions import ConfigurationError

# An entity type is identified by a name or by the class that models it
EntityType = str | type


def entity_name(entity: Any) -> str:
    """
    Concrete identity of an entity type.

    Strings are used as-is, classes contribute their __name__ and instances
    the name of their class.
    """
    if isinstance(entity, str):
        name = entity.strip()
    elif isinstance(entity, type):
        name = entity.__name__
    else:
        name = type(entity).__name__

    if not name:
        raise ConfigurationError("Entity type must have a non-empty name")
    return name


class WriteKind(str, Enum):
    """Kind of write that triggered invalidation."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


class ReadState(str, Enum):
    """
    Terminal state reached by one intercepted read.

    IDLE: no directive or caching disabled, read passed through
    HIT_LOCAL: served from the request-scoped local cache
    HIT_BACKEND: served from the CacheStore
    MISS: executor must run; after_read populates
    """

    IDLE = "idle"
    HIT_LOCAL = "hit_local"
    HIT_BACKEND = "hit_backend"
    MISS = "miss"


class LifecycleEvent(str, Enum):
    """Lifecycle events a data-access layer dispatches to the cache layer."""

    BEFORE_READ = "before_read"
    AFTER_READ = "after_read"
    AFTER_WRITE = "after_write"
    AFTER_DELETE = "after_delete"


# ============================================================================
# Entity Settings
# ============================================================================


class EventToggles(BaseModel):
    """Which write kinds invalidate per-record entries."""

    model_config = {"frozen": True}

    on_create: bool = True
    on_update: bool = True
    on_delete: bool = True

    def enabled_for(self, kind: WriteKind) -> bool:
        return {
            WriteKind.CREATE: self.on_create,
            WriteKind.UPDATE: self.on_update,
            WriteKind.DELETE: self.on_delete,
        }[WriteKind(kind)]


def default_method_aliases() -> dict[str, str | None]:
    return {
        OP_GET_ALL: OP_GET_ALL,
        OP_GET_LIST: OP_GET_LIST,
        OP_GET_COUNT: OP_GET_COUNT,
        OP_GET_BY_ID: OP_GET_BY_ID,
        OP_GET_BY_SLUG: OP_GET_BY_SLUG,
    }


def default_reset_hooks() -> dict[str, Literal[True] | list[str]]:
    return {
        OP_GET_ALL: True,
        OP_GET_LIST: True,
        OP_GET_BY_ID: ["id"],
        OP_GET_BY_SLUG: ["slug"],
    }


def default_lookup_hooks() -> dict[str, str]:
    return {"id": OP_GET_BY_ID, "slug": OP_GET_BY_SLUG}


class EntitySettings(BaseModel):
    """
    Per-entity-type cache configuration.

    Attributes:
        cache_backend: Backend id the entity's entries live in
        ttl_default: Default TTL (seconds, timedelta or expression)
        key_prefix: String prepended to every backend key
        append_metadata: Stamp {key, expires} provenance onto result rows
        method_aliases: Logical operation -> canonical name (None disables)
        event_toggles: Which write kinds invalidate per-record entries
        reset_hooks: Logical operation -> True | required identity fields
        primary_key: Identity field the entity is primarily looked up by
        lookup_hooks: Identity field -> single-record lookup operation
        refresh_on_write: Re-populate the lookup entry with the written record
    """

    model_config = {"frozen": True}

    cache_backend: str = Field(default=DEFAULT_BACKEND, min_length=1)
    ttl_default: int | float | timedelta | str | None = None
    key_prefix: str = ""
    append_metadata: bool = False
    method_aliases: dict[str, str | None] = Field(default_factory=default_method_aliases)
    event_toggles: EventToggles = Field(default_factory=EventToggles)
    reset_hooks: dict[str, Literal[True] | list[str]] = Field(default_factory=default_reset_hooks)
    primary_key: str = Field(default="id", min_length=1)
    lookup_hooks: dict[str, str] = Field(default_factory=default_lookup_hooks)
    refresh_on_write: bool = False

    @field_validator("ttl_default")
    @classmethod
    def validate_ttl_default(cls, v):
        """Reject TTLs the backend could not honour."""
        if v in (None, ""):
            return None
        try:
            parse_duration(v)
        except ConfigurationError as e:
            raise ValueError(e.message)
        return v

    @field_validator("reset_hooks")
    @classmethod
    def validate_reset_hooks(cls, v):
        """Required-field lists must name at least one field."""
        for name, required in v.items():
            if isinstance(required, list) and not required:
                raise ValueError(f"reset hook {name!r} requires at least one field; use True instead")
        return v

    def operation(self, logical: str) -> str | None:
        """Canonical name for a logical operation, None when disabled."""
        return self.method_aliases.get(logical, logical) or None


# ============================================================================
# Read / Write Inputs
# ============================================================================


class QuerySpec(BaseModel):
    """
    One read request as seen by the cache layer.

    Attributes:
        cache: None (no caching), a flat key, an ordered [operation, *args]
            list, True (derive the key from the full query) or a mapping
            {"key": ..., "expires": ...}
        cache_expires: Explicit TTL override
        query: Opaque description of the read, hashed for the True form
    """

    model_config = {"frozen": True}

    cache: Any = None
    cache_expires: int | float | timedelta | str | None = None
    query: dict[str, Any] = Field(default_factory=dict)

    @property
    def has_directive(self) -> bool:
        """False for None, False and empty directives ("", [], {})."""
        if self.cache is None or self.cache is False:
            return False
        if isinstance(self.cache, (str, list, tuple, dict)):
            return len(self.cache) > 0
        return True


class WriteContext(BaseModel):
    """
    Outcome of one write, handed to the invalidation engine.

    identity carries the identifying fields known for the written record,
    e.g. {"id": 5} or {"id": 5, "slug": "hello"}.
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    entity: Any
    identity: dict[str, Any] = Field(default_factory=dict)
    kind: WriteKind = WriteKind.UPDATE
    success: bool = True
    record: Any = None


# ============================================================================
# Outcomes
# ============================================================================


@dataclass
class ReadDecision:
    """
    What before_read decided.

    When short_circuit is True the caller must not invoke its executor and
    must return results instead.
    """

    state: ReadState
    short_circuit: bool = False
    results: Any = None
    key: str | None = None

    @classmethod
    def proceed(cls, state: ReadState = ReadState.IDLE, key: str | None = None) -> "ReadDecision":
        return cls(state=state, key=key)

    @classmethod
    def hit(cls, state: ReadState, results: Any, key: str) -> "ReadDecision":
        return cls(state=state, short_circuit=True, results=results, key=key)


@dataclass
class InvalidationReport:
    """
    Keys one invalidation run deleted and the ones it could not.

    complete is False whenever a backend delete failed: the write succeeded
    but a stale entry may remain until its TTL runs out.
    """

    entity: str
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)
    skipped_hooks: list[str] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failed
