"""
Cache Key Derivation

A key is a pure function of (entity type, logical operation, ordered
arguments, prefix). Reads and invalidation both go through build_key, so the
key a write deletes is always the key a read populated.

Examples (entity "User", empty prefix):
    "getList"                    -> "User::getList"
    ["getById", 7]               -> "User::getById-7"
    ["{entity}::getBySlug", "x"] -> "User::getBySlug-x"
    ["User.search", {"q": "a"}]  -> "User::search-<md5 of sorted JSON>"
    ["getById", "", None]        -> "User::getById"
"""

import hashlib
from collections.abc import Mapping, Set
from typing import TYPE_CHECKING, Any

import orjson

from cacheable.caching.models import EntityType, entity_name
from cacheable.core.config.constants import (
    ENTITY_PLACEHOLDER,
    KEY_ARGUMENT_SEPARATOR,
    KEY_NAMESPACE_SEPARATOR,
    QUALNAME_SEPARATOR,
)
from cacheable.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from cacheable.caching.registry import EntitySettingsRegistry


def _normalise(value: Any) -> Any:
    """Give unordered containers a stable order before serialisation."""
    if isinstance(value, Mapping):
        return {str(k): _normalise(v) for k, v in value.items()}
    if isinstance(value, Set):
        return sorted((_normalise(v) for v in value), key=repr)
    if isinstance(value, (list, tuple)):
        return [_normalise(v) for v in value]
    return value


def content_hash(value: Any) -> str:
    """
    Stable md5 digest of a structured value.

    orjson with sorted keys gives the same bytes for equal content across
    processes; values it cannot encode fall back to str().
    """
    payload = orjson.dumps(_normalise(value), option=orjson.OPT_SORT_KEYS, default=str)
    return hashlib.md5(payload).hexdigest()


def is_structured(value: Any) -> bool:
    return isinstance(value, (Mapping, Set, list, tuple))


class CacheKeyBuilder:
    """
    Builds deterministic cache keys.

    Uses MD5 for structured arguments: collisions cost at worst a wrong
    cache hit between two argument sets with identical digests, which is
    accepted for cache keys.
    """

    def __init__(self, registry: "EntitySettingsRegistry"):
        self._registry = registry

    def build_key(self, entity: EntityType, key_input: Any, apply_prefix: bool = True) -> str:
        """
        Build the key for one cacheable result set.

        Args:
            entity: Entity type (name or class)
            key_input: Flat value, or ordered [operation, *arguments]
            apply_prefix: Prepend the entity's configured key_prefix

        Returns:
            Cache key string
        """
        name = entity_name(entity)

        if isinstance(key_input, (list, tuple)):
            head, arguments = (key_input[0], key_input[1:]) if key_input else (None, ())
        else:
            head, arguments = key_input, ()

        if head in (None, "") or head is False:
            raise ConfigurationError(
                "Cache key input must start with an operation name",
                details={"entity": name, "key_input": repr(key_input)},
            )

        key = self.qualify(name, head)

        for value in arguments:
            if is_structured(value):
                if value:
                    key += KEY_ARGUMENT_SEPARATOR + content_hash(value)
            elif value:
                key += KEY_ARGUMENT_SEPARATOR + str(value)

        if apply_prefix:
            key = self._registry.get(entity).key_prefix + key

        return key

    def qualify(self, name: str, head: Any) -> str:
        """
        Qualify an operation name with its entity.

        "getById", "User.getById", "{entity}::getById" and "User::getById" all
        become "User::getById" for entity "User". A head qualified with another
        registered entity ("Post::getList") is kept so both can share the key;
        any other dotted head ("stats.daily") is still prefixed with the entity.
        """
        head = str(head).replace(QUALNAME_SEPARATOR, KEY_NAMESPACE_SEPARATOR)

        if ENTITY_PLACEHOLDER in head:
            return head.replace(ENTITY_PLACEHOLDER, name)

        qualifier = head.split(KEY_NAMESPACE_SEPARATOR, 1)[0] if KEY_NAMESPACE_SEPARATOR in head else None
        if qualifier and (qualifier == name or self._registry.is_registered(qualifier)):
            return head
        return f"{name}{KEY_NAMESPACE_SEPARATOR}{head}"
