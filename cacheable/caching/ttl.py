"""
TTL Resolution

Decides how long an entry lives: explicit override, then the entity's
configured default, then the global five-minute fallback.

TTLs may be written as seconds (int/float/numeric string), a timedelta, or a
relative expression such as "+5 minutes", "1 hour", "30s". The resolver keeps
whatever value won (it is what provenance metadata records) and
resolve_seconds() normalises it for the backend.
"""

import re
from datetime import timedelta
from typing import TYPE_CHECKING, Any

from cacheable.core.config.constants import DEFAULT_EXPIRES
from cacheable.core.exceptions import ConfigurationError

if TYPE_CHECKING:
    from cacheable.caching.models import EntityType
    from cacheable.caching.registry import EntitySettingsRegistry

TTLValue = int | float | str | timedelta

_UNIT_SECONDS = {
    "s": 1, "sec": 1, "secs": 1, "second": 1, "seconds": 1,
    "m": 60, "min": 60, "mins": 60, "minute": 60, "minutes": 60,
    "h": 3600, "hour": 3600, "hours": 3600,
    "d": 86400, "day": 86400, "days": 86400,
    "w": 604800, "week": 604800, "weeks": 604800,
}

_DURATION_PATTERN = re.compile(r"^\+?\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]+)?$")


def parse_duration(value: Any) -> int:
    """
    Normalise a TTL expression to whole seconds.

    Args:
        value: int/float seconds, numeric string, timedelta or "<n> <unit>"

    Returns:
        Positive number of seconds

    Raises:
        ConfigurationError: If the value cannot be parsed or is not positive
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"Invalid TTL: {value!r}", details={"ttl": value})

    if isinstance(value, timedelta):
        seconds = value.total_seconds()
    elif isinstance(value, (int, float)):
        seconds = value
    elif isinstance(value, str):
        match = _DURATION_PATTERN.match(value.strip())
        if not match:
            raise ConfigurationError(f"Invalid TTL expression: {value!r}", details={"ttl": value})
        amount, unit = match.groups()
        multiplier = 1 if unit is None else _UNIT_SECONDS.get(unit.lower())
        if multiplier is None:
            raise ConfigurationError(f"Unknown TTL unit in {value!r}", details={"ttl": value})
        seconds = float(amount) * multiplier
    else:
        raise ConfigurationError(f"Invalid TTL: {value!r}", details={"ttl": repr(value)})

    seconds = int(seconds)
    if seconds <= 0:
        raise ConfigurationError(f"TTL must be positive: {value!r}", details={"ttl": str(value)})
    return seconds


class TTLResolver:
    """
    Resolves the effective TTL for an entity.

    Priority: explicit override > entity ttl_default > DEFAULT_EXPIRES.
    A falsy explicit value (None, 0, "") counts as "not given".
    """

    def __init__(self, registry: "EntitySettingsRegistry"):
        self._registry = registry

    def resolve(self, entity: "EntityType", explicit: TTLValue | None = None) -> TTLValue:
        if explicit:
            return explicit

        configured = self._registry.get(entity).ttl_default
        if configured:
            return configured

        return DEFAULT_EXPIRES

    def resolve_seconds(self, entity: "EntityType", explicit: TTLValue | None = None) -> int:
        return parse_duration(self.resolve(entity, explicit))
