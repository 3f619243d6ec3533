"""
Backend Registry

Maps the cache_backend id configured on an entity to the CacheStore that
serves it.
"""

from cacheable.core.config.constants import DEFAULT_BACKEND
from cacheable.core.exceptions import ConfigurationError
from cacheable.core.interfaces.cache import CacheStore


class BackendRegistry:
    """
    Backend id -> CacheStore.

    Usage:
        backends = BackendRegistry({"default": InMemoryCacheStore("default")})
        backends.register("sessions", RedisCacheStore("sessions"))
        store = backends.get("sessions")
    """

    def __init__(self, stores: dict[str, CacheStore] | None = None):
        self._stores: dict[str, CacheStore] = {}
        for name, store in (stores or {}).items():
            self.register(name, store)

    def register(self, name: str, store: CacheStore) -> None:
        if not isinstance(store, CacheStore):
            raise ConfigurationError(
                f"Backend {name!r} does not implement the CacheStore contract",
                details={"backend": name, "type": type(store).__name__},
            )
        self._stores[name] = store

    def get(self, name: str = DEFAULT_BACKEND) -> CacheStore:
        try:
            return self._stores[name]
        except KeyError:
            raise ConfigurationError(
                f"Unknown cache backend: {name!r}",
                details={"backend": name, "registered": sorted(self._stores)},
            )

    def names(self) -> list[str]:
        return list(self._stores)

    def __contains__(self, name: str) -> bool:
        return name in self._stores
