from cacheable.core.interfaces.cache import CacheStore
from cacheable.core.interfaces.hooks import CacheHooks

__all__ = ["CacheStore", "CacheHooks"]
