"""
Cache Backends

CacheStore implementations: in-memory (process local) and Redis (distributed).
"""

from .memory_store import InMemoryCacheStore
from .redis_store import RedisCacheStore

__all__ = [
    "InMemoryCacheStore",
    "RedisCacheStore",
]
