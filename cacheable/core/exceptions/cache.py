"""
Cache-Related Exceptions

Errors raised by cache backends and by the caching helpers.
"""

from cacheable.core.exceptions.base import CacheableError


class CacheError(CacheableError):
    """Base exception for cache-related errors."""
    pass


class CacheBackendError(CacheError):
    """
    Raised when a get/set/delete/clear call on a CacheStore fails.

    Reads treat it as a miss; invalidation logs and counts it. It never fails
    the data operation it accompanies.
    """
    pass


class CacheConnectionError(CacheBackendError):
    """
    Raised when unable to connect to the cache backend (Redis).

    Common causes:
    - Redis server is down
    - Network connectivity issues
    - Incorrect host/port configuration
    """
    pass


class InvalidCallbackError(CacheError):
    """Raised when a caching helper is given a compute step that is not callable."""
    pass
