"""
Exception Module

Module Structure:
-----------------
- **base.py**: CacheableError base class + ConfigurationError
- **cache.py**: Backend and caching-helper exceptions

Usage:
------
```python
from cacheable.core.exceptions import CacheBackendError, ConfigurationError
```
"""

from cacheable.core.exceptions.base import CacheableError, ConfigurationError
from cacheable.core.exceptions.cache import (
    CacheBackendError,
    CacheConnectionError,
    CacheError,
    InvalidCallbackError,
)

__all__ = [
    # Base
    "CacheableError",
    "ConfigurationError",
    # Cache
    "CacheError",
    "CacheBackendError",
    "CacheConnectionError",
    "InvalidCallbackError",
]
