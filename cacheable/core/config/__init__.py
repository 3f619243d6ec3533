"""
Configuration Module

Components:
-----------
- **settings.py**: Pydantic-based configuration with environment variable loading
- **constants.py**: Stage identifiers, key-derivation tokens, TTL fallback

Usage:
------
```python
from cacheable.core.config import get_settings
from cacheable.core.config.constants import Stage

settings = get_settings()
if settings.CACHE_DISABLED:
    ...
```

Environment Variables:
---------------------
```bash
CACHE_DISABLED=false
CACHE_SETTINGS_PRESET=lean
REDIS_HOST=localhost
LOG_FORMAT=console
```
"""

from cacheable.core.config.settings import (
    CacheSettings,
    LoggingSettings,
    RedisSettings,
    Settings,
    get_settings,
    reload_settings,
)

__all__ = [
    "Settings",
    "RedisSettings",
    "CacheSettings",
    "LoggingSettings",
    "get_settings",
    "reload_settings",
]
