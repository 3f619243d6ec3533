"""
Core Module

Foundational components: configuration, logging, exceptions and interfaces.
"""

from .exceptions import (
    CacheableError,
    CacheBackendError,
    CacheConnectionError,
    CacheError,
    ConfigurationError,
    InvalidCallbackError,
)
from .logging import (
    clear_unit_id,
    get_logger,
    get_unit_id,
    log_stage,
    reset_unit_id,
    set_unit_id,
    setup_logging,
)

__all__ = [
    "CacheableError",
    "CacheBackendError",
    "CacheConnectionError",
    "CacheError",
    "ConfigurationError",
    "InvalidCallbackError",
    "clear_unit_id",
    "get_logger",
    "get_unit_id",
    "log_stage",
    "reset_unit_id",
    "set_unit_id",
    "setup_logging",
]
