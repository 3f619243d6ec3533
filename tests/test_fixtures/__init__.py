"""
Test Fixtures Package

Shared test utilities and helpers for consistent testing across all modules.
"""

from .cache_factory import (
    AsyncCountingExecutor,
    CacheTestFactory,
    CountingExecutor,
    RecordingCacheStore,
)

__all__ = ["CacheTestFactory", "RecordingCacheStore", "CountingExecutor", "AsyncCountingExecutor"]
