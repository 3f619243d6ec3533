"""
Pytest Configuration and Shared Test Fixtures

This module provides pytest configuration and reusable fixtures for all tests.
All fixtures defined here are automatically available to all test files.
"""

import os
import sys
from unittest.mock import MagicMock

import pytest

# Add project root to sys.path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from cacheable.caching.backends import BackendRegistry  # noqa: E402
from cacheable.caching.local_cache import LocalRequestCache  # noqa: E402
from cacheable.caching.observer import CacheObserver  # noqa: E402
from cacheable.infrastructure.monitoring.metrics_collector import MetricsCollector  # noqa: E402
from tests.test_fixtures.cache_factory import CacheTestFactory, RecordingCacheStore  # noqa: E402


# ============================================================================
# Configuration Fixtures
# ============================================================================


@pytest.fixture
def cache_settings():
    """Caching enabled, lean preset, no .env influence."""
    return CacheTestFactory.settings(CACHE_DISABLED=False, CACHE_SETTINGS_PRESET="lean")


@pytest.fixture
def disabled_settings():
    """Caching globally disabled."""
    return CacheTestFactory.settings(CACHE_DISABLED=True)


@pytest.fixture
def registry(cache_settings):
    """
    Registry with User (lean defaults) and Post (eager preset) registered.
    """
    registry = CacheTestFactory.registry(cache_settings, User={})
    registry.register("Post", preset="eager")
    return registry


# ============================================================================
# Store / Observer Fixtures
# ============================================================================


@pytest.fixture
def store():
    """Recording in-memory store for the "default" backend."""
    return RecordingCacheStore("default")


@pytest.fixture
def failing_store():
    """Store whose get/set/delete/clear all raise CacheBackendError."""
    return RecordingCacheStore("default", fail_on=("get", "set", "delete", "clear"))


@pytest.fixture
def backends(store):
    return BackendRegistry({"default": store})


@pytest.fixture
def local_cache():
    return LocalRequestCache()


@pytest.fixture
def mock_metrics_collector():
    """Mock metrics collector so tests can assert on recorded metrics."""
    return MagicMock(spec=MetricsCollector)


@pytest.fixture
def observer(mock_metrics_collector):
    return CacheObserver(metrics=mock_metrics_collector)


# ============================================================================
# Behavior Fixtures
# ============================================================================


@pytest.fixture
def behavior(registry, store, cache_settings, observer):
    """CacheableBehavior over the recording store with caching enabled."""
    return CacheTestFactory.behavior(registry, store, settings=cache_settings, observer=observer)


@pytest.fixture
def disabled_behavior(disabled_settings, store, observer):
    """CacheableBehavior with the global kill switch on."""
    registry = CacheTestFactory.registry(disabled_settings, User={})
    return CacheTestFactory.behavior(registry, store, settings=disabled_settings, observer=observer)
