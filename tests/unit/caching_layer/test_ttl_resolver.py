"""
Unit Tests for TTL Resolution

Tests duration parsing and the explicit > entity default > fallback order.
"""

from datetime import timedelta

import pytest

from cacheable.caching.ttl import TTLResolver, parse_duration
from cacheable.core.config.constants import DEFAULT_EXPIRES
from cacheable.core.exceptions import ConfigurationError


@pytest.mark.unit
class TestParseDuration:
    """Test duration expressions."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            (300, 300),
            (1.9, 1),
            ("90", 90),
            ("+5 minutes", 300),
            ("1 hour", 3600),
            ("30s", 30),
            ("2d", 172800),
            ("+1 week", 604800),
            (timedelta(minutes=2), 120),
        ],
    )
    def test_valid_durations(self, value, expected):
        assert parse_duration(value) == expected

    @pytest.mark.parametrize("value", ["soon", "5 fortnights", "", 0, -5, "0 seconds", True, None, [1]])
    def test_invalid_durations(self, value):
        with pytest.raises(ConfigurationError):
            parse_duration(value)

    def test_fallback_matches_default_seconds(self):
        assert parse_duration(DEFAULT_EXPIRES) == 300


@pytest.mark.unit
class TestTTLResolver:
    """Test resolution order."""

    @pytest.fixture
    def resolver(self, registry):
        registry.register("Session", ttl_default="+1 hour")
        return TTLResolver(registry)

    def test_explicit_override_wins(self, resolver):
        assert resolver.resolve("Session", 60) == 60

    def test_entity_default_used_without_override(self, resolver):
        assert resolver.resolve("Session") == "+1 hour"

    def test_fallback_when_nothing_configured(self, resolver):
        assert resolver.resolve("User") == DEFAULT_EXPIRES

    @pytest.mark.parametrize("explicit", [None, 0, ""])
    def test_falsy_override_is_ignored(self, resolver, explicit):
        assert resolver.resolve("Session", explicit) == "+1 hour"

    def test_resolve_seconds(self, resolver):
        assert resolver.resolve_seconds("Session") == 3600
        assert resolver.resolve_seconds("User") == 300
        assert resolver.resolve_seconds("User", timedelta(seconds=45)) == 45

    def test_unregistered_entity(self, resolver):
        with pytest.raises(ConfigurationError):
            resolver.resolve("Unknown")
