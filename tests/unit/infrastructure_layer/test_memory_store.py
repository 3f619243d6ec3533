"""
Unit Tests for InMemoryCacheStore

Tests the CacheStore contract, TTL expiry, LRU bound and namespace clearing.
"""

import pytest

from cacheable.core.interfaces.cache import CacheStore
from cacheable.infrastructure.cache.memory_store import InMemoryCacheStore


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def memory_store(clock):
    return InMemoryCacheStore("default", clock=clock)


@pytest.mark.unit
class TestInMemoryCacheStore:
    """Test the in-memory backend."""

    def test_implements_cache_store(self, memory_store):
        assert isinstance(memory_store, CacheStore)

    @pytest.mark.asyncio
    async def test_set_then_get(self, memory_store):
        assert await memory_store.set("User::getById-7", {"id": 7}, 300) is True
        assert await memory_store.get("User::getById-7") == {"id": 7}

    @pytest.mark.asyncio
    async def test_missing_key(self, memory_store):
        assert await memory_store.get("nope") is None

    @pytest.mark.asyncio
    async def test_entry_expires(self, memory_store, clock):
        await memory_store.set("k", "v", 60)

        clock.now += 59
        assert await memory_store.get("k") == "v"

        clock.now += 1
        assert await memory_store.get("k") is None
        assert memory_store.get_size() == 0

    @pytest.mark.asyncio
    async def test_no_ttl_never_expires(self, memory_store, clock):
        await memory_store.set("k", "v")
        clock.now += 10**9
        assert await memory_store.get("k") == "v"

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, memory_store):
        await memory_store.set("k", "v", 60)

        assert await memory_store.delete("k") is True
        assert await memory_store.delete("k") is False

    @pytest.mark.asyncio
    async def test_lru_bound(self, clock):
        bounded = InMemoryCacheStore(max_size=2, clock=clock)
        await bounded.set("a", 1, 60)
        await bounded.set("b", 2, 60)
        await bounded.get("a")
        await bounded.set("c", 3, 60)

        assert bounded.get_keys() == ["a", "c"]

    @pytest.mark.asyncio
    async def test_clear_own_namespace(self, memory_store):
        await memory_store.set("a", 1, 60)
        await memory_store.set("b", 2, 60)

        assert await memory_store.clear("default") == 2
        assert memory_store.get_size() == 0

    @pytest.mark.asyncio
    async def test_clear_other_namespace_is_noop(self, memory_store):
        await memory_store.set("a", 1, 60)

        assert await memory_store.clear("sessions") == 0
        assert memory_store.get_size() == 1
