"""
Unit Tests for CacheableBehavior

End-to-end behaviour through the public hook surface: read-then-write
freshness, the global kill switch, with_cache, direct cache helpers and the
unit-of-work lifecycle.
"""

import asyncio

import pytest

from cacheable.caching.local_cache import unit_of_work
from cacheable.caching.models import QuerySpec, WriteContext, WriteKind
from cacheable.core.exceptions import InvalidCallbackError
from cacheable.core.interfaces.hooks import CacheHooks
from tests.test_fixtures import AsyncCountingExecutor, CacheTestFactory, CountingExecutor

USER_7 = {"id": 7, "name": "Ada"}


@pytest.mark.unit
class TestReadWriteCycle:
    """A write makes the next read go back to the executor."""

    def test_behavior_implements_cache_hooks(self, behavior):
        assert isinstance(behavior, CacheHooks)

    @pytest.mark.asyncio
    async def test_write_invalidates_what_reads_populated(self, behavior, store):
        by_id = CountingExecutor(USER_7)
        listing = CountingExecutor([USER_7])
        count = CountingExecutor(1)

        await behavior.read("User", QuerySpec(cache=["getById", 7]), by_id)
        await behavior.read("User", QuerySpec(cache="getList"), listing)
        await behavior.read("User", QuerySpec(cache="getCount"), count)
        assert {"User::getById-7", "User::getList", "User::getCount"} <= set(store.get_keys())

        report = await behavior.after_write("User", WriteContext(entity="User", identity={"id": 7}))

        assert {"User::getById-7", "User::getList", "User::getCount"} <= set(report.deleted)
        assert store.get_keys() == []

        await behavior.read("User", QuerySpec(cache=["getById", 7]), by_id)
        assert by_id.calls == 2

    @pytest.mark.asyncio
    async def test_after_write_routes_delete_kind(self, behavior, registry):
        registry.reconfigure("User", event_toggles={"on_update": False})

        report = await behavior.after_write(
            "User", WriteContext(entity="User", identity={"id": 7}, kind=WriteKind.DELETE)
        )

        assert "User::getById-7" in report.deleted

    @pytest.mark.asyncio
    async def test_after_delete(self, behavior):
        report = await behavior.after_delete("User", WriteContext(entity="User", identity={"id": 7}))
        assert "User::getById-7" in report.deleted

    @pytest.mark.asyncio
    async def test_hooks_used_directly(self, behavior):
        decision = await behavior.before_read("User", QuerySpec(cache="getList"))
        assert decision.short_circuit is False

        await behavior.after_read("User", [USER_7])

        decision = await behavior.before_read("User", QuerySpec(cache="getList"))
        assert decision.short_circuit is True
        assert decision.results == [USER_7]


@pytest.mark.unit
class TestWriteHelper:
    """write() runs the executor and invalidates only on success."""

    @pytest.mark.asyncio
    async def test_write_uses_returned_record_identity(self, behavior, store):
        await store.set("User::getById-7", USER_7, 300)

        result = await behavior.write("User", lambda: {"id": 7, "name": "Grace"})

        assert result == {"id": 7, "name": "Grace"}
        assert await store.get("User::getById-7") is None

    @pytest.mark.asyncio
    async def test_write_with_scalar_identity(self, behavior, store):
        await store.set("User::getById-9", {"id": 9}, 300)

        async def save():
            return True

        await behavior.write("User", save, identity=9)

        assert await store.get("User::getById-9") is None

    @pytest.mark.asyncio
    async def test_failed_write_leaves_cache_alone(self, behavior, store):
        await store.set("User::getList", [USER_7], 300)

        def save():
            raise RuntimeError("constraint violation")

        with pytest.raises(RuntimeError):
            await behavior.write("User", save, identity=7)

        assert await store.get("User::getList") == [USER_7]

    @pytest.mark.asyncio
    async def test_create_refreshes_custom_listing_under_lean_preset(self, behavior, registry):
        registry.reconfigure("User", reset_hooks={"getFeatured": True})
        featured = CountingExecutor([{"id": 1}])
        query = QuerySpec(cache="getFeatured")

        assert await behavior.read("User", query, featured) == [{"id": 1}]
        await behavior.write("User", lambda: {"id": 9}, kind=WriteKind.CREATE)
        featured.result = [{"id": 1}, {"id": 9}]

        assert await behavior.read("User", query, featured) == [{"id": 1}, {"id": 9}]
        assert featured.calls == 2

    @pytest.mark.asyncio
    async def test_create_with_eager_preset_refreshes_lookup(self, behavior, store):
        await behavior.write("Post", lambda: {"id": 5, "title": "New"}, kind=WriteKind.CREATE)
        assert await store.get("Post::getById-5") == {"id": 5, "title": "New"}


@pytest.mark.unit
class TestGlobalDisable:
    """The kill switch keeps everything away from the backend."""

    @pytest.mark.asyncio
    async def test_no_backend_calls_when_disabled(self, disabled_behavior, store):
        executor = CountingExecutor(USER_7)
        query = QuerySpec(cache=["getById", 7])

        await disabled_behavior.read("User", query, executor)
        await disabled_behavior.read("User", query, executor)
        await disabled_behavior.after_write("User", WriteContext(entity="User", identity={"id": 7}))
        value = await disabled_behavior.with_cache("User", "getCount", lambda: 3)

        assert executor.calls == 2
        assert value == 3
        assert await disabled_behavior.read_cache("User", "getCount") is None
        assert await disabled_behavior.write_cache("User", "getCount", 3) is False
        assert await disabled_behavior.delete_cache("User", "getCount") is False
        assert (await disabled_behavior.clear_all("User")).deleted == []
        assert await disabled_behavior.teardown() == []
        assert store.calls == []


@pytest.mark.unit
class TestWithCache:
    """Read-through for arbitrary computations."""

    @pytest.mark.asyncio
    async def test_non_callable_rejected_before_backend_access(self, behavior, store):
        with pytest.raises(InvalidCallbackError):
            await behavior.with_cache("User", "getCount", 42)

        assert store.calls == []

    @pytest.mark.asyncio
    async def test_non_callable_rejected_even_when_disabled(self, disabled_behavior):
        with pytest.raises(InvalidCallbackError):
            await disabled_behavior.with_cache("User", "getCount", "not a function")

    @pytest.mark.asyncio
    async def test_compute_runs_once(self, behavior, store):
        compute = CountingExecutor(12)

        first = await behavior.with_cache("User", "getCount", compute)
        second = await behavior.with_cache("User", "getCount", compute)

        assert first == second == 12
        assert compute.calls == 1
        assert await store.get("User::getCount") == 12

    @pytest.mark.asyncio
    async def test_async_compute_and_explicit_ttl(self, behavior, store):
        compute = AsyncCountingExecutor({"total": 3})

        await behavior.with_cache("User", ["stats", {"active": True}], compute, ttl="10 minutes")

        [(_, key, ttl)] = store.operations("set")
        assert key.startswith("User::stats-")
        assert ttl == 600

    @pytest.mark.asyncio
    async def test_backend_hit_skips_compute(self, behavior, store):
        await store.set("User::getCount", 99, 300)
        compute = CountingExecutor(1)

        assert await behavior.with_cache("User", "getCount", compute) == 99
        assert compute.calls == 0

    @pytest.mark.asyncio
    async def test_empty_result_not_cached(self, behavior, store):
        await behavior.with_cache("User", "getList", lambda: [])
        assert store.operations("set") == []


@pytest.mark.unit
class TestDirectCacheAccess:
    """read_cache / write_cache / delete_cache."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, behavior, store):
        assert await behavior.write_cache("User", ["getById", 7], USER_7) is True
        assert await behavior.read_cache("User", ["getById", 7]) == USER_7
        assert store.operations("set") == [("set", "User::getById-7", 300)]

    @pytest.mark.asyncio
    async def test_delete_removes_both_tiers(self, behavior):
        await behavior.write_cache("User", ["getById", 7], USER_7)

        assert await behavior.delete_cache("User", ["getById", 7]) is True
        assert "User::getById-7" not in behavior.local_cache
        assert await behavior.read_cache("User", ["getById", 7]) is None

    @pytest.mark.asyncio
    async def test_failures_are_soft(self, registry, failing_store, cache_settings, observer):
        behavior = CacheTestFactory.behavior(registry, failing_store, settings=cache_settings, observer=observer)

        assert await behavior.write_cache("User", "getCount", 1) is False
        assert await behavior.read_cache("User", "getCount") is None
        assert await behavior.delete_cache("User", "getCount") is False

    def test_cache_key_and_ttl_helpers(self, behavior):
        assert behavior.cache_key("User", ["getById", 7]) == "User::getById-7"
        assert behavior.resolve_ttl("User") == "+5 minutes"


@pytest.mark.unit
class TestLifecycle:
    """close / teardown / unit_of_work."""

    @pytest.mark.asyncio
    async def test_context_manager_drops_local_cache(self, behavior):
        async with behavior as cache:
            await cache.read("User", QuerySpec(cache="getList"), CountingExecutor([USER_7]))
            assert len(cache.local_cache) == 1

        assert len(behavior.local_cache) == 0

    @pytest.mark.asyncio
    async def test_local_cache_survives_only_one_unit(self, behavior, store):
        executor = CountingExecutor([USER_7])

        await behavior.read("User", QuerySpec(cache="getList"), executor)
        await behavior.close()
        await behavior.read("User", QuerySpec(cache="getList"), executor)

        assert executor.calls == 1
        assert len(store.operations("get")) == 2

    @pytest.mark.asyncio
    async def test_teardown_clears_entities_seen(self, behavior, store):
        await behavior.read("User", QuerySpec(cache="getList"), CountingExecutor([USER_7]))
        await behavior.read("Post", QuerySpec(cache="getList"), CountingExecutor([{"id": 1}]))

        reports = await behavior.teardown()

        assert sorted(report.entity for report in reports) == ["Post", "User"]
        assert store.get_size() == 0
        assert len(behavior.local_cache) == 0
        assert behavior.stats()["entities_seen"] == []

    @pytest.mark.asyncio
    async def test_unit_of_work_scopes_local_cache(self, behavior):
        async with unit_of_work("req-1") as scoped:
            await behavior.read("User", QuerySpec(cache="getList"), CountingExecutor([USER_7]))
            assert behavior.local_cache is scoped
            assert "User::getList" in scoped

        assert len(scoped) == 0
        assert "User::getList" not in behavior.local_cache

    @pytest.mark.asyncio
    async def test_concurrent_units_do_not_share_local_cache(self, behavior):
        async def unit(name, user):
            async with unit_of_work(name) as scoped:
                await behavior.read("User", QuerySpec(cache=["getById", user["id"]]), CountingExecutor(user))
                await asyncio.sleep(0)
                return scoped, scoped.keys_for("User")

        (first, first_keys), (second, second_keys) = await asyncio.gather(
            unit("req-a", {"id": 1}), unit("req-b", {"id": 2})
        )

        assert first is not second
        assert first_keys == ["User::getById-1"]
        assert second_keys == ["User::getById-2"]
        assert len(behavior.local_cache) == 0

    @pytest.mark.asyncio
    async def test_stats(self, behavior):
        executor = CountingExecutor([USER_7])
        await behavior.read("User", QuerySpec(cache="getList"), executor)
        await behavior.read("User", QuerySpec(cache="getList"), executor)

        stats = behavior.stats()

        assert stats["enabled"] is True
        assert stats["misses"] == 1
        assert stats["local_hits"] == 1
        assert stats["sets"] == 1
        assert stats["local_entries"] == 1
        assert stats["entities_seen"] == ["User"]
