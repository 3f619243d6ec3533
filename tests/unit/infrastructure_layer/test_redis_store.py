"""
Unit Tests for RedisCacheStore

Uses a mocked redis.asyncio client: key namespacing, orjson round-trip,
retry on transient errors and namespace clearing.
"""

from unittest.mock import AsyncMock, MagicMock

import orjson
import pytest
from redis.exceptions import ConnectionError, ResponseError

from cacheable.core.exceptions import CacheBackendError, CacheConnectionError
from cacheable.core.interfaces.cache import CacheStore
from cacheable.infrastructure.cache.redis_store import RedisCacheStore
from tests.test_fixtures import CacheTestFactory


@pytest.fixture
def redis_settings():
    return CacheTestFactory.settings(CACHE_BACKEND_RETRY_ATTEMPTS=2, CACHE_BACKEND_RETRY_MAX_DELAY=0.01)


@pytest.fixture
def mock_redis_client():
    """Generic mock Redis client for testing."""
    client = AsyncMock()
    client.get = AsyncMock(return_value=None)
    client.set = AsyncMock(return_value=True)
    client.delete = AsyncMock(return_value=1)
    client.ping = AsyncMock(return_value=True)
    return client


@pytest.fixture
def redis_store(redis_settings, mock_redis_client):
    return RedisCacheStore("default", settings=redis_settings, client=mock_redis_client)


def scan_results(*keys):
    async def scan_iter(match=None, count=None):
        for key in keys:
            yield key

    return MagicMock(side_effect=scan_iter)


@pytest.mark.unit
class TestRedisCacheStore:
    """Test the CacheStore contract over Redis."""

    def test_implements_cache_store(self, redis_store):
        assert isinstance(redis_store, CacheStore)

    @pytest.mark.asyncio
    async def test_set_serialises_with_namespaced_key(self, redis_store, mock_redis_client):
        assert await redis_store.set("User::getById-7", {"id": 7}, 300) is True

        mock_redis_client.set.assert_awaited_once_with(
            "cacheable:default:User::getById-7", orjson.dumps({"id": 7}), ex=300
        )

    @pytest.mark.asyncio
    async def test_get_deserialises(self, redis_store, mock_redis_client):
        mock_redis_client.get.return_value = '{"id":7,"tags":["a"]}'

        assert await redis_store.get("User::getById-7") == {"id": 7, "tags": ["a"]}
        mock_redis_client.get.assert_awaited_once_with("cacheable:default:User::getById-7")

    @pytest.mark.asyncio
    async def test_get_missing(self, redis_store):
        assert await redis_store.get("User::getById-7") is None

    @pytest.mark.asyncio
    async def test_corrupt_entry_raises_backend_error(self, redis_store, mock_redis_client):
        mock_redis_client.get.return_value = "{not json"

        with pytest.raises(CacheBackendError):
            await redis_store.get("User::getById-7")

    @pytest.mark.asyncio
    async def test_delete(self, redis_store, mock_redis_client):
        assert await redis_store.delete("User::getList") is True

        mock_redis_client.delete.return_value = 0
        assert await redis_store.delete("User::getList") is False


@pytest.mark.unit
class TestRedisFailures:
    """Test error mapping and retry policy."""

    @pytest.mark.asyncio
    async def test_connection_error_is_retried_then_raised(self, redis_store, mock_redis_client):
        mock_redis_client.get.side_effect = ConnectionError("connection refused")

        with pytest.raises(CacheConnectionError) as exc_info:
            await redis_store.get("User::getList")

        assert mock_redis_client.get.await_count == 2
        assert exc_info.value.details["command"] == "get"

    @pytest.mark.asyncio
    async def test_transient_error_recovers(self, redis_store, mock_redis_client):
        mock_redis_client.get.side_effect = [ConnectionError("blip"), '"ok"']

        assert await redis_store.get("k") == "ok"

    @pytest.mark.asyncio
    async def test_command_error_not_retried(self, redis_store, mock_redis_client):
        mock_redis_client.delete.side_effect = ResponseError("WRONGTYPE")

        with pytest.raises(CacheBackendError) as exc_info:
            await redis_store.delete("k")

        assert not isinstance(exc_info.value, CacheConnectionError)
        assert mock_redis_client.delete.await_count == 1

    @pytest.mark.asyncio
    async def test_not_connected(self, redis_settings):
        store = RedisCacheStore("default", settings=redis_settings)

        with pytest.raises(CacheConnectionError):
            await store.get("k")


@pytest.mark.unit
class TestRedisClear:
    """Test namespace clearing with SCAN + DEL."""

    @pytest.mark.asyncio
    async def test_clear_scans_own_namespace(self, redis_store, mock_redis_client):
        mock_redis_client.scan_iter = scan_results("cacheable:default:a", "cacheable:default:b")
        mock_redis_client.delete.return_value = 2

        assert await redis_store.clear("default") == 2

        mock_redis_client.scan_iter.assert_called_once_with(match="cacheable:default:*", count=500)
        mock_redis_client.delete.assert_awaited_once_with("cacheable:default:a", "cacheable:default:b")

    @pytest.mark.asyncio
    async def test_clear_other_namespace(self, redis_store, mock_redis_client):
        mock_redis_client.scan_iter = scan_results()

        assert await redis_store.clear("sessions") == 0

        mock_redis_client.scan_iter.assert_called_once_with(match="cacheable:sessions:*", count=500)
        mock_redis_client.delete.assert_not_awaited()


@pytest.mark.unit
class TestRedisHealth:
    """Test health reporting."""

    @pytest.mark.asyncio
    async def test_healthy(self, redis_store):
        assert (await redis_store.health_check())["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_not_connected(self, redis_settings):
        store = RedisCacheStore("default", settings=redis_settings)
        assert (await store.health_check())["status"] == "not_connected"

    @pytest.mark.asyncio
    async def test_disconnect_closes_client(self, redis_store, mock_redis_client):
        await redis_store.disconnect()

        mock_redis_client.aclose.assert_awaited_once()
        assert (await redis_store.health_check())["status"] == "not_connected"
