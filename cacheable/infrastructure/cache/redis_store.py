"""
Redis Cache Store

CacheStore backed by Redis (redis.asyncio) with connection pooling.

Architecture:
    RedisCacheStore (CacheStore contract)
        ├── connection pool (created from settings, or an injected client)
        ├── retry policy (tenacity: exponential backoff with jitter on
        │   connection/timeout errors only)
        └── orjson serialisation of values

Physical keys are "<CACHE_KEY_NAMESPACE>:<backend id>:<key>", so clear() can
drop one backend's entries with SCAN MATCH without touching anything else in
the database.
"""

from typing import Any

import orjson
import redis.asyncio as redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import ConnectionError, RedisError, TimeoutError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential_jitter

from cacheable.core.config.constants import DEFAULT_BACKEND, REDIS_SCAN_BATCH_SIZE, Stage
from cacheable.core.config.settings import Settings, get_settings
from cacheable.core.exceptions import CacheBackendError, CacheConnectionError
from cacheable.core.logging.logger import get_logger, log_stage

logger = get_logger(__name__)


class RedisCacheStore:
    """
    Redis-backed CacheStore for one backend namespace.

    Usage:
        store = RedisCacheStore("default")
        await store.connect()

        await store.set("User::getById-7", {"id": 7}, ttl=300)
        value = await store.get("User::getById-7")

        await store.disconnect()

    Args:
        namespace: Backend id this store serves
        settings: Application settings (global settings if omitted)
        client: Pre-built redis.asyncio client (skips pool creation)
    """

    def __init__(
        self,
        namespace: str = DEFAULT_BACKEND,
        settings: Settings | None = None,
        client: redis.Redis | None = None,
    ):
        self.namespace = namespace
        self._settings = settings or get_settings()
        self._client = client
        self._pool: ConnectionPool | None = None
        self._key_prefix = f"{self._settings.CACHE_KEY_NAMESPACE}:{namespace}:"

    # -------------------------------------------------------------------------
    # Connection lifecycle
    # -------------------------------------------------------------------------

    async def connect(self) -> None:
        """
        Create the connection pool and verify it with PING.

        Raises:
            CacheConnectionError: If Redis is unreachable
        """
        if self._client is not None:
            return

        redis_settings = self._settings.redis
        try:
            self._pool = ConnectionPool(
                host=redis_settings.REDIS_HOST,
                port=redis_settings.REDIS_PORT,
                db=redis_settings.REDIS_DB,
                password=redis_settings.REDIS_PASSWORD,
                max_connections=redis_settings.REDIS_MAX_CONNECTIONS,
                socket_connect_timeout=redis_settings.REDIS_SOCKET_CONNECT_TIMEOUT,
                socket_timeout=redis_settings.REDIS_SOCKET_TIMEOUT,
                health_check_interval=redis_settings.REDIS_HEALTH_CHECK_INTERVAL,
                decode_responses=True,
            )
            self._client = redis.Redis(connection_pool=self._pool)
            await self._client.ping()
        except (ConnectionError, TimeoutError) as e:
            self._client = None
            logger.error("Failed to connect to Redis", stage=Stage.BACKEND.value, error=str(e))
            raise CacheConnectionError(
                message=f"Failed to connect to Redis: {e}",
                details={"host": redis_settings.REDIS_HOST, "port": redis_settings.REDIS_PORT},
            )

        logger.info(
            "Redis cache store connected",
            stage=Stage.BACKEND.value,
            namespace=self.namespace,
            host=redis_settings.REDIS_HOST,
            port=redis_settings.REDIS_PORT,
        )

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
        if self._pool is not None:
            await self._pool.disconnect()
        self._client = None
        self._pool = None

    # -------------------------------------------------------------------------
    # CacheStore contract
    # -------------------------------------------------------------------------

    async def get(self, key: str) -> Any | None:
        raw = await self._execute("get", self._physical(key))
        if raw is None:
            return None
        try:
            return orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            raise CacheBackendError.from_exception(e, message="Corrupt cache entry", key=key)

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        try:
            payload = orjson.dumps(value, default=str, option=orjson.OPT_NON_STR_KEYS)
        except TypeError as e:
            raise CacheBackendError.from_exception(e, message="Value is not serialisable", key=key)
        result = await self._execute("set", self._physical(key), payload, ex=ttl or None)
        return result is not None

    async def delete(self, key: str) -> bool:
        return bool(await self._execute("delete", self._physical(key)))

    async def clear(self, namespace: str | None = None) -> int:
        prefix = self._key_prefix if namespace is None else (
            f"{self._settings.CACHE_KEY_NAMESPACE}:{namespace}:"
        )
        client = self._require_client()
        removed = 0
        batch: list[str] = []

        try:
            async for physical_key in client.scan_iter(match=f"{prefix}*", count=REDIS_SCAN_BATCH_SIZE):
                batch.append(physical_key)
                if len(batch) >= REDIS_SCAN_BATCH_SIZE:
                    removed += await self._execute("delete", *batch)
                    batch = []
            if batch:
                removed += await self._execute("delete", *batch)
        except RedisError as e:
            raise CacheBackendError.from_exception(e, message="Redis clear failed", namespace=namespace)

        log_stage(logger, Stage.CLEAR, "Redis namespace cleared", namespace=namespace or self.namespace, removed=removed)
        return removed

    async def health_check(self) -> dict[str, Any]:
        """Ping Redis and report status."""
        if self._client is None:
            return {"status": "not_connected", "namespace": self.namespace}
        try:
            await self._client.ping()
            return {"status": "healthy", "namespace": self.namespace}
        except RedisError as e:
            return {"status": "unhealthy", "namespace": self.namespace, "error": str(e)}

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _physical(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def _require_client(self) -> redis.Redis:
        if self._client is None:
            raise CacheConnectionError(
                "Redis cache store is not connected",
                details={"namespace": self.namespace},
            ).with_suggestion("await store.connect() before use")
        return self._client

    async def _execute(self, command: str, *args, **kwargs) -> Any:
        """
        Run one Redis command with retry on transient failures.

        Connection and timeout errors are retried with exponential backoff
        and jitter; any other RedisError fails immediately.

        Raises:
            CacheConnectionError: Retries exhausted on a connection problem
            CacheBackendError: Any other Redis failure
        """
        client = self._require_client()

        @retry(
            stop=stop_after_attempt(self._settings.CACHE_BACKEND_RETRY_ATTEMPTS),
            wait=wait_exponential_jitter(initial=0.05, max=self._settings.CACHE_BACKEND_RETRY_MAX_DELAY),
            retry=retry_if_exception_type((ConnectionError, TimeoutError)),
            reraise=True,
            before_sleep=lambda retry_state: logger.info(
                "Redis retry",
                stage=Stage.BACKEND.value,
                command=command,
                attempt=retry_state.attempt_number,
            ),
        )
        async def _run():
            return await getattr(client, command)(*args, **kwargs)

        try:
            return await _run()
        except (ConnectionError, TimeoutError) as e:
            logger.error("Redis command failed", stage=Stage.BACKEND.value, command=command, error=str(e))
            raise CacheConnectionError.from_exception(e, command=command, namespace=self.namespace)
        except RedisError as e:
            logger.error("Redis command failed", stage=Stage.BACKEND.value, command=command, error=str(e))
            raise CacheBackendError.from_exception(e, command=command, namespace=self.namespace)
