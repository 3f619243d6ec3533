"""
Cache Observer

All side effects of cache decisions in one place: structured log lines,
Prometheus counters and the in-process stats returned by stats().

Logging Strategy:
- Local hit: C.1 (debug)
- Backend hit / miss: C.2 (debug)
- Populate: C.3 (debug)
- Invalidation: C.4 (info; error for failures)
- Clear: C.5 (info)
- Backend failure on the read path: warning, the read falls through
"""

from typing import Any

from cacheable.core.config.constants import CacheTier, Stage
from cacheable.core.exceptions import CacheError
from cacheable.core.logging.logger import get_logger, log_stage
from cacheable.infrastructure.monitoring.metrics_collector import (
    MetricsCollector,
    get_metrics_collector,
)

logger = get_logger(__name__)


class CacheObserver:
    """Tracks cache outcomes for metrics and logging."""

    def __init__(self, metrics: MetricsCollector | None = None, logger_instance=None):
        self._metrics = metrics or get_metrics_collector()
        self._logger = logger_instance or logger

        self._hits_local = 0
        self._hits_backend = 0
        self._misses = 0
        self._sets = 0
        self._invalidated = 0
        self._invalidation_failures = 0
        self._backend_errors = 0

    # -------------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------------

    def record_hit(self, tier: CacheTier, entity: str, key: str) -> None:
        if tier == CacheTier.LOCAL:
            self._hits_local += 1
            log_stage(self._logger, Stage.LOCAL_LOOKUP, "Local cache hit", level="debug", entity=entity, cache_key=key)
        else:
            self._hits_backend += 1
            log_stage(self._logger, Stage.BACKEND_LOOKUP, "Backend cache hit", level="debug", entity=entity, cache_key=key)
        self._metrics.record_cache_hit(tier.value, entity)

    def record_miss(self, entity: str, key: str) -> None:
        self._misses += 1
        log_stage(self._logger, Stage.BACKEND_LOOKUP, "Cache miss", level="debug", entity=entity, cache_key=key)
        self._metrics.record_cache_miss(entity)

    def record_set(self, entity: str, key: str, ttl: int) -> None:
        self._sets += 1
        log_stage(self._logger, Stage.POPULATE, "Cache populated", level="debug", entity=entity, cache_key=key, ttl=ttl)
        self._metrics.record_cache_set(entity)

    def record_backend_error(self, operation: str, error: CacheError, **context: Any) -> None:
        self._backend_errors += 1
        log_stage(
            self._logger,
            Stage.BACKEND,
            "Cache backend failure, continuing without cache",
            level="warning",
            operation=operation,
            error=error.message,
            **context,
        )
        self._metrics.record_backend_error(operation)

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    def record_invalidation(self, entity: str, kind: str, deleted: list[str], failed: list[str]) -> None:
        self._invalidated += len(deleted)
        self._invalidation_failures += len(failed)
        self._metrics.record_invalidation(entity, kind, len(deleted))

        if failed:
            self._metrics.record_invalidation_failure(entity, kind, len(failed))
            log_stage(
                self._logger,
                Stage.INVALIDATION,
                "Write succeeded but cache entries were not invalidated",
                level="error",
                entity=entity,
                kind=kind,
                failed_keys=failed,
                deleted_keys=deleted,
            )
        else:
            log_stage(self._logger, Stage.INVALIDATION, "Cache invalidated", entity=entity, kind=kind, deleted_keys=deleted)

    def record_clear(self, entity: str, namespace: str, local_keys: int) -> None:
        log_stage(self._logger, Stage.CLEAR, "Entity cache cleared", entity=entity, namespace=namespace, local_keys=local_keys)

    # -------------------------------------------------------------------------
    # Stats
    # -------------------------------------------------------------------------

    def get_stats(self) -> dict[str, Any]:
        total = self._hits_local + self._hits_backend + self._misses
        hit_rate = (self._hits_local + self._hits_backend) / total if total > 0 else 0.0

        return {
            "local_hits": self._hits_local,
            "backend_hits": self._hits_backend,
            "misses": self._misses,
            "total_reads": total,
            "hit_rate": round(hit_rate, 3),
            "sets": self._sets,
            "invalidated": self._invalidated,
            "invalidation_failures": self._invalidation_failures,
            "backend_errors": self._backend_errors,
        }
