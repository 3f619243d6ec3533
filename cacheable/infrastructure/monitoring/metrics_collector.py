#!/usr/bin/env python3
"""
Metrics Collector with Prometheus Integration

Counters for the cache layer:
- Hits by tier (local, backend) and misses, per entity
- Backend writes
- Invalidated keys and invalidation failures (a write that succeeded while
  its cache cleanup did not is a correctness risk and must be visible)
- Backend errors by operation

Architectural Decision: prometheus-client for industry-standard metrics
"""

from prometheus_client import CONTENT_TYPE_LATEST, REGISTRY, Counter, generate_latest

from cacheable.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Metric Definitions
# ============================================================================

CACHE_HITS = Counter(
    'cacheable_hits_total',
    'Total cache hits',
    ['tier', 'entity']  # local or backend
)

CACHE_MISSES = Counter(
    'cacheable_misses_total',
    'Total cache misses',
    ['entity']
)

CACHE_SETS = Counter(
    'cacheable_sets_total',
    'Total entries written to the backend',
    ['entity']
)

INVALIDATIONS = Counter(
    'cacheable_invalidations_total',
    'Total keys invalidated',
    ['entity', 'kind']  # create, update, delete, reset, clear
)

INVALIDATION_FAILURES = Counter(
    'cacheable_invalidation_failures_total',
    'Keys a successful write could not invalidate',
    ['entity', 'kind']
)

BACKEND_ERRORS = Counter(
    'cacheable_backend_errors_total',
    'Total cache backend failures',
    ['operation']  # get, set, delete, clear
)


class MetricsCollector:
    """
    Centralized metrics collector.

    STAGE-M: Metrics collection

    Usage:
        metrics = get_metrics_collector()
        metrics.record_cache_hit("local", "User")
        output = metrics.get_prometheus_metrics()
    """

    # =========================================================================
    # Read Metrics
    # =========================================================================

    def record_cache_hit(self, tier: str, entity: str) -> None:
        """Record cache hit."""
        CACHE_HITS.labels(tier=tier, entity=entity).inc()

    def record_cache_miss(self, entity: str) -> None:
        """Record cache miss."""
        CACHE_MISSES.labels(entity=entity).inc()

    def record_cache_set(self, entity: str) -> None:
        """Record backend write."""
        CACHE_SETS.labels(entity=entity).inc()

    # =========================================================================
    # Invalidation Metrics
    # =========================================================================

    def record_invalidation(self, entity: str, kind: str, count: int = 1) -> None:
        """Record invalidated keys."""
        if count:
            INVALIDATIONS.labels(entity=entity, kind=kind).inc(count)

    def record_invalidation_failure(self, entity: str, kind: str, count: int = 1) -> None:
        """Record keys left behind by a failed invalidation."""
        if count:
            INVALIDATION_FAILURES.labels(entity=entity, kind=kind).inc(count)

    # =========================================================================
    # Backend Metrics
    # =========================================================================

    def record_backend_error(self, operation: str) -> None:
        """Record backend failure."""
        BACKEND_ERRORS.labels(operation=operation).inc()

    # =========================================================================
    # Export
    # =========================================================================

    def get_prometheus_metrics(self) -> bytes:
        """Get metrics in Prometheus exposition format."""
        return generate_latest(REGISTRY)

    def get_content_type(self) -> str:
        """Get Prometheus content type."""
        return CONTENT_TYPE_LATEST


# Global metrics collector instance
_metrics_collector: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Get the global metrics collector (singleton)."""
    global _metrics_collector

    if _metrics_collector is None:
        _metrics_collector = MetricsCollector()

    return _metrics_collector
