"""
Prometheus metrics for the archive, search and summarization paths.

Defines and exposes metrics for:
- Archive request outcomes (created vs duplicate)
- Search and summarization volume and latency
- External provider calls and circuit breaker state
- Retention sweep deletions

Metrics are exposed via HTTP endpoint for Prometheus scraping.
"""

import logging

from prometheus_client import Counter, Gauge, Histogram, start_http_server

from smaraa.config.settings import get_settings

logger = logging.getLogger(__name__)

# Buckets for latency histograms (in seconds)
LATENCY_BUCKETS = (0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0)

_BREAKER_STATE_VALUES = {"closed": 0, "half_open": 1, "open": 2}


class MetricsCollector:
    """
    Prometheus metrics collector for the archive service.

    Usage:
        metrics = get_metrics()
        metrics.start_server()
        metrics.record_archive(created=True)
    """

    def __init__(self):
        """Initialize Prometheus metrics."""
        self.archive_requests = Counter(
            "smaraa_archive_requests_total",
            "Archive requests by outcome",
            ["outcome"],  # created, duplicate, error
        )

        self.search_requests = Counter(
            "smaraa_search_requests_total",
            "Search requests served",
        )

        self.search_results = Histogram(
            "smaraa_search_results",
            "Number of results returned per search page",
            buckets=(0, 1, 5, 10, 25, 50),
        )

        self.summarize_requests = Counter(
            "smaraa_summarize_requests_total",
            "Summarization requests by outcome",
            ["outcome"],  # ok, empty, degraded
        )

        self.provider_calls = Counter(
            "smaraa_provider_calls_total",
            "External provider calls by guard and outcome",
            ["guard", "outcome"],  # outcome: success, failure, rejected
        )

        self.breaker_state = Gauge(
            "smaraa_circuit_breaker_state",
            "Circuit breaker state (0=closed, 1=half_open, 2=open)",
            ["guard"],
        )

        self.embedding_cache = Counter(
            "smaraa_embedding_cache_total",
            "Embedding cache lookups",
            ["result"],  # hit, miss
        )

        self.retention_deleted = Counter(
            "smaraa_retention_deleted_total",
            "Rows removed by retention sweeps",
        )

        self.retention_failures = Counter(
            "smaraa_retention_failures_total",
            "Tenant sweeps that failed",
        )

        self.operation_latency = Histogram(
            "smaraa_operation_latency_seconds",
            "Latency of core operations",
            ["operation"],  # archive, search, summarize, sweep
            buckets=LATENCY_BUCKETS,
        )

        self._server_started = False

    def start_server(self, port: int | None = None) -> None:
        """
        Start Prometheus HTTP server for metrics scraping.

        Args:
            port: Port to listen on (default from settings)
        """
        if self._server_started:
            return

        port = port or get_settings().metrics_port
        start_http_server(port)
        self._server_started = True
        logger.info(f"Metrics server started on port {port}")

    def record_archive(self, created: bool, latency: float | None = None) -> None:
        self.archive_requests.labels(outcome="created" if created else "duplicate").inc()
        if latency is not None:
            self.operation_latency.labels(operation="archive").observe(latency)

    def record_archive_error(self) -> None:
        self.archive_requests.labels(outcome="error").inc()

    def record_search(self, result_count: int, latency: float) -> None:
        self.search_requests.inc()
        self.search_results.observe(result_count)
        self.operation_latency.labels(operation="search").observe(latency)

    def record_summarize(self, outcome: str, latency: float) -> None:
        self.summarize_requests.labels(outcome=outcome).inc()
        self.operation_latency.labels(operation="summarize").observe(latency)

    def record_provider_call(self, guard: str, outcome: str) -> None:
        self.provider_calls.labels(guard=guard, outcome=outcome).inc()

    def set_breaker_state(self, guard: str, state: str) -> None:
        """Publish a breaker state by its enum value name."""
        self.breaker_state.labels(guard=guard).set(_BREAKER_STATE_VALUES.get(state, 0))

    def record_cache_lookup(self, hit: bool) -> None:
        self.embedding_cache.labels(result="hit" if hit else "miss").inc()

    def record_sweep(self, deleted: int, failures: int, latency: float) -> None:
        """
        Record retention sweep totals.

        Args:
            deleted: Rows removed across all tenants
            failures: Number of tenants whose sweep failed
            latency: Total sweep latency in seconds
        """
        if deleted:
            self.retention_deleted.inc(deleted)
        if failures:
            self.retention_failures.inc(failures)
        self.operation_latency.labels(operation="sweep").observe(latency)


# Global metrics instance
_metrics: MetricsCollector | None = None


def get_metrics() -> MetricsCollector:
    """Get global metrics collector instance."""
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics
