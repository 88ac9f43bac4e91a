"""
Metrics sinks using Strategy Pattern.

The service receives a sink at construction instead of reaching for a
process-wide registry, so tests can pass a recording or no-op sink.
"""

from abc import ABC, abstractmethod
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Histogram


class MetricsSink(ABC):
    """Interface the shortening service reports to"""

    @abstractmethod
    def url_shortened(self, custom_code: bool) -> None:
        """Count one created short URL"""
        pass

    @abstractmethod
    def redirect(self, status: str) -> None:
        """Count one redirect attempt by status (success, not_found, expired)"""
        pass

    @abstractmethod
    def observe_store_operation(self, operation: str, seconds: float) -> None:
        """Record how long one store operation took"""
        pass


class PrometheusMetrics(MetricsSink):
    """
    prometheus_client implementation.

    Metrics are registered on an instance-owned registry, so several
    sinks (one per test, say) never collide on metric names.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        self.registry = registry if registry is not None else CollectorRegistry()

        self.urls_shortened_total = Counter(
            "urls_shortened_total",
            "Total number of URLs shortened",
            ["custom_code"],
            registry=self.registry,
        )
        self.url_redirects_total = Counter(
            "url_redirects_total",
            "Total number of URL redirections",
            ["status"],
            registry=self.registry,
        )
        self.store_operation_duration_seconds = Histogram(
            "store_operation_duration_seconds",
            "Duration of key-value store operations in seconds",
            ["operation"],
            buckets=(0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1),
            registry=self.registry,
        )

    def url_shortened(self, custom_code: bool) -> None:
        self.urls_shortened_total.labels(custom_code=str(custom_code).lower()).inc()

    def redirect(self, status: str) -> None:
        self.url_redirects_total.labels(status=status).inc()

    def observe_store_operation(self, operation: str, seconds: float) -> None:
        self.store_operation_duration_seconds.labels(operation=operation).observe(seconds)


class NullMetrics(MetricsSink):
    """
    Null Object Pattern - sink that records nothing.
    """

    def url_shortened(self, custom_code: bool) -> None:
        pass

    def redirect(self, status: str) -> None:
        pass

    def observe_store_operation(self, operation: str, seconds: float) -> None:
        pass
