"""
Factory for creating metrics sinks.
"""

import logging
from enum import Enum

from .sinks import MetricsSink, PrometheusMetrics, NullMetrics


logger = logging.getLogger(__name__)


class MetricsBackend(Enum):
    """Available metrics backends"""
    PROMETHEUS = "prometheus"
    NULL = "null"


class MetricsFactory:
    """
    Simple factory for creating metrics sinks.

    Builds a fresh sink on every call; callers that need one shared sink
    (the app's dependency wiring) cache the result themselves.
    """

    @classmethod
    def create(cls, backend: MetricsBackend) -> MetricsSink:
        """
        Create a metrics sink.

        Args:
            backend: Type of metrics backend (from enum)

        Returns:
            MetricsSink instance
        """
        if backend == MetricsBackend.PROMETHEUS:
            sink = PrometheusMetrics()
        elif backend == MetricsBackend.NULL:
            sink = NullMetrics()
        else:
            raise ValueError(f"Unknown metrics backend: {backend}")

        logger.info(f"{backend.value} metrics sink initialized")
        return sink
