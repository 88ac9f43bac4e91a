"""
Metrics module for Links2Go.
Implements Strategy Pattern for flexible metrics backends.
"""

from .sinks import MetricsSink, PrometheusMetrics, NullMetrics
from .factory import MetricsFactory, MetricsBackend

__all__ = [
    "MetricsSink",
    "PrometheusMetrics",
    "NullMetrics",
    "MetricsFactory",
    "MetricsBackend",
]
