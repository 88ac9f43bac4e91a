"""
FastAPI dependencies for dependency injection.

This module provides singleton instances of the Redis client, the metrics
sink and the URL service that are injected into routes.

Pattern: Dependency Injection
- Loose coupling between components
- Easy to test (override get_url_service with a service on fakeredis)
- Flexible (swap implementations via config)
"""

from functools import lru_cache

import redis.asyncio as redis

from links2go.config import settings
from links2go.metrics.factory import MetricsFactory, MetricsBackend
from links2go.metrics.sinks import MetricsSink
from links2go.services.short_code_strategies import RandomShortCodeStrategy
from links2go.services.url_service import URLService
from links2go.store.analytics import RedisAnalyticsLog
from links2go.store.connection import create_redis_client
from links2go.store.records import RedisRecordStore


@lru_cache()
def get_redis() -> redis.Redis:
    """
    Get the shared Redis client (singleton).

    The client connects lazily; startup verifies it with a ping.
    """
    return create_redis_client(settings)


@lru_cache()
def get_metrics() -> MetricsSink:
    """Get metrics sink instance (singleton)."""
    backend = MetricsBackend(settings.metrics_backend)
    return MetricsFactory.create(backend)


@lru_cache()
def get_url_service() -> URLService:
    """
    Get URLService with all dependencies injected (singleton).

    One instance per process: it tracks the detached click writes that
    shutdown has to drain.
    """
    redis_client = get_redis()
    return URLService(
        records=RedisRecordStore(redis_client),
        analytics=RedisAnalyticsLog(redis_client),
        short_code_strategy=RandomShortCodeStrategy(
            length=settings.short_code_length,
            alphabet=settings.short_code_alphabet,
        ),
        metrics=get_metrics(),
        base_url=settings.base_url,
        click_timeout=settings.click_record_timeout,
    )
