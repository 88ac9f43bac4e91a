"""
Test configuration and fixtures for Links2Go.
This centralizes all test setup, making individual tests clean.

Redis is replaced by fakeredis; each test gets its own fake server.
"""

from datetime import datetime, timedelta, timezone
from typing import List, Tuple

import fakeredis
import pytest
from fastapi.testclient import TestClient

from main import app
from links2go import dependencies
from links2go.dependencies import get_url_service
from links2go.metrics.sinks import MetricsSink
from links2go.services.short_code_strategies import RandomShortCodeStrategy
from links2go.services.url_service import URLService
from links2go.store.analytics import RedisAnalyticsLog
from links2go.store.records import RedisRecordStore


BASE_URL = "http://testserver"


class FakeClock:
    """Controllable clock; call it to read the time, advance() to move it"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingMetrics(MetricsSink):
    """Metrics sink that keeps every call for assertions"""

    def __init__(self):
        self.shortened: List[bool] = []
        self.redirects: List[str] = []
        self.store_operations: List[Tuple[str, float]] = []

    def url_shortened(self, custom_code: bool) -> None:
        self.shortened.append(custom_code)

    def redirect(self, status: str) -> None:
        self.redirects.append(status)

    def observe_store_operation(self, operation: str, seconds: float) -> None:
        self.store_operations.append((operation, seconds))


@pytest.fixture
def redis_client():
    """Async fake Redis with a private server, so tests never share keys"""
    return fakeredis.FakeAsyncRedis(server=fakeredis.FakeServer(), decode_responses=True)


@pytest.fixture
def clock():
    """
    Application clock running one hour ahead of real time.

    Store-level EXPIREAT deadlines derive from this clock, so they stay an
    hour away in the fake server's (real) time and never fire mid-test;
    expiry seen by the service is driven only by clock.advance().
    """
    return FakeClock(datetime.now(timezone.utc) + timedelta(hours=1))


@pytest.fixture
def metrics():
    return RecordingMetrics()


@pytest.fixture
def records(redis_client):
    return RedisRecordStore(redis_client)


@pytest.fixture
def analytics(redis_client):
    return RedisAnalyticsLog(redis_client)


@pytest.fixture
def short_code_strategy():
    return RandomShortCodeStrategy(length=6)


@pytest.fixture
def service(records, analytics, short_code_strategy, metrics, clock):
    return URLService(
        records=records,
        analytics=analytics,
        short_code_strategy=short_code_strategy,
        metrics=metrics,
        base_url=BASE_URL,
        clock=clock,
    )


@pytest.fixture
def client(service, redis_client, monkeypatch):
    """
    Create a test client wired to the fake-Redis service.
    This is the main fixture that HTTP tests will use.
    """
    # Startup and shutdown look these up on the module
    monkeypatch.setattr(dependencies, "get_redis", lambda: redis_client)
    monkeypatch.setattr(dependencies, "get_url_service", lambda: service)

    # Routes resolve the service through FastAPI's dependency system
    app.dependency_overrides[get_url_service] = lambda: service

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
