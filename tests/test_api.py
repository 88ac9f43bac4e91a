from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient
from redis.exceptions import ConnectionError as RedisConnectionError

from main import app, lifespan
from links2go import dependencies
from links2go.exceptions import StoreUnavailableError
from links2go.store.connection import verify_connection


class TestShortenEndpoint:
    """Test POST /api/shorten"""

    def test_create_short_url(self, client: TestClient):
        """Test creating a short URL"""
        response = client.post("/api/shorten", json={"url": "https://www.google.com/"})
        assert response.status_code == 201

        data = response.json()
        assert set(data) == {"shortCode", "shortUrl", "originalUrl"}
        assert data["originalUrl"] == "https://www.google.com/"
        assert data["shortUrl"] == f"http://testserver/{data['shortCode']}"
        assert len(data["shortCode"]) == 6

    def test_create_with_custom_code(self, client: TestClient):
        response = client.post(
            "/api/shorten",
            json={"url": "https://example.com/a", "customCode": "promo1"},
        )
        assert response.status_code == 201

        data = response.json()
        assert data["shortCode"] == "promo1"
        assert data["shortUrl"] == "http://testserver/promo1"

    def test_create_with_expiry(self, client: TestClient):
        response = client.post(
            "/api/shorten",
            json={"url": "https://example.com/a", "expiresIn": 3600},
        )
        assert response.status_code == 201
        assert "expiresAt" in response.json()

    @pytest.mark.parametrize(
        "body",
        [
            {"url": "ftp://bad.example"},
            {"url": "not-a-valid-url"},
            {"url": ""},
            {},
            {"url": "https://example.com/a", "customCode": "bad!"},
            {"url": "https://example.com/a", "expiresIn": -5},
            {"url": "https://example.com/a", "expiresIn": 1e12},
        ],
    )
    def test_rejects_bad_requests(self, client: TestClient, body):
        """Test every rejected request is a 400 with an error message"""
        response = client.post("/api/shorten", json=body)
        assert response.status_code == 400
        assert response.json()["error"]

    def test_rejects_taken_custom_code(self, client: TestClient):
        body = {"url": "https://example.com/a", "customCode": "promo1"}
        client.post("/api/shorten", json=body)

        response = client.post("/api/shorten", json=body)
        assert response.status_code == 400
        assert "already exists" in response.json()["error"]


class TestRedirectEndpoint:
    """Test GET /{code}"""

    def test_redirect_url(self, client: TestClient):
        """Test URL redirection"""
        create_response = client.post("/api/shorten", json={"url": "https://www.github.com/"})
        short_code = create_response.json()["shortCode"]

        response = client.get(f"/{short_code}", follow_redirects=False)
        assert response.status_code == 301
        assert response.headers["location"] == "https://www.github.com/"

    def test_redirect_nonexistent_url(self, client: TestClient):
        response = client.get("/zzzzzz", follow_redirects=False)
        assert response.status_code == 404
        assert response.json() == {"error": "URL not found or inactive"}

    def test_redirect_malformed_code(self, client: TestClient):
        response = client.get("/nonexistent", follow_redirects=False)
        assert response.status_code == 404

    def test_redirect_expired_url(self, client: TestClient, clock):
        client.post(
            "/api/shorten",
            json={"url": "https://example.com/a", "customCode": "promo1", "expiresIn": 1},
        )
        assert client.get("/promo1", follow_redirects=False).status_code == 301

        clock.advance(1.5)

        response = client.get("/promo1", follow_redirects=False)
        assert response.status_code == 410
        assert response.json() == {"error": "URL has expired"}


class TestAnalyticsEndpoint:
    """Test GET /api/analytics/{code}"""

    def test_url_analytics(self, client: TestClient):
        client.post("/api/shorten", json={"url": "https://example.com/a", "customCode": "promo1"})

        response = client.get("/api/analytics/promo1")
        assert response.status_code == 200

        data = response.json()
        assert data["shortCode"] == "promo1"
        assert data["originalUrl"] == "https://example.com/a"
        assert data["clickCount"] == 0
        assert data["isActive"] is True
        assert data["recentClicks"] == []
        assert "createdAt" in data

    def test_analytics_nonexistent_url(self, client: TestClient):
        response = client.get("/api/analytics/zzzzzz")
        assert response.status_code == 404
        assert "error" in response.json()


class TestDeleteEndpoint:
    """Test DELETE /api/{code}"""

    def test_delete_url(self, client: TestClient):
        client.post("/api/shorten", json={"url": "https://example.com/a", "customCode": "promo1"})

        response = client.delete("/api/promo1")
        assert response.status_code == 200
        assert response.json() == {"message": "URL deleted successfully"}

        assert client.delete("/api/promo1").status_code == 404
        assert client.get("/promo1", follow_redirects=False).status_code == 404
        assert client.get("/api/analytics/promo1").status_code == 404

    def test_delete_nonexistent_url(self, client: TestClient):
        response = client.delete("/api/zzzzzz")
        assert response.status_code == 404
        assert response.json() == {"error": "URL not found"}


class TestServiceEndpoints:
    """Test health and info routes"""

    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["message"] == "Welcome to Links2Go"


def unreachable_redis():
    client = MagicMock()
    client.ping = AsyncMock(side_effect=RedisConnectionError("connection refused"))
    return client


class TestStartup:
    """Test the service refuses to start without Redis"""

    async def test_verify_connection_ok(self, redis_client):
        await verify_connection(redis_client)

    async def test_verify_connection_failure(self):
        with pytest.raises(StoreUnavailableError):
            await verify_connection(unreachable_redis())

    async def test_lifespan_aborts_when_redis_is_down(self, monkeypatch):
        monkeypatch.setattr(dependencies, "get_redis", unreachable_redis)

        with pytest.raises(StoreUnavailableError):
            async with lifespan(app):
                pass
