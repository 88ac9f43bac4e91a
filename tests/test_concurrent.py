"""Tests that the service stays correct under many simultaneous calls.

Requests are interleaved on one event loop against fakeredis, which is
enough to exercise the WATCH/MULTI create and the detached click writes.
"""

import asyncio

import pytest

from links2go.exceptions import AlreadyExistsError


class TestConcurrentOperations:
    """Prove concurrent callers cannot corrupt each other's records."""

    async def test_concurrent_shortens_get_unique_codes(self, service):
        """Many concurrent shortens with different URLs; all succeed with unique codes."""
        concurrency = 30
        results = await asyncio.gather(
            *(service.shorten(f"https://example.com/page_{i}") for i in range(concurrency)),
            return_exceptions=True,
        )

        for i, result in enumerate(results):
            if isinstance(result, Exception):
                pytest.fail(f"Shorten {i} raised: {result!r}")

        assert len({result.short_code for result in results}) == concurrency

        for i, result in enumerate(results):
            assert await service.resolve(result.short_code) == f"https://example.com/page_{i}"

    async def test_concurrent_identical_custom_codes(self, service):
        """Exactly one of many concurrent claims on one custom code wins."""
        concurrency = 20
        results = await asyncio.gather(
            *(
                service.shorten(f"https://example.com/{i}", custom_code="promo1")
                for i in range(concurrency)
            ),
            return_exceptions=True,
        )

        winners = [r for r in results if not isinstance(r, Exception)]
        losers = [r for r in results if isinstance(r, Exception)]

        assert len(winners) == 1
        assert all(isinstance(error, AlreadyExistsError) for error in losers)
        assert await service.resolve("promo1") == winners[0].original_url

    async def test_concurrent_redirects_count_every_click(self, service):
        """Every concurrent redirect is counted once its detached write finishes."""
        await service.shorten("https://example.com/a", custom_code="promo1")

        concurrency = 50
        urls = await asyncio.gather(*(service.resolve("promo1") for _ in range(concurrency)))
        await service.drain()

        assert set(urls) == {"https://example.com/a"}

        analytics = await service.get_analytics("promo1")
        assert analytics.click_count == concurrency
        assert len(analytics.recent_clicks) == concurrency
