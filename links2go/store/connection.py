"""
Redis connection handling.

One long-lived client is shared by the record store and the analytics
log; the combined delete relies on both living in the same database.
"""

import logging

import redis.asyncio as redis
from redis.exceptions import RedisError

from links2go.config import Settings
from links2go.exceptions import StoreUnavailableError


logger = logging.getLogger(__name__)


def create_redis_client(settings: Settings) -> redis.Redis:
    """
    Build the shared async client from settings.

    No connection is opened here; the pool connects lazily on first use.
    """
    return redis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        socket_timeout=settings.redis_socket_timeout,
        socket_connect_timeout=settings.redis_connect_timeout,
    )


async def verify_connection(redis_client: redis.Redis) -> None:
    """
    Ping the store once at startup.

    Raises:
        StoreUnavailableError: If Redis cannot be reached. The service
            has no fallback store, so callers must abort startup.
    """
    try:
        await redis_client.ping()
    except (RedisError, OSError) as e:
        logger.critical(f"Cannot reach Redis, refusing to start: {e}")
        raise StoreUnavailableError(f"Redis connection failed: {e}") from e

    logger.info("Connected to Redis")
