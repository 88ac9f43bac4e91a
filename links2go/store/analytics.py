"""
Click analytics log.

Owns the ``analytics:<short_code>`` list: newest event at the head,
trimmed to a fixed number of entries on every append.
"""

import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List, Optional

import redis.asyncio as redis
from redis.asyncio.client import Pipeline
from pydantic import ValidationError
from redis.exceptions import RedisError

from links2go.exceptions import InternalStorageError
from links2go.models.click import ClickEvent


logger = logging.getLogger(__name__)

MAX_EVENTS = 100


class AnalyticsLog(ABC):
    """Abstract base class for per-code click history"""

    @abstractmethod
    def key(self, short_code: str) -> str:
        """Storage key holding the log for ``short_code``"""
        pass

    @abstractmethod
    async def append(
        self,
        short_code: str,
        event: ClickEvent,
        expires_at: Optional[datetime] = None
    ) -> bool:
        """
        Push ``event`` to the front of the log and drop the overflow.

        Never raises: recording a click must not break a redirect.

        Returns:
            True if the event was stored, False if the write failed
        """
        pass

    @abstractmethod
    def queue_append(
        self,
        pipe: Pipeline,
        short_code: str,
        event: ClickEvent,
        expires_at: Optional[datetime] = None
    ) -> None:
        """
        Queue the append on a caller-owned transaction.

        Lets the record store write the click counter and the log in the
        same MULTI/EXEC.
        """
        pass

    @abstractmethod
    async def read_all(self, short_code: str) -> List[ClickEvent]:
        """Return the retained events, most recent first"""
        pass

    @abstractmethod
    async def remove(self, short_code: str) -> bool:
        """Delete the whole log. Returns True if it existed."""
        pass


class RedisAnalyticsLog(AnalyticsLog):
    """
    Redis list implementation.

    LPUSH and LTRIM run in one MULTI/EXEC so the list never holds more
    than ``max_events`` entries. When the owning record expires, the same
    EXPIREAT is applied here so the log does not outlive it.
    """

    KEY_PREFIX = "analytics:"

    def __init__(self, redis_client: redis.Redis, max_events: int = MAX_EVENTS):
        if max_events < 1:
            raise ValueError(f"max_events must be positive, got {max_events}")
        self.redis = redis_client
        self.max_events = max_events

    def key(self, short_code: str) -> str:
        return f"{self.KEY_PREFIX}{short_code}"

    async def append(
        self,
        short_code: str,
        event: ClickEvent,
        expires_at: Optional[datetime] = None
    ) -> bool:
        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                self.queue_append(pipe, short_code, event, expires_at)
                await pipe.execute()
            return True
        except Exception as e:
            logger.warning(f"Failed to record click for {short_code}: {e}")
            return False

    def queue_append(
        self,
        pipe: Pipeline,
        short_code: str,
        event: ClickEvent,
        expires_at: Optional[datetime] = None
    ) -> None:
        key = self.key(short_code)
        pipe.lpush(key, event.to_json())
        pipe.ltrim(key, 0, self.max_events - 1)
        if expires_at is not None:
            pipe.expireat(key, math.floor(expires_at.timestamp()))

    async def read_all(self, short_code: str) -> List[ClickEvent]:
        key = self.key(short_code)

        try:
            entries = await self.redis.lrange(key, 0, -1)
        except RedisError as e:
            raise InternalStorageError(f"Failed to read analytics {key}: {e}") from e

        events = []
        for entry in entries:
            try:
                events.append(ClickEvent.model_validate_json(entry))
            except ValidationError as e:
                logger.warning(f"Skipping unreadable click event in {key}: {e}")

        return events

    async def remove(self, short_code: str) -> bool:
        key = self.key(short_code)

        try:
            return bool(await self.redis.delete(key))
        except RedisError as e:
            raise InternalStorageError(f"Failed to remove analytics {key}: {e}") from e
