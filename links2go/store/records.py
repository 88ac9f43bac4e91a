"""
URL record store.

Owns the ``url:<short_code>`` hash and its store-level expiration.
"""

import logging
import math
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Callable, Dict, Optional

import redis.asyncio as redis
from redis.asyncio.client import Pipeline
from redis.exceptions import RedisError, WatchError

from links2go.exceptions import AlreadyExistsError, InternalStorageError
from links2go.models.url import UrlRecord


logger = logging.getLogger(__name__)


class RecordStore(ABC):
    """
    Abstract base class for URL record storage.

    Every method is async because every call is a network round trip.
    Storage failures surface as ``InternalStorageError``.
    """

    @abstractmethod
    def key(self, short_code: str) -> str:
        """Storage key holding the record for ``short_code``"""
        pass

    @abstractmethod
    async def create(self, record: UrlRecord, *linked_keys: str) -> None:
        """
        Write ``record`` only if no live record exists for its code.

        The existence check and the write form one atomic unit, so two
        concurrent creates of the same code cannot both succeed.
        ``linked_keys`` are cleared in the same unit, so a new record
        never inherits data left under a reused code.

        Raises:
            AlreadyExistsError: If the code is taken
        """
        pass

    @abstractmethod
    async def get(self, short_code: str) -> Optional[UrlRecord]:
        """Return the record, or None if never created, removed or evicted"""
        pass

    @abstractmethod
    async def increment_click_count(
        self,
        short_code: str,
        *linked_writes: Callable[[Pipeline], None],
    ) -> Optional[int]:
        """
        Atomically add one to the click counter, together with
        ``linked_writes`` queued on the same transaction.

        Returns:
            The new count, or None if the record was gone when the
            transaction ran. The writes then landed on a deleted code and
            the caller should ``discard_stray`` them.
        """
        pass

    @abstractmethod
    async def discard_stray(self, short_code: str, *linked_keys: str) -> bool:
        """
        Delete a counter-only hash and ``linked_keys``, unless a live record
        has been created for the code in the meantime.

        Returns:
            True if anything was deleted
        """
        pass

    @abstractmethod
    async def remove(self, short_code: str, *linked_keys: str) -> bool:
        """
        Delete the record together with ``linked_keys`` in one transaction.

        Returns:
            True if the record existed before the call
        """
        pass


class RedisRecordStore(RecordStore):
    """
    Redis hash implementation.

    Hash layout (all values are strings):
        originalUrl, createdAt (ISO-8601), expiresAt (ISO-8601 or ""),
        clickCount (decimal), isActive ("true"/"false")

    The client must be created with ``decode_responses=True``.
    """

    KEY_PREFIX = "url:"

    def __init__(self, redis_client: redis.Redis):
        self.redis = redis_client

    def key(self, short_code: str) -> str:
        return f"{self.KEY_PREFIX}{short_code}"

    async def create(self, record: UrlRecord, *linked_keys: str) -> None:
        """
        Create-if-absent using optimistic locking.

        WATCH the key, check it, then MULTI/EXEC the write. If anyone else
        writes the key in between, EXEC aborts with WatchError and the
        code is reported as taken. A hash without ``originalUrl`` (a stray
        counter left by a click racing a delete) is not a live record and
        is replaced, and ``linked_keys`` are deleted in the same EXEC.
        """
        key = self.key(record.short_code)

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                if await pipe.hexists(key, "originalUrl"):
                    raise AlreadyExistsError(f"Short code '{record.short_code}' already exists")

                pipe.multi()
                pipe.delete(key, *linked_keys)
                pipe.hset(key, mapping=self._to_hash(record))
                if record.expires_at is not None:
                    pipe.expireat(key, math.floor(record.expires_at.timestamp()))
                await pipe.execute()
        except WatchError:
            raise AlreadyExistsError(f"Short code '{record.short_code}' already exists")
        except RedisError as e:
            raise InternalStorageError(f"Failed to create record {key}: {e}") from e

    async def get(self, short_code: str) -> Optional[UrlRecord]:
        key = self.key(short_code)

        try:
            data = await self.redis.hgetall(key)
        except RedisError as e:
            raise InternalStorageError(f"Failed to read record {key}: {e}") from e

        if not data or not data.get("originalUrl"):
            return None

        return self._from_hash(short_code, data)

    async def increment_click_count(
        self,
        short_code: str,
        *linked_writes: Callable[[Pipeline], None],
    ) -> Optional[int]:
        """
        HEXISTS, HINCRBY and the linked writes run in one MULTI/EXEC.

        No WATCH: hot codes would keep aborting each other. The HEXISTS
        result tells afterwards whether the record was live when the
        writes landed.
        """
        key = self.key(short_code)

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.hexists(key, "originalUrl")
                pipe.hincrby(key, "clickCount", 1)
                for write in linked_writes:
                    write(pipe)
                results = await pipe.execute()
        except RedisError as e:
            raise InternalStorageError(f"Failed to increment click count for {key}: {e}") from e

        if not results[0]:
            return None
        return results[1]

    async def discard_stray(self, short_code: str, *linked_keys: str) -> bool:
        key = self.key(short_code)

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                await pipe.watch(key)
                if await pipe.hexists(key, "originalUrl"):
                    return False

                pipe.multi()
                pipe.delete(key, *linked_keys)
                results = await pipe.execute()
        except WatchError:
            # A create claimed the code and cleared the linked keys itself
            return False
        except RedisError as e:
            raise InternalStorageError(f"Failed to discard stray keys for {key}: {e}") from e

        return results[0] > 0

    async def remove(self, short_code: str, *linked_keys: str) -> bool:
        key = self.key(short_code)

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.delete(key)
                if linked_keys:
                    pipe.delete(*linked_keys)
                results = await pipe.execute()
        except RedisError as e:
            raise InternalStorageError(f"Failed to remove record {key}: {e}") from e

        return results[0] > 0

    @staticmethod
    def _to_hash(record: UrlRecord) -> Dict[str, str]:
        return {
            "originalUrl": record.original_url,
            "createdAt": record.created_at.isoformat(),
            "expiresAt": record.expires_at.isoformat() if record.expires_at else "",
            "clickCount": str(record.click_count),
            "isActive": "true" if record.is_active else "false",
        }

    @staticmethod
    def _from_hash(short_code: str, data: Dict[str, str]) -> UrlRecord:
        try:
            click_count = max(int(data.get("clickCount") or 0), 0)
        except ValueError:
            logger.warning(f"Non-numeric clickCount for {short_code}: {data.get('clickCount')!r}")
            click_count = 0

        expires_at = data.get("expiresAt")

        return UrlRecord(
            short_code=short_code,
            original_url=data["originalUrl"],
            created_at=datetime.fromisoformat(data["createdAt"]),
            expires_at=datetime.fromisoformat(expires_at) if expires_at else None,
            click_count=click_count,
            is_active=data.get("isActive") == "true",
        )
