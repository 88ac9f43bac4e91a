import asyncio
import logging
import time
from datetime import datetime, timedelta, timezone
from typing import Awaitable, Callable, Optional, Set, TypeVar

from links2go.config import settings
from links2go.exceptions import (
    AlreadyExistsError,
    ExpiredError,
    GenerationExhaustedError,
    InvalidExpiryError,
    InvalidFormatError,
    NotFoundError,
)
from links2go.metrics.sinks import MetricsSink, NullMetrics
from links2go.models.click import ClickEvent
from links2go.models.url import UrlRecord
from links2go.schemas.url import AnalyticsResponse, ShortenResponse
from links2go.services.short_code_strategies import ShortCodeStrategy
from links2go.services.url_validation import normalize_url
from links2go.store.analytics import AnalyticsLog
from links2go.store.records import RecordStore


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Generated codes only; a custom code gets a single attempt
MAX_GENERATION_ATTEMPTS = 10


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class URLService:
    """
    URL Service with dependency injection for storage and metrics.

    This is the only writer of URL records and click logs:
    - Record store and analytics log are injected (not created internally)
    - Metrics sink is injected, so tests can record or ignore metrics
    - Clock is injectable, so expiration can be tested without sleeping

    Redirect-time click recording runs as a detached task that the
    redirect never waits for. Its failures are logged and dropped.
    """

    def __init__(
        self,
        records: RecordStore,
        analytics: AnalyticsLog,
        short_code_strategy: ShortCodeStrategy,
        metrics: Optional[MetricsSink] = None,
        base_url: str = settings.base_url,
        clock: Callable[[], datetime] = utcnow,
        click_timeout: float = settings.click_record_timeout,
    ):
        """
        Initialize URL service with dependencies.

        Args:
            records: Store for URL records
            analytics: Store for click history
            short_code_strategy: Code generator and format validator
            metrics: Metrics sink (optional, defaults to a no-op sink)
            base_url: Public base URL used to build short URLs
            clock: Returns the current time as an aware UTC datetime
            click_timeout: Upper bound in seconds for one detached click write
        """
        self.records = records
        self.analytics = analytics
        self.short_code_strategy = short_code_strategy
        self.metrics = metrics or NullMetrics()
        self.base_url = base_url.rstrip("/")
        self.clock = clock
        self.click_timeout = click_timeout
        self._pending_clicks: Set[asyncio.Task] = set()

    async def shorten(
        self,
        original_url: str,
        custom_code: Optional[str] = None,
        expires_in_seconds: Optional[float] = None,
    ) -> ShortenResponse:
        """
        Create a new short URL.

        Process:
        1. Normalize the target URL (http/https only)
        2. Claim the custom code, or generate codes until one is free
        3. Write the record (create-if-absent, with store-level expiry)
        4. Count the creation

        Raises:
            InvalidUrlError: Target URL rejected
            InvalidExpiryError: Lifetime not positive or past the datetime range
            InvalidFormatError: Custom code has the wrong length/alphabet
            AlreadyExistsError: Custom code is taken
            GenerationExhaustedError: Every generated code collided
            InternalStorageError: Store failure
        """
        normalized_url = normalize_url(original_url)

        now = self.clock()
        expires_at = self._expiry(now, expires_in_seconds)

        if custom_code:
            record = await self._claim_custom_code(custom_code, normalized_url, now, expires_at)
        else:
            record = await self._claim_generated_code(normalized_url, now, expires_at)

        self.metrics.url_shortened(custom_code=bool(custom_code))
        logger.info(f"Created short URL: {record.short_code} -> {record.original_url}")

        return ShortenResponse(
            short_code=record.short_code,
            short_url=self.build_short_url(record.short_code),
            original_url=record.original_url,
            expires_at=record.expires_at,
        )

    async def resolve(self, short_code: str, click: Optional[ClickEvent] = None) -> str:
        """
        Get the target URL for a redirect.

        The lookup is awaited; click recording is not. A storage error on
        the lookup propagates as InternalStorageError, never as NotFound.

        Raises:
            NotFoundError: Malformed code, no record, or inactive record
            ExpiredError: Record exists but its expiry has passed
        """
        # Garbage never reaches the store
        if not self.short_code_strategy.is_valid_format(short_code):
            self.metrics.redirect("not_found")
            raise NotFoundError()

        record = await self._timed("get", self.records.get(short_code))

        if record is None or not record.is_active:
            self.metrics.redirect("not_found")
            raise NotFoundError()

        if record.is_expired(self.clock()):
            self.metrics.redirect("expired")
            raise ExpiredError()

        if click is None:
            click = ClickEvent(ip="unknown", timestamp=self.clock())
        self._schedule_click(record, click)

        self.metrics.redirect("success")
        logger.debug(f"Resolved {short_code} -> {record.original_url}")
        return record.original_url

    async def record_click(
        self,
        short_code: str,
        click: ClickEvent,
        expires_at: Optional[datetime] = None,
    ) -> None:
        """
        Append ``click`` to the log and bump the click counter in one
        transaction. A click that lands after the code was deleted is
        discarded instead of recreating its keys.

        Never raises: every failure, timeout included, is logged and
        dropped. Both writes are safe to lose.
        """
        try:
            await asyncio.wait_for(
                self._write_click(short_code, click, expires_at),
                timeout=self.click_timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"Timed out recording click for {short_code}")
        except Exception as e:
            logger.warning(f"Failed to record click for {short_code}: {e}")

    async def get_analytics(self, short_code: str) -> AnalyticsResponse:
        """
        Get a record together with its recent clicks.

        Expired records that the store has not evicted yet are still
        reported.

        Raises:
            NotFoundError: No record for this code
        """
        if not self.short_code_strategy.is_valid_format(short_code):
            raise NotFoundError()

        record = await self._timed("get", self.records.get(short_code))
        if record is None:
            raise NotFoundError()

        recent_clicks = await self._timed("read_clicks", self.analytics.read_all(short_code))

        return AnalyticsResponse(
            short_code=record.short_code,
            original_url=record.original_url,
            click_count=record.click_count,
            created_at=record.created_at,
            expires_at=record.expires_at,
            is_active=record.is_active,
            recent_clicks=recent_clicks,
        )

    async def delete_url(self, short_code: str) -> bool:
        """
        Physically delete a record and its click log in one transaction.

        Idempotent: returns True only if the record existed.
        """
        if not self.short_code_strategy.is_valid_format(short_code):
            return False

        removed = await self._timed(
            "remove",
            self.records.remove(short_code, self.analytics.key(short_code)),
        )

        if removed:
            logger.info(f"Deleted short URL: {short_code}")

        return removed

    async def drain(self, timeout: Optional[float] = None) -> None:
        """
        Wait for outstanding click writes, cancelling any still running
        after ``timeout`` seconds.
        """
        if not self._pending_clicks:
            return

        _, still_running = await asyncio.wait(set(self._pending_clicks), timeout=timeout)

        if still_running:
            for task in still_running:
                task.cancel()
            await asyncio.gather(*still_running, return_exceptions=True)
            logger.warning(f"Dropped {len(still_running)} unfinished click writes on shutdown")

    @property
    def pending_clicks(self) -> int:
        return len(self._pending_clicks)

    def build_short_url(self, short_code: str) -> str:
        return f"{self.base_url}/{short_code}"

    async def _claim_custom_code(
        self,
        custom_code: str,
        original_url: str,
        now: datetime,
        expires_at: Optional[datetime],
    ) -> UrlRecord:
        if not self.short_code_strategy.is_valid_format(custom_code):
            raise InvalidFormatError("Invalid custom short code format")

        if await self._timed("get", self.records.get(custom_code)) is not None:
            raise AlreadyExistsError(f"Short code '{custom_code}' already exists")

        # The store re-checks atomically; a concurrent claim still loses here
        record = self._new_record(custom_code, original_url, now, expires_at)
        await self._timed(
            "create",
            self.records.create(record, self.analytics.key(record.short_code)),
        )
        return record

    async def _claim_generated_code(
        self,
        original_url: str,
        now: datetime,
        expires_at: Optional[datetime],
    ) -> UrlRecord:
        for attempt in range(1, MAX_GENERATION_ATTEMPTS + 1):
            record = self._new_record(self.short_code_strategy.generate(), original_url, now, expires_at)

            try:
                await self._timed(
                    "create",
                    self.records.create(record, self.analytics.key(record.short_code)),
                )
                return record
            except AlreadyExistsError:
                logger.debug(f"Short code collision on attempt {attempt}: {record.short_code}")

        logger.error(
            f"Could not generate a unique short code after {MAX_GENERATION_ATTEMPTS} attempts; "
            f"the keyspace may be close to exhausted"
        )
        raise GenerationExhaustedError(
            f"Could not generate unique short code after {MAX_GENERATION_ATTEMPTS} attempts"
        )

    @staticmethod
    def _expiry(now: datetime, expires_in_seconds: Optional[float]) -> Optional[datetime]:
        if expires_in_seconds is None:
            return None
        if not expires_in_seconds > 0:
            raise InvalidExpiryError(f"expiresIn must be positive, got {expires_in_seconds}")

        try:
            return now + timedelta(seconds=expires_in_seconds)
        except (OverflowError, ValueError):
            raise InvalidExpiryError(f"expiresIn is too large: {expires_in_seconds}")

    @staticmethod
    def _new_record(
        short_code: str,
        original_url: str,
        now: datetime,
        expires_at: Optional[datetime],
    ) -> UrlRecord:
        return UrlRecord(
            short_code=short_code,
            original_url=original_url,
            created_at=now,
            expires_at=expires_at,
            click_count=0,
            is_active=True,
        )

    def _schedule_click(self, record: UrlRecord, click: ClickEvent) -> None:
        # Held until done so the task is not garbage collected mid-write
        task = asyncio.create_task(self.record_click(record.short_code, click, record.expires_at))
        self._pending_clicks.add(task)
        task.add_done_callback(self._pending_clicks.discard)

    async def _write_click(
        self,
        short_code: str,
        click: ClickEvent,
        expires_at: Optional[datetime],
    ) -> None:
        def append_click(pipe):
            self.analytics.queue_append(pipe, short_code, click, expires_at)

        count = await self._timed(
            "record_click",
            self.records.increment_click_count(short_code, append_click),
        )

        # Deleted while the click was in flight
        if count is None:
            logger.debug(f"Discarding click for deleted short code {short_code}")
            await self._timed(
                "discard_stray",
                self.records.discard_stray(short_code, self.analytics.key(short_code)),
            )

    async def _timed(self, operation: str, awaitable: Awaitable[T]) -> T:
        start = time.perf_counter()
        try:
            return await awaitable
        finally:
            self.metrics.observe_store_operation(operation, time.perf_counter() - start)
