"""Price feed client -- polls the price service and tracks validated readings.

Polling model (single asyncio event loop):
- start() fires an initial poll and a fixed-period timer when real-time
  updates are enabled. The timer spawns a poll every refresh interval
  without waiting for earlier polls, so polls may overlap.
- A failed poll schedules one backoff poll (1s, 2s, 4s, ... capped at 10s)
  while fewer than max_retries consecutive failures have been recorded.
- refresh() polls immediately and leaves the timer and backoff alone.

Every poll takes a sequence number when it starts. Its outcome is applied
only if no newer poll has already been applied, so a slow response never
overwrites a fresher one. The phase reads POLLING while any poll is in
flight and otherwise reports the last applied outcome.
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Callable, Iterable, Sequence
from dataclasses import replace
from decimal import Decimal

import structlog

from pricefeed.config import FeedClientSettings
from pricefeed.exceptions import FeedError, ParsingError
from pricefeed.feeds.backoff import backoff_delay_ms, should_schedule_retry
from pricefeed.feeds.catalog import build_feed_index
from pricefeed.feeds.decoding import format_reading
from pricefeed.feeds.validation import validate_reading
from pricefeed.hermes.client import PriceServiceClient
from pricefeed.logging import get_logger
from pricefeed.models import (
    ClientPhase,
    ClientSnapshot,
    ClientState,
    FeedConfig,
    FormattedReading,
    PollStats,
    RawReading,
    ValidationResult,
    normalize_feed_id,
)

logger = get_logger(__name__)

Listener = Callable[[ClientSnapshot], Awaitable[None] | None]


class FeedClient:
    """Owns one polling session: readings, connection status and retry state.

    Consumers read state through snapshot(), validate() and subscribe();
    they never touch ClientState directly.

    Args:
        feeds: Tracked feeds. Ids must be unique hex strings.
        price_service: Client used to fetch latest price feeds.
        settings: Polling interval, thresholds and retry cap.
        clock: Returns the current Unix time in seconds.
    """

    def __init__(
        self,
        feeds: Iterable[FeedConfig],
        price_service: PriceServiceClient,
        settings: FeedClientSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._feeds_by_id = build_feed_index(feeds)
        self._price_service = price_service
        self._settings = settings
        self._clock = clock

        self._state = ClientState()
        self._previous_prices: dict[str, Decimal] = {}
        self._listeners: list[Listener] = []

        self._poll_seq = 0
        self._applied_seq = 0
        self._in_flight = 0
        self._outcome = ClientPhase.IDLE
        self._running = False
        self._stopped = False
        self._timer_task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._backoff_task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._poll_tasks: set[asyncio.Task] = set()  # type: ignore[type-arg]

    # ──────────────────────────────────────────────
    # Read-only accessors
    # ──────────────────────────────────────────────

    @property
    def feeds(self) -> list[FeedConfig]:
        return list(self._feeds_by_id.values())

    @property
    def settings(self) -> FeedClientSettings:
        return self._settings

    @property
    def phase(self) -> ClientPhase:
        return self._state.phase

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def has_pending_backoff(self) -> bool:
        return self._backoff_task is not None and not self._backoff_task.done()

    def snapshot(self) -> ClientSnapshot:
        """Return an immutable view of the current state."""
        return ClientSnapshot.from_state(self._state)

    def get_reading(self, feed_id: str) -> FormattedReading | None:
        """Return the current reading for a feed id, with or without ``0x``."""
        feed = self._feeds_by_id.get(normalize_feed_id(feed_id))
        if feed is None:
            return None
        return self._state.readings.get(feed.feed_id)

    def validate(self, feed_id: str) -> ValidationResult | None:
        """Validate the current reading for a feed, or None if there is none."""
        reading = self.get_reading(feed_id)
        if reading is None:
            return None
        return validate_reading(reading, self._settings)

    def validate_all(self) -> dict[str, ValidationResult]:
        """Validation results for every feed that currently has a reading."""
        return {
            feed_id: validate_reading(reading, self._settings)
            for feed_id, reading in self._state.readings.items()
        }

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every state change.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # ──────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────

    async def start(self) -> None:
        """Begin polling. Without real-time updates only refresh() polls."""
        if self._running:
            logger.warning("feed_client_already_running")
            return
        self._running = True
        self._stopped = False

        if self._settings.enable_real_time_updates:
            self._spawn_poll("initial")
            self._timer_task = asyncio.create_task(self._timer_loop())

        logger.info(
            "feed_client_started",
            feeds=len(self._feeds_by_id),
            refresh_interval_ms=self._settings.refresh_interval_ms,
            real_time=self._settings.enable_real_time_updates,
        )

    async def stop(self) -> None:
        """Cancel the timer, the pending backoff and every in-flight poll."""
        self._running = False
        self._stopped = True

        tasks = [
            task
            for task in (self._timer_task, self._backoff_task, *self._poll_tasks)
            if task is not None
        ]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        self._timer_task = None
        self._backoff_task = None
        self._poll_tasks.clear()
        logger.info("feed_client_stopped", cancelled_tasks=len(tasks))

    async def refresh(self) -> ClientSnapshot:
        """Poll immediately, outside the timer and backoff schedule."""
        if self._stopped:
            logger.warning("feed_refresh_after_stop")
            return self.snapshot()
        self._state.loading = True
        await self._notify()
        try:
            return await self.poll(trigger="manual")
        finally:
            self._state.loading = False

    # ──────────────────────────────────────────────
    # Polling
    # ──────────────────────────────────────────────

    async def poll(self, trigger: str = "direct") -> ClientSnapshot:
        """Fetch all configured feeds in one request and apply the outcome.

        Price service failures, including readings that pass the schema but
        cannot be decoded, are recorded in the error state, never raised.
        """
        if self._stopped:
            logger.warning("feed_poll_after_stop", trigger=trigger)
            return self.snapshot()

        self._poll_seq += 1
        seq = self._poll_seq
        self._in_flight += 1
        self._sync_phase()

        feed_ids = [feed.feed_id for feed in self._feeds_by_id.values()]
        with structlog.contextvars.bound_contextvars(poll_seq=seq, trigger=trigger):
            try:
                try:
                    raw_readings = await self._price_service.fetch_latest_price_feeds(
                        feed_ids
                    )
                    now = self._clock()
                    decoded, dropped = self._decode(raw_readings, now)
                finally:
                    self._in_flight -= 1
                    self._sync_phase()
            except FeedError as exc:
                await self._apply_failure(seq, exc)
            else:
                await self._apply_success(seq, decoded, dropped, now)

        return self.snapshot()

    def _sync_phase(self) -> None:
        """POLLING while any poll is in flight, else the last applied outcome."""
        self._state.phase = ClientPhase.POLLING if self._in_flight else self._outcome

    def _decode(
        self, raw_readings: Sequence[RawReading], now: float
    ) -> tuple[dict[str, FormattedReading], int]:
        """Decode readings for configured feeds, keyed by canonical id.

        Raises:
            ParsingError: A reading passed the schema but cannot be decoded.
        """
        decoded: dict[str, FormattedReading] = {}
        dropped = 0
        for raw in raw_readings:
            feed = self._feeds_by_id.get(normalize_feed_id(raw.id))
            if feed is None:
                dropped += 1
                continue
            try:
                decoded[feed.canonical_id] = format_reading(
                    raw,
                    feed,
                    now=now,
                    staleness_threshold_seconds=self._settings.staleness_threshold_seconds,
                    previous_price=self._previous_prices.get(feed.canonical_id),
                )
            except (ArithmeticError, ValueError, OSError) as exc:
                raise ParsingError(
                    f"Cannot decode price for {feed.symbol}: {exc!r}",
                    feed_id=feed.feed_id,
                ) from exc
        return decoded, dropped

    def _accepts(self, seq: int) -> bool:
        """Claim the right to apply a poll outcome; False if it is outdated."""
        if self._stopped:
            return False
        if seq <= self._applied_seq:
            logger.info(
                "feed_poll_result_discarded",
                applied_seq=self._applied_seq,
            )
            return False
        self._applied_seq = seq
        return True

    async def _apply_success(
        self,
        seq: int,
        decoded: dict[str, FormattedReading],
        dropped: int,
        now: float,
    ) -> None:
        if not self._accepts(seq):
            return

        for canonical_id, reading in decoded.items():
            self._previous_prices[canonical_id] = reading.price

        state = self._state
        state.readings = {
            feed.feed_id: decoded[canonical_id]
            for canonical_id, feed in self._feeds_by_id.items()
            if canonical_id in decoded
        }
        state.last_update = now
        state.is_connected = True
        state.retry_count = 0
        state.error = None
        state.loading = False
        self._outcome = ClientPhase.SUCCESS
        self._sync_phase()
        state.stats = replace(state.stats, total_polls=state.stats.total_polls + 1)

        self._cancel_backoff()
        logger.debug(
            "feed_poll_succeeded",
            readings=len(state.readings),
            dropped=dropped,
        )
        await self._notify()

    async def _apply_failure(self, seq: int, exc: FeedError) -> None:
        if not self._accepts(seq):
            return

        state = self._state
        error = exc.to_state(self._clock())
        prior_retries = state.retry_count

        state.readings = {
            feed_id: replace(reading, is_stale=True)
            for feed_id, reading in state.readings.items()
        }
        state.is_connected = False
        state.error = error
        state.retry_count = prior_retries + 1
        state.loading = False
        self._outcome = ClientPhase.FAILURE
        self._sync_phase()
        state.stats = PollStats(
            total_polls=state.stats.total_polls + 1,
            error_count=state.stats.error_count + 1,
        )

        logger.warning(
            "feed_poll_failed",
            kind=error.kind.value,
            error=error.message,
            retry_count=state.retry_count,
        )

        if self._running and should_schedule_retry(
            error, prior_retries, self._settings.max_retries
        ):
            self._schedule_backoff(backoff_delay_ms(prior_retries))
        elif self._running and error.retryable:
            logger.warning(
                "feed_retries_exhausted",
                max_retries=self._settings.max_retries,
            )

        await self._notify()

    # ──────────────────────────────────────────────
    # Timers
    # ──────────────────────────────────────────────

    def _spawn_poll(self, trigger: str) -> None:
        task = asyncio.create_task(self._run_poll(trigger))
        self._poll_tasks.add(task)
        task.add_done_callback(self._poll_tasks.discard)

    async def _run_poll(self, trigger: str) -> None:
        try:
            await self.poll(trigger=trigger)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("feed_poll_crashed", trigger=trigger)

    async def _timer_loop(self) -> None:
        """Fixed-period timer. The period does not adapt to poll duration."""
        interval = self._settings.refresh_interval_ms / 1000
        while self._running:
            await asyncio.sleep(interval)
            if self._running:
                self._spawn_poll("interval")

    def _schedule_backoff(self, delay_ms: int) -> None:
        self._cancel_backoff()
        self._backoff_task = asyncio.create_task(self._backoff_wait(delay_ms))
        logger.info("feed_backoff_scheduled", delay_ms=delay_ms)

    async def _backoff_wait(self, delay_ms: int) -> None:
        await asyncio.sleep(delay_ms / 1000)
        self._backoff_task = None
        if self._running:
            self._spawn_poll("backoff")

    def _cancel_backoff(self) -> None:
        if self._backoff_task is not None:
            self._backoff_task.cancel()
            self._backoff_task = None

    # ──────────────────────────────────────────────
    # Notifications
    # ──────────────────────────────────────────────

    async def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.snapshot()
        for listener in list(self._listeners):
            try:
                result = listener(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.warning("feed_listener_failed", exc_info=True)
