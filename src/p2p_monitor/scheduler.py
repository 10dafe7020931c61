"""Sampling scheduler -- drives quote source -> selector -> history -> aggregator.

One explicit object owns the timer, the history store and the hourly
aggregator. Each tick:
  1. FETCH: both order book sides concurrently
  2. SELECT: one representative quote per side
  3. COMMIT: build a Sample, append to history, fold into the hourly bucket
  4. PERSIST: after every Nth successful tick, save the whole history

Ticks are serialized by a lock, so at most one tick mutates the history
and aggregator at a time. A failed fetch abandons the tick; nothing the
core raises stops the timer.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from p2p_monitor.analytics.hourly import HourlyAggregator
from p2p_monitor.analytics.strategy import StrategyAnalyzer, StrategyReport
from p2p_monitor.config import SamplingSettings
from p2p_monitor.data.history import HistoryStore
from p2p_monitor.data.store import SampleStore
from p2p_monitor.exceptions import AdapterFailure, InvalidConfiguration, PersistenceFailure
from p2p_monitor.exchange.client import QuoteSource
from p2p_monitor.exchange.types import bank_display_name
from p2p_monitor.logging import get_logger, tick_context
from p2p_monitor.market_data.quote_selector import select_representative_quote
from p2p_monitor.models import HourBucket, LiveQuote, OrderSide, Sample

logger = get_logger(__name__)


def _local_now() -> datetime:
    return datetime.now().astimezone()


class SchedulerState(str, Enum):
    """Sampling lifecycle state."""

    IDLE = "idle"
    ACTIVE = "active"


class StartResult(str, Enum):
    STARTED = "started"
    ALREADY_RUNNING = "already_running"


class StopResult(str, Enum):
    STOPPED = "stopped"
    NOT_RUNNING = "not_running"


@dataclass(frozen=True)
class SamplingConfig:
    """What to sample: minimum fiat amount and optional payment channel."""

    min_amount: int
    bank: str | None = None


@dataclass
class SchedulerStatus:
    """Point-in-time view of the scheduler for status endpoints."""

    state: SchedulerState
    config: SamplingConfig | None
    history_size: int
    successful_ticks: int
    failed_ticks: int
    last_sample_at: datetime | None
    interval_seconds: float

    @property
    def is_active(self) -> bool:
        return self.state is SchedulerState.ACTIVE

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "is_active": self.is_active,
            "min_amount": self.config.min_amount if self.config else None,
            "bank": self.config.bank if self.config else None,
            "bank_name": bank_display_name(self.config.bank) if self.config else None,
            "records_count": self.history_size,
            "successful_ticks": self.successful_ticks,
            "failed_ticks": self.failed_ticks,
            "last_sample_at": (
                self.last_sample_at.isoformat() if self.last_sample_at else None
            ),
            "interval_seconds": self.interval_seconds,
        }


class SamplingScheduler:
    """Periodic sampler with start/stop/status/tick operations.

    Args:
        quote_source: Order book source for both sides.
        history: Bounded sample history (owned, single writer).
        aggregator: Hourly statistics (owned, single writer).
        analyzer: Strategy analyzer used by analyze().
        store: Optional persistence gateway; None disables snapshots.
        settings: Interval and snapshot cadence.
        clock: Returns the local, timezone-aware time of a sample.
    """

    def __init__(
        self,
        quote_source: QuoteSource,
        history: HistoryStore,
        aggregator: HourlyAggregator,
        analyzer: StrategyAnalyzer,
        store: SampleStore | None = None,
        settings: SamplingSettings | None = None,
        clock: Callable[[], datetime] = _local_now,
    ) -> None:
        self._quote_source = quote_source
        self._history = history
        self._aggregator = aggregator
        self._analyzer = analyzer
        self._store = store
        self._settings = settings or SamplingSettings()
        self._clock = clock

        self._state = SchedulerState.IDLE
        self._config: SamplingConfig | None = None
        self._task: asyncio.Task | None = None  # type: ignore[type-arg]
        self._stop_event: asyncio.Event | None = None
        self._tick_lock = asyncio.Lock()
        self._save_lock = asyncio.Lock()

        self._tick_seq = 0
        self._successful_ticks = 0
        self._failed_ticks = 0
        self._last_sample_at: datetime | None = None

    # ──────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────

    async def start(self, min_amount: int, bank: str | None = None) -> StartResult:
        """Begin sampling: one immediate tick, then one tick per interval.

        Raises:
            InvalidConfiguration: If min_amount is not a positive integer.
        """
        config = self._validate(min_amount, bank)

        if self._state is SchedulerState.ACTIVE:
            logger.info(
                "sampling_already_running",
                min_amount=self._config.min_amount if self._config else None,
            )
            return StartResult.ALREADY_RUNNING

        self._config = config
        self._state = SchedulerState.ACTIVE
        stop_event = asyncio.Event()
        self._stop_event = stop_event
        logger.info(
            "sampling_started",
            min_amount=config.min_amount,
            bank=bank_display_name(config.bank),
            interval=self._settings.interval_seconds,
        )

        try:
            await self.tick()
        except Exception:
            # an error here must not leave the scheduler active without a timer
            logger.error("sampling_tick_error", exc_info=True)

        # stop() may have run while the first tick was in flight
        if self._state is SchedulerState.ACTIVE and self._stop_event is stop_event:
            self._task = asyncio.create_task(self._run_loop(stop_event))
        return StartResult.STARTED

    async def stop(self) -> StopResult:
        """Disarm the timer. An in-flight tick still commits its sample."""
        if self._state is SchedulerState.IDLE:
            return StopResult.NOT_RUNNING

        self._state = SchedulerState.IDLE
        if self._stop_event is not None:
            self._stop_event.set()
        self._stop_event = None

        task, self._task = self._task, None
        if task is not None:
            await task

        logger.info(
            "sampling_stopped",
            records=len(self._history),
            successful_ticks=self._successful_ticks,
            failed_ticks=self._failed_ticks,
        )
        return StopResult.STOPPED

    async def restore(self) -> int:
        """Seed history and hourly buckets from the persisted snapshot.

        Returns the number of samples loaded. A load failure is logged and
        the scheduler starts empty.
        """
        if self._store is None:
            return 0

        try:
            samples = await self._store.load_all()
        except PersistenceFailure as exc:
            logger.error("snapshot_load_failed", error=str(exc))
            return 0

        async with self._tick_lock:
            self._history.seed(samples)
            self._aggregator.rebuild(samples)
            latest = self._history.latest()
            self._last_sample_at = latest.timestamp if latest else None

        logger.info(
            "history_restored",
            loaded=len(samples),
            retained=len(self._history),
            hours_covered=self._aggregator.hours_covered,
        )
        return len(samples)

    async def shutdown(self) -> None:
        """Stop sampling and flush the history one last time."""
        await self.stop()
        if self._store is not None:
            await self._save_snapshot(self._history.samples())

    # ──────────────────────────────────────────────
    # Sampling
    # ──────────────────────────────────────────────

    async def tick(self) -> Sample | None:
        """Run one sampling step. Returns the committed sample, or None."""
        config = self._config
        if config is None:
            logger.warning("sampling_tick_without_config")
            return None

        async with self._tick_lock:
            self._tick_seq += 1
            with tick_context(self._tick_seq, config.min_amount, config.bank):
                sample = await self._sample_once(config)

            pending_snapshot: list[Sample] | None = None
            every = self._settings.snapshot_every_ticks
            if (
                sample is not None
                and self._store is not None
                and every > 0
                and self._successful_ticks % every == 0
            ):
                pending_snapshot = self._history.samples()

        if pending_snapshot is not None:
            await self._save_snapshot(pending_snapshot)
        return sample

    async def _sample_once(self, config: SamplingConfig) -> Sample | None:
        """FETCH, SELECT and COMMIT for one tick. Caller holds the tick lock."""
        buy_result, sell_result = await asyncio.gather(
            self._quote_source.fetch_side(OrderSide.BUY, config.min_amount, config.bank),
            self._quote_source.fetch_side(OrderSide.SELL, config.min_amount, config.bank),
            return_exceptions=True,
        )

        failures = [
            (side, result)
            for side, result in ((OrderSide.BUY, buy_result), (OrderSide.SELL, sell_result))
            if isinstance(result, BaseException)
        ]
        if failures:
            for side, error in failures:
                if not isinstance(error, AdapterFailure):
                    raise error
                logger.warning(
                    "sample_tick_failed",
                    side=side.value,
                    kind=error.kind.value,
                    error=str(error),
                )
            self._failed_ticks += 1
            return None

        buy = select_representative_quote(buy_result)  # type: ignore[arg-type]
        sell = select_representative_quote(sell_result)  # type: ignore[arg-type]
        if buy is None and sell is None:
            logger.warning(
                "sample_skipped_no_quotes",
                buy_ads=len(buy_result),  # type: ignore[arg-type]
                sell_ads=len(sell_result),  # type: ignore[arg-type]
            )
            return None

        sample = Sample.build(
            timestamp=self._clock(),
            buy=buy,
            sell=sell,
            min_amount=config.min_amount,
            bank=config.bank,
        )
        self._history.append(sample)
        self._aggregator.fold(sample)
        self._successful_ticks += 1
        self._last_sample_at = sample.timestamp

        logger.info(
            "sample_recorded",
            hour=sample.hour_of_day,
            buy_price=str(sample.buy_price),
            buy_position=buy.position if buy else None,
            sell_price=str(sample.sell_price),
            sell_position=sell.position if sell else None,
            spread_percent=str(round(sample.spread_percent, 2)),
            records=len(self._history),
        )
        return sample

    async def _run_loop(self, stop_event: asyncio.Event) -> None:
        """Fire tick() on every interval boundary until stop_event is set."""
        loop = asyncio.get_running_loop()
        interval = self._settings.interval_seconds
        next_fire = loop.time() + interval

        while not stop_event.is_set():
            delay = max(0.0, next_fire - loop.time())
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=delay)
                break
            except asyncio.TimeoutError:
                pass

            try:
                await self.tick()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.error("sampling_tick_error", exc_info=True)

            # an overrunning tick skips the boundaries it missed
            now = loop.time()
            next_fire += interval
            while next_fire <= now:
                next_fire += interval

    async def _save_snapshot(self, samples: list[Sample]) -> bool:
        """Hand a history copy to the store; failures are logged, not raised."""
        store = self._store
        if store is None:
            return False
        async with self._save_lock:
            try:
                saved = await store.save_all(samples)
            except PersistenceFailure as exc:
                logger.error("snapshot_save_failed", error=str(exc), samples=len(samples))
                return False
        logger.info("snapshot_saved", samples=saved)
        return True

    @staticmethod
    def _validate(min_amount: int, bank: str | None) -> SamplingConfig:
        if isinstance(min_amount, bool) or not isinstance(min_amount, int) or min_amount <= 0:
            raise InvalidConfiguration(
                f"min_amount must be a positive integer, got {min_amount!r}"
            )
        return SamplingConfig(min_amount=min_amount, bank=bank or None)

    # ──────────────────────────────────────────────
    # Reads
    # ──────────────────────────────────────────────

    @property
    def state(self) -> SchedulerState:
        return self._state

    def status(self) -> SchedulerStatus:
        """Return current state, config and history size."""
        return SchedulerStatus(
            state=self._state,
            config=self._config,
            history_size=len(self._history),
            successful_ticks=self._successful_ticks,
            failed_ticks=self._failed_ticks,
            last_sample_at=self._last_sample_at,
            interval_seconds=self._settings.interval_seconds,
        )

    def snapshot(self) -> tuple[HourBucket, ...]:
        """Hourly buckets sorted by hour."""
        return self._aggregator.snapshot()

    def analyze(self) -> StrategyReport:
        """Strategy analysis over the current hourly buckets."""
        return self._analyzer.analyze(self._aggregator.snapshot())

    def history(self, last_n: int | None = None) -> list[Sample]:
        """The last_n most recent samples, oldest first."""
        return self._history.history(last_n)

    def latest(self) -> Sample | None:
        return self._history.latest()

    async def quote(self, min_amount: int, bank: str | None = None) -> LiveQuote:
        """Fetch and select both sides now, leaving history and buckets untouched.

        Works in either state and does not wait for a running tick.

        Raises:
            InvalidConfiguration: If min_amount is not a positive integer.
            AdapterFailure: If either side cannot be fetched.
        """
        config = self._validate(min_amount, bank)
        buy_result, sell_result = await asyncio.gather(
            self._quote_source.fetch_side(OrderSide.BUY, config.min_amount, config.bank),
            self._quote_source.fetch_side(OrderSide.SELL, config.min_amount, config.bank),
            return_exceptions=True,
        )
        if isinstance(buy_result, BaseException):
            raise buy_result
        if isinstance(sell_result, BaseException):
            raise sell_result

        live = LiveQuote(
            fetched_at=self._clock(),
            min_amount=config.min_amount,
            bank=config.bank,
            buy=select_representative_quote(buy_result),
            sell=select_representative_quote(sell_result),
            buy_entries=tuple(buy_result),
            sell_entries=tuple(sell_result),
        )
        logger.debug(
            "live_quote_fetched",
            buy_ads=len(buy_result),
            sell_ads=len(sell_result),
            spread=str(live.spread) if live.spread is not None else None,
        )
        return live
