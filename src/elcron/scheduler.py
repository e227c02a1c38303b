"""Hourly scheduler -- keeps the price queue aligned with the wall clock.

Each cycle runs the same steps:
  1. FETCH: Refetch the day-ahead document if the queue is empty or this is
     the feed's publication hour, then parse, sort and merge into the queue
  2. DISPATCH: Pop the price for the current hour, checking it against the
     wall clock
  3. TRIGGER: Reload the job file and run every job the price triggers
  4. SLEEP: Wait until the top of the next hour

The queue is owned by the scheduler and only touched from its loop, so no
lock is needed. The fetch is awaited inline: while it is outstanding nothing
is dispatched and nothing sleeps.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from datetime import datetime, timedelta
from enum import Enum
from typing import TYPE_CHECKING

import structlog

from elcron.config import SchedulerSettings
from elcron.exceptions import DesyncWarning, FetchError, JobFileError, ParseError, QueueEmptyError
from elcron.logging import get_logger
from elcron.models import CycleReport, JobDefinition, PricePoint, slot_of
from elcron.prices.feed import PriceFeed, request_window
from elcron.prices.parser import parse_price_document, sort_price_points
from elcron.prices.queue import PriceQueue
from elcron.triggers.engine import TriggerEngine

if TYPE_CHECKING:
    from elcron.data.store import PriceStore

logger = get_logger(__name__)

JobSource = Callable[[], list[JobDefinition]]
Clock = Callable[[], datetime]
Sleeper = Callable[[float], Awaitable[None]]


class SchedulerState(str, Enum):
    """Where the scheduler is in its cycle."""

    IDLE = "idle"
    FETCHING = "fetching"
    DISPATCHING = "dispatching"
    SLEEPING = "sleeping"


def next_hour(moment: datetime) -> datetime:
    """Top of the hour following `moment` (minute, second, microsecond zero)."""
    return moment.replace(minute=0, second=0, microsecond=0) + timedelta(hours=1)


class HourlyScheduler:
    """Drives the fetch-dispatch-trigger-sleep loop.

    Args:
        settings: Publication hour and error handling policy.
        feed: Source of day-ahead market documents.
        job_source: Returns the current job list. Called once at startup
            (errors are fatal) and again before every dispatch (errors mean
            "no jobs" for that hour).
        trigger_engine: Evaluates and runs jobs for the dispatched price.
        store: Optional price history; every fetched price is offered to it.
        clock: Returns the current local wall-clock time.
        sleep: Awaitable sleep, replaced in tests.
    """

    def __init__(
        self,
        settings: SchedulerSettings,
        feed: PriceFeed,
        job_source: JobSource,
        trigger_engine: TriggerEngine,
        store: PriceStore | None = None,
        clock: Clock = datetime.now,
        sleep: Sleeper = asyncio.sleep,
    ) -> None:
        self._settings = settings
        self._feed = feed
        self._job_source = job_source
        self._trigger_engine = trigger_engine
        self._store = store
        self._clock = clock
        self._sleep = sleep
        self._queue = PriceQueue()
        self._state = SchedulerState.IDLE
        self._running = False

    @property
    def queue(self) -> PriceQueue:
        return self._queue

    @property
    def state(self) -> SchedulerState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Validate the job source, then run cycles until stop() is called.

        Raises:
            JobFileError: If the job source is missing, empty or invalid at
                startup.
            QueueEmptyError: If no price is available for the current hour
                and settings.halt_on_empty_queue is set.
        """
        jobs = self._job_source()
        logger.info(
            "scheduler_starting",
            jobs=len(jobs),
            publication_hour=self._settings.publication_hour,
        )
        self._running = True
        try:
            await self._run_loop()
        finally:
            self._running = False
            self._state = SchedulerState.IDLE
            logger.info("scheduler_stopped")

    async def stop(self) -> None:
        """Signal the loop to stop after the current step.

        A fetch or command already in flight runs to completion.
        """
        logger.info("scheduler_stopping")
        self._running = False

    async def _run_loop(self) -> None:
        while self._running:
            try:
                report = await self.run_cycle()
            except QueueEmptyError as e:
                if self._settings.halt_on_empty_queue:
                    logger.critical("price_queue_empty_halting", error=str(e))
                    raise
                logger.critical(
                    "price_queue_empty",
                    error=str(e),
                    retry_in_seconds=self._settings.error_backoff_seconds,
                )
                await self._backoff()
                continue
            except Exception as e:
                logger.error("scheduler_cycle_error", error=str(e), exc_info=True)
                await self._backoff()
                continue

            if self._running:
                await self.sleep_until_next_hour(report.started_at)

    async def _backoff(self) -> None:
        if self._running:
            self._state = SchedulerState.SLEEPING
            await self._sleep(self._settings.error_backoff_seconds)

    async def run_cycle(self) -> CycleReport:
        """Run one fetch-dispatch-trigger cycle without sleeping.

        Fetch and parse failures are logged and absorbed: dispatch then
        proceeds with whatever is already queued.

        Raises:
            QueueEmptyError: If there is no queued price to dispatch.
        """
        now = self._clock()
        report = CycleReport(started_at=now)

        with structlog.contextvars.bound_contextvars(cycle_hour=f"{now:%Y-%m-%d %H}:00"):
            if self._refetch_due(now):
                report.refetched = True
                try:
                    report.merged = await self._refetch(now)
                except (FetchError, ParseError) as e:
                    logger.error("price_refetch_failed", error=str(e), exc_info=True)

            self._state = SchedulerState.DISPATCHING
            try:
                point = self._pop_due(now, report)
                if point is None:
                    return report

                report.dispatched = point
                logger.info(
                    "price_dispatched",
                    date=point.date.isoformat(),
                    hour=point.hour,
                    price=str(point.price),
                    queued=len(self._queue),
                )
                jobs = self._load_jobs()
                report.results = await self._trigger_engine.evaluate_and_run(
                    jobs, point.price
                )
                report.triggered = [r.job for r in report.results]
            finally:
                self._state = SchedulerState.IDLE

        return report

    def _refetch_due(self, now: datetime) -> bool:
        return not self._queue or now.hour == self._settings.publication_hour

    async def _refetch(self, now: datetime) -> int:
        """Fetch, parse, sort and merge. Returns the number of queued points.

        Raises:
            FetchError: If the document cannot be downloaded.
            ParseError: If the document is malformed.
        """
        self._state = SchedulerState.FETCHING
        window = request_window(now)
        document = await self._feed.fetch(window)
        points = sort_price_points(parse_price_document(document))

        merged = self._queue.merge(points, now)
        logger.info(
            "price_queue_refreshed",
            fetched=len(points),
            merged=merged,
            queued=len(self._queue),
        )

        await self._store_prices(points)
        return merged

    async def _store_prices(self, points: list[PricePoint]) -> None:
        if self._store is None or not points:
            return
        try:
            inserted = await self._store.insert_prices(points)
        except Exception as e:
            logger.error("price_store_failed", error=str(e), exc_info=True)
            return
        logger.debug("prices_stored", inserted=inserted, total=len(points))

    def _pop_due(self, now: datetime, report: CycleReport) -> PricePoint | None:
        """Pop the price for the current hour.

        Returns None when the queue front is still in the future; the point
        is put back and this hour is skipped. When the front is in the past,
        stale points are dropped up to the current hour; if the current hour
        itself is missing, the latest stale point is dispatched.

        Raises:
            QueueEmptyError: If the queue is empty.
        """
        point = self._queue.pop_front()
        current = slot_of(now)
        if point.slot == current:
            return point

        desync = DesyncWarning(point, now)
        report.desync = desync

        if desync.ahead:
            self._queue.push_front(point)
            logger.warning(
                "price_queue_desync",
                direction="ahead",
                front=str(point),
                note="Waiting for the wall clock to catch up",
            )
            return None

        skipped = 0
        while self._queue.first is not None and self._queue.first.slot <= current:
            point = self._queue.pop_front()
            skipped += 1
        logger.warning(
            "price_queue_desync",
            direction="behind",
            front=str(desync.point),
            dispatching=str(point),
            skipped=skipped,
            stale=point.slot != current,
        )
        return point

    def _load_jobs(self) -> list[JobDefinition]:
        try:
            return self._job_source()
        except JobFileError as e:
            logger.error("job_file_unavailable", error=str(e), note="Running with no jobs this hour")
            return []

    async def sleep_until_next_hour(self, since: datetime | None = None) -> None:
        """Sleep until the top of the hour after `since` (default: now).

        Sleeps again if the clock wakes up short of the target, so the next
        cycle never starts in the hour that was just serviced.
        """
        target = next_hour(since if since is not None else self._clock())
        self._state = SchedulerState.SLEEPING
        logger.info("scheduler_sleeping", until=target.isoformat())
        while True:
            remaining = (target - self._clock()).total_seconds()
            if remaining <= 0:
                break
            await self._sleep(remaining)
        self._state = SchedulerState.IDLE
