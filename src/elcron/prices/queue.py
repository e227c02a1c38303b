"""Forward-looking FIFO of upcoming hourly prices.

The queue is owned by the HourlyScheduler for its whole lifetime and is
never shared, so it carries no lock. Ordering and uniqueness of (date, hour)
slots are maintained structurally by merge(): points only ever enter at the
back and only when they are strictly later than the current back.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Iterable, Iterator
from datetime import datetime

from elcron.exceptions import QueueEmptyError
from elcron.logging import get_logger
from elcron.models import PricePoint, slot_of

logger = get_logger(__name__)


class PriceQueue:
    """Ordered, deduplicated buffer of PricePoints keyed by (date, hour)."""

    def __init__(self, points: Iterable[PricePoint] = ()) -> None:
        self._points: deque[PricePoint] = deque()
        self._last_popped: PricePoint | None = None
        for point in points:
            self._append(point)

    def __len__(self) -> int:
        return len(self._points)

    def __bool__(self) -> bool:
        return bool(self._points)

    def __iter__(self) -> Iterator[PricePoint]:
        return iter(self._points)

    def __repr__(self) -> str:
        return f"PriceQueue({list(self._points)!r})"

    @property
    def first(self) -> PricePoint | None:
        return self._points[0] if self._points else None

    @property
    def last(self) -> PricePoint | None:
        return self._points[-1] if self._points else None

    def merge(self, new_points: Iterable[PricePoint], now: datetime) -> int:
        """Append the part of new_points that lies beyond what is queued.

        new_points must be sorted by (date, hour).

        - Empty queue: points before the current wall-clock hour are
          dropped, so the queue starts at "now" rather than at midnight.
          Points not later than the last popped point are dropped too, so
          a dispatched hour is never queued again.
        - Non-empty queue: only points strictly later than the last queued
          (date, hour) are kept. The already-queued overlap of a refetch is
          skipped this way, including a later date whose hour is smaller
          than the last queued hour.

        Points that are not later than the point appended before them are
        skipped too, so duplicated series in one document never queue twice.

        Returns:
            Number of points appended.
        """
        floor = slot_of(now)
        appended = 0
        for point in new_points:
            back = self.last
            if back is None:
                if point.slot < floor:
                    continue
                if self._last_popped is not None and point.slot <= self._last_popped.slot:
                    continue
            elif point.slot <= back.slot:
                continue
            self._points.append(point)
            appended += 1

        logger.debug(
            "price_queue_merged",
            appended=appended,
            size=len(self._points),
            first=str(self.first) if self.first else None,
            last=str(self.last) if self.last else None,
        )
        return appended

    def pop_front(self) -> PricePoint:
        """Remove and return the earliest queued point.

        Raises:
            QueueEmptyError: If the queue holds no points.
        """
        if not self._points:
            raise QueueEmptyError("No queued prices to dispatch")
        self._last_popped = self._points.popleft()
        return self._last_popped

    def push_front(self, point: PricePoint) -> None:
        """Put back a point that was popped before its hour arrived."""
        first = self.first
        if first is not None and point.slot >= first.slot:
            raise ValueError(f"{point} is not earlier than queue front {first}")
        self._points.appendleft(point)

    def _append(self, point: PricePoint) -> None:
        last = self.last
        if last is not None and point.slot <= last.slot:
            raise ValueError(f"{point} is not later than queue back {last}")
        self._points.append(point)
