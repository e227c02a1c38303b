"""Abstract price feed interface.

The scheduler decides which day window to request; the feed only turns
that window into a document body. Keeping the HTTP details behind this
interface lets tests drive the scheduler with canned documents.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta


@dataclass(frozen=True)
class RequestWindow:
    """Day-ahead request window in the feed's local time."""

    start: datetime
    end: datetime


def request_window(now: datetime) -> RequestWindow:
    """Today 00:00 through tomorrow 23:00, anchored at `now`."""
    today = now.replace(hour=0, minute=0, second=0, microsecond=0)
    tomorrow = today + timedelta(days=1)
    return RequestWindow(start=today, end=tomorrow.replace(hour=23))


class PriceFeed(ABC):
    """Abstract base class for day-ahead market document sources."""

    @abstractmethod
    async def fetch(self, window: RequestWindow) -> str:
        """Return the raw market document covering `window`.

        Raises:
            FetchError: On any transport or HTTP failure.
        """
        ...

    async def close(self) -> None:
        """Release network resources. No-op by default."""
