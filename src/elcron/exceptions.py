"""Custom exceptions for the elcron price trigger service.

All pipeline exceptions live here to avoid circular imports between the
price, trigger and scheduler modules.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from datetime import datetime

    from elcron.models import PricePoint


class ElcronError(Exception):
    """Base exception for all elcron errors."""


class ConfigError(ElcronError):
    """Raised when a required setting (API key, area code) is missing or invalid."""


class FetchError(ElcronError):
    """Raised when the day-ahead document cannot be downloaded."""


class ParseError(ElcronError):
    """Raised when a day-ahead document is malformed.

    No partial result accompanies this error: points parsed before the
    failure are discarded and the caller must request the document again.
    """


class QueueEmptyError(ElcronError):
    """Raised when a price is required for dispatch but the queue is empty."""


class JobFileError(ElcronError):
    """Raised when the job file is missing, empty or contains an invalid line."""


class JobExecutionError(ElcronError):
    """Raised when a triggered command fails to spawn or exits non-zero."""

    def __init__(self, command: str, message: str, returncode: int | None = None) -> None:
        super().__init__(f"{message}: {command}")
        self.command = command
        self.returncode = returncode


class DesyncWarning(ElcronError):
    """The queue's next-due price does not match the current wall-clock hour.

    Not raised by the scheduler. It is attached to the cycle report and
    logged so operators can see when the feed lagged or ran ahead.
    """

    def __init__(self, point: PricePoint, now: datetime) -> None:
        self.point = point
        self.now = now
        self.ahead = point.starts_at() > now
        direction = "ahead of" if self.ahead else "behind"
        super().__init__(
            f"Queued price {point} is {direction} wall clock "
            f"{now:%Y-%m-%d %H}:00"
        )
