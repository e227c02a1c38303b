"""Shared test fixtures for the elcron price trigger service."""

from datetime import datetime, timedelta

import pytest

from elcron.config import AppSettings, JobSettings, SchedulerSettings, StorageSettings

_NS = "urn:iec62325.351:tc57wg16:451-3:publicationdocument:7:3"


def build_document(series: list[tuple[str, list[str]]], namespace: str = _NS) -> str:
    """Build an A44 day-ahead document.

    Each series is (end timestamp, price amounts); amounts get positions
    1..n in order.
    """
    parts = [
        '<?xml version="1.0" encoding="UTF-8"?>',
        f'<Publication_MarketDocument xmlns="{namespace}">',
        "  <type>A44</type>",
        "  <period.timeInterval>",
        "    <start>2000-01-01T23:00Z</start>",
        "    <end>2000-01-02T23:00Z</end>",
        "  </period.timeInterval>",
    ]
    for end, amounts in series:
        parts.append("  <TimeSeries><Period>")
        parts.append(f"    <timeInterval><start>x</start><end>{end}</end></timeInterval>")
        parts.append("    <resolution>PT60M</resolution>")
        for position, amount in enumerate(amounts, 1):
            parts.append(
                f"    <Point><position>{position}</position>"
                f"<price.amount>{amount}</price.amount></Point>"
            )
        parts.append("  </Period></TimeSeries>")
    parts.append("</Publication_MarketDocument>")
    return "\n".join(parts)


class FakeClock:
    """Wall clock that only moves when the code under test sleeps."""

    def __init__(self, now: datetime) -> None:
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> datetime:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def mock_settings() -> AppSettings:
    """Return AppSettings with test defaults (dummy API key, no storage)."""
    return AppSettings(
        api_key="test-api-key",  # type: ignore[arg-type]
        area="10YFI-1--------U",
        log_level="DEBUG",
        scheduler=SchedulerSettings(publication_hour=14, error_backoff_seconds=60),
        jobs=JobSettings(path="elcron-test", dry_run=True),
        storage=StorageSettings(enabled=False),
    )
