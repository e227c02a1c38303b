"""Typed SQLite read/write abstraction for the spot price history.

The history is a write-only log from the scheduler's point of view: it is
never used to rebuild the in-memory queue after a restart.

CRITICAL: Prices are stored as TEXT in SQLite and restored as Decimal on read.
"""

from datetime import date
from decimal import Decimal

from elcron.data.database import PriceDatabase
from elcron.logging import get_logger
from elcron.models import PricePoint

logger = get_logger(__name__)


class PriceStore:
    """Async SQLite store for hourly spot prices.

    Usage:
        async with PriceDatabase("elcron.db") as database:
            store = PriceStore(database)
            inserted = await store.insert_prices(points)
    """

    def __init__(self, database: PriceDatabase) -> None:
        self._database = database

    async def insert_prices(self, points: list[PricePoint]) -> int:
        """Insert prices, ignoring (date, hour) pairs already stored.

        Every refetch overlaps the previous one, so duplicates are the
        normal case and are skipped by INSERT OR IGNORE.
        Returns the number of actually inserted rows.
        """
        if not points:
            return 0

        data = [(p.date.isoformat(), p.hour, str(p.price)) for p in points]
        cursor = await self._database.db.executemany(
            "INSERT OR IGNORE INTO spot (date, hour, price) VALUES (?, ?, ?)",
            data,
        )
        await self._database.db.commit()

        inserted = cursor.rowcount
        logger.debug("inserted_prices", total=len(points), inserted=inserted)
        return inserted

    async def get_prices(
        self, start: date | None = None, end: date | None = None
    ) -> list[PricePoint]:
        """Return stored prices ordered by (date, hour), optionally bounded by date (inclusive)."""
        query = "SELECT date, hour, price FROM spot"
        conditions: list[str] = []
        params: list[str] = []
        if start is not None:
            conditions.append("date >= ?")
            params.append(start.isoformat())
        if end is not None:
            conditions.append("date <= ?")
            params.append(end.isoformat())
        if conditions:
            query += " WHERE " + " AND ".join(conditions)
        query += " ORDER BY date, hour"

        cursor = await self._database.db.execute(query, params)
        rows = await cursor.fetchall()
        return [
            PricePoint(date=date.fromisoformat(row[0]), hour=row[1], price=Decimal(row[2]))
            for row in rows
        ]
