"""Async SQLite database manager for the spot price history.

Uses aiosqlite for non-blocking database operations with WAL mode so the
history file can be read by other tools while the service writes to it.
"""

import os
from typing import Self

import aiosqlite

from elcron.logging import get_logger

logger = get_logger(__name__)

_CREATE_TABLES_SQL = """
CREATE TABLE IF NOT EXISTS spot (
    id INTEGER PRIMARY KEY,
    date TEXT NOT NULL,
    hour INTEGER NOT NULL,
    price TEXT NOT NULL,
    UNIQUE(date, hour)
);
"""


class PriceDatabase:
    """Async SQLite connection manager for the price history.

    Usage:
        async with PriceDatabase("elcron.db") as db:
            await db.db.execute("SELECT ...")
    """

    def __init__(self, db_path: str = "elcron.db") -> None:
        self._db_path = db_path
        self._connection: aiosqlite.Connection | None = None

    @property
    def db(self) -> aiosqlite.Connection:
        """Access the raw aiosqlite connection.

        Raises RuntimeError if not connected.
        """
        if self._connection is None:
            raise RuntimeError("Database not connected. Call connect() first.")
        return self._connection

    async def connect(self) -> None:
        """Open database connection, configure pragmas, and create schema.

        Creates the parent directory if it does not exist.
        """
        db_dir = os.path.dirname(self._db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)

        self._connection = await aiosqlite.connect(self._db_path)

        await self._connection.execute("PRAGMA journal_mode=WAL")
        await self._connection.execute("PRAGMA synchronous=NORMAL")

        await self._create_tables()

        logger.info("price_db_connected", db_path=self._db_path)

    async def close(self) -> None:
        """Close the database connection if open."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None
            logger.info("price_db_closed", db_path=self._db_path)

    async def _create_tables(self) -> None:
        await self.db.executescript(_CREATE_TABLES_SQL)
        await self.db.commit()

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
