"""Tests for PriceDatabase and PriceStore using a temporary SQLite file."""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest

from elcron.data.database import PriceDatabase
from elcron.data.store import PriceStore
from elcron.models import PricePoint


def _p(day: int, hour: int, price: str) -> PricePoint:
    return PricePoint(date(2024, 1, day), hour, Decimal(price))


class TestPriceDatabase:
    @pytest.mark.asyncio
    async def test_creates_schema_and_parent_directory(self, tmp_path: Path) -> None:
        db_path = tmp_path / "nested" / "elcron.db"

        async with PriceDatabase(str(db_path)) as database:
            cursor = await database.db.execute(
                "SELECT name FROM sqlite_master WHERE type = 'table' ORDER BY name"
            )
            tables = [row[0] for row in await cursor.fetchall()]

        assert db_path.exists()
        assert tables == ["spot"]

    def test_db_property_requires_connection(self) -> None:
        with pytest.raises(RuntimeError):
            PriceDatabase(":memory:").db


class TestPriceStore:
    @pytest.mark.asyncio
    async def test_insert_and_read_back_as_decimal(self, tmp_path: Path) -> None:
        async with PriceDatabase(str(tmp_path / "elcron.db")) as database:
            store = PriceStore(database)

            inserted = await store.insert_prices([_p(1, 23, "5.012"), _p(2, 0, "-0.3")])
            prices = await store.get_prices()

        assert inserted == 2
        assert prices == [_p(1, 23, "5.012"), _p(2, 0, "-0.3")]
        assert isinstance(prices[0].price, Decimal)

    @pytest.mark.asyncio
    async def test_duplicate_date_hour_is_ignored(self, tmp_path: Path) -> None:
        async with PriceDatabase(str(tmp_path / "elcron.db")) as database:
            store = PriceStore(database)
            await store.insert_prices([_p(1, 10, "1")])

            inserted = await store.insert_prices([_p(1, 10, "9"), _p(1, 11, "2")])
            prices = await store.get_prices()

        assert inserted == 1
        assert prices == [_p(1, 10, "1"), _p(1, 11, "2")]

    @pytest.mark.asyncio
    async def test_get_prices_filters_by_date(self, tmp_path: Path) -> None:
        async with PriceDatabase(str(tmp_path / "elcron.db")) as database:
            store = PriceStore(database)
            await store.insert_prices([_p(1, 5, "1"), _p(2, 5, "2"), _p(3, 5, "3")])

            prices = await store.get_prices(start=date(2024, 1, 2), end=date(2024, 1, 2))

        assert prices == [_p(2, 5, "2")]

    @pytest.mark.asyncio
    async def test_empty_insert_is_a_no_op(self, tmp_path: Path) -> None:
        async with PriceDatabase(str(tmp_path / "elcron.db")) as database:
            assert await PriceStore(database).insert_prices([]) == 0
