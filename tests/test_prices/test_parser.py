"""Tests for the day-ahead document parser.

Verifies:
- Points are produced in document order with hour = position
- Position 24 rolls over to hour 0 of the following date
- Amounts are converted from EUR/MWh to c/kWh (divided by 10)
- Unknown elements and fields are ignored, namespaces are stripped
- Malformed input raises ParseError and returns nothing
- Truncated input ends the sequence without error
"""

from datetime import date
from decimal import Decimal

import pytest

from conftest import build_document
from elcron.exceptions import ParseError
from elcron.models import PricePoint
from elcron.prices.parser import parse_price_document, sort_price_points

PLAIN_DOCUMENT = """
    <root>
        <end>2021-01-01T00:00:00Z</end>
        <Point>
            <position>1</position>
            <price.amount>10.0</price.amount>
        </Point>
        <Point>
            <position>2</position>
            <price.amount>20.0</price.amount>
        </Point>
        <Point>
            <position>3</position>
            <price.amount>30.0</price.amount>
        </Point>
        <end>2021-01-02T00:00:00Z</end>
        <Point>
            <position>4</position>
            <price.amount>40.0</price.amount>
        </Point>
        <Point>
            <position>5</position>
            <price.amount>50.0</price.amount>
        </Point>
        <DoNotInclude>
            <position>6</position>
            <price.amount>60.0</price.amount>
        </DoNotInclude>
    </root>
"""


class TestParsePriceDocument:
    def test_plain_document(self) -> None:
        prices = parse_price_document(PLAIN_DOCUMENT)

        assert len(prices) == 5
        assert prices[0] == PricePoint(date(2021, 1, 1), 1, Decimal("1"))
        assert prices[4] == PricePoint(date(2021, 1, 2), 5, Decimal("5"))

    def test_full_day_rolls_position_24_into_next_date(self) -> None:
        amounts = ["100"] * 23 + ["24.0"]
        document = build_document([("2024-01-01T23:00Z", amounts)])

        prices = parse_price_document(document)

        assert len(prices) == 24
        assert [p.hour for p in prices[:23]] == list(range(1, 24))
        assert all(p.date == date(2024, 1, 1) for p in prices[:23])
        assert prices[0].price == Decimal("10")
        assert prices[23] == PricePoint(date(2024, 1, 2), 0, Decimal("2.4"))

    def test_rollover_crosses_month_and_year(self) -> None:
        document = build_document([("2023-12-31T23:00Z", ["1"] * 24)])

        prices = parse_price_document(document)

        assert prices[-1].slot == (date(2024, 1, 1), 0)

    def test_point_count_matches_point_blocks(self) -> None:
        document = build_document(
            [
                ("2024-03-01T23:00Z", ["50"] * 24),
                ("2024-03-02T23:00Z", ["60"] * 24),
            ]
        )

        prices = parse_price_document(document)

        assert len(prices) == document.count("<Point>") == 48
        rollovers = [p for p in prices if p.hour == 0]
        assert [p.date for p in rollovers] == [date(2024, 3, 2), date(2024, 3, 3)]

    def test_each_end_element_starts_a_new_date(self) -> None:
        document = build_document(
            [("2024-03-01T23:00Z", ["1", "2"]), ("2024-03-02T23:00Z", ["3"])]
        )

        prices = parse_price_document(document)

        assert [p.slot for p in prices] == [
            (date(2024, 3, 1), 1),
            (date(2024, 3, 1), 2),
            (date(2024, 3, 2), 1),
        ]

    def test_parsing_is_idempotent(self) -> None:
        document = build_document([("2024-01-01T23:00Z", ["12.34"] * 24)])

        assert parse_price_document(document) == parse_price_document(document)

    def test_negative_and_fractional_amounts(self) -> None:
        document = build_document([("2024-05-12T22:00Z", ["-5.37", "0.01", "123.45"])])

        prices = parse_price_document(document)

        assert [p.price for p in prices] == [
            Decimal("-0.537"),
            Decimal("0.001"),
            Decimal("12.345"),
        ]

    def test_unknown_fields_inside_point_are_ignored(self) -> None:
        document = """
            <root>
                <end>2024-01-01T23:00Z</end>
                <Point>
                    <position>7</position>
                    <quantity>99</quantity>
                    <price.amount>70</price.amount>
                </Point>
            </root>
        """

        prices = parse_price_document(document)

        assert prices == [PricePoint(date(2024, 1, 1), 7, Decimal("7"))]

    def test_document_without_points_yields_nothing(self) -> None:
        document = build_document([])

        assert parse_price_document(document) == []

    def test_empty_input_yields_nothing(self) -> None:
        assert parse_price_document("") == []


class TestTruncatedInput:
    def test_truncated_document_keeps_completed_points(self) -> None:
        document = build_document([("2024-01-01T23:00Z", ["10", "20", "30"])])
        cut = document.index("<Point><position>3")

        prices = parse_price_document(document[:cut])

        assert [p.hour for p in prices] == [1, 2]

    def test_open_point_at_end_of_input_is_dropped(self) -> None:
        document = build_document([("2024-01-01T23:00Z", ["10", "20"])])
        cut = document.index("<price.amount>20")

        prices = parse_price_document(document[:cut])

        assert [p.hour for p in prices] == [1]


class TestMalformedInput:
    @pytest.mark.parametrize(
        "position",
        ["abc", "1.5", "", "0", "25", "-1"],
    )
    def test_invalid_position(self, position: str) -> None:
        document = f"""
            <root>
                <end>2024-01-01T23:00Z</end>
                <Point><position>1</position><price.amount>1</price.amount></Point>
                <Point><position>{position}</position><price.amount>1</price.amount></Point>
            </root>
        """

        with pytest.raises(ParseError):
            parse_price_document(document)

    @pytest.mark.parametrize("amount", ["abc", "", "1,5", "NaN", "Infinity"])
    def test_invalid_price_amount(self, amount: str) -> None:
        document = build_document([("2024-01-01T23:00Z", ["10", amount])])

        with pytest.raises(ParseError):
            parse_price_document(document)

    @pytest.mark.parametrize("end", ["yesterday", "2024-13-01T23:00Z", ""])
    def test_invalid_date(self, end: str) -> None:
        document = build_document([(end, ["10"])])

        with pytest.raises(ParseError):
            parse_price_document(document)

    def test_point_before_any_end(self) -> None:
        document = """
            <root>
                <Point><position>1</position><price.amount>1</price.amount></Point>
                <end>2024-01-01T23:00Z</end>
            </root>
        """

        with pytest.raises(ParseError):
            parse_price_document(document)

    def test_mismatched_tags(self) -> None:
        document = """
            <root>
                <end>2024-01-01T23:00Z</end>
                <Point><position>1</position><price.amount>1</price.amount></Point>
                <Point><position>2</wrong></Point>
            </root>
        """

        with pytest.raises(ParseError):
            parse_price_document(document)


class TestSortPricePoints:
    def test_sorts_by_date_then_hour(self) -> None:
        points = [
            PricePoint(date(2024, 1, 2), 0, Decimal("3")),
            PricePoint(date(2024, 1, 1), 23, Decimal("2")),
            PricePoint(date(2024, 1, 1), 1, Decimal("1")),
        ]

        ordered = sort_price_points(points)

        assert [p.price for p in ordered] == [Decimal("1"), Decimal("2"), Decimal("3")]
