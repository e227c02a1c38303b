"""Streaming parser for ENTSO-E day-ahead (A44) market documents.

Turns the document into an ordered list of hourly PricePoints in a single
forward pass over start/end element events. The parser is an explicit two
state machine:

  SEEKING   -- outside any Point; `end` elements update the current date
  IN_POINT  -- inside a Point; `position` and `price.amount` fill the draft

FEED CONVENTION: positions run 1..24. Position n is hour n of the current
date, except position 24 which is hour 0 of the following date.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from decimal import Decimal, InvalidOperation
from enum import Enum, auto
from xml.etree import ElementTree as ET

from elcron.exceptions import ParseError
from elcron.logging import get_logger
from elcron.models import PricePoint

logger = get_logger(__name__)

# EUR/MWh -> c/kWh
_PRICE_DIVISOR = Decimal("10")

_ROLLOVER_POSITION = 24


class _State(Enum):
    SEEKING = auto()
    IN_POINT = auto()


@dataclass
class _PointDraft:
    """Mutable PricePoint under construction while inside a Point block."""

    date: date
    hour: int = 0
    price: Decimal = Decimal("0")

    def set_position(self, raw: str | None) -> None:
        try:
            position = int((raw or "").strip())
        except ValueError as e:
            raise ParseError(f"Invalid position: {raw!r}") from e

        if position == _ROLLOVER_POSITION:
            self.hour = 0
            self.date = self.date + timedelta(days=1)
        elif 1 <= position < _ROLLOVER_POSITION:
            self.hour = position
        else:
            raise ParseError(f"Position out of range 1..24: {position}")

    def set_price(self, raw: str | None) -> None:
        try:
            amount = Decimal((raw or "").strip())
        except InvalidOperation as e:
            raise ParseError(f"Invalid price amount: {raw!r}") from e
        if not amount.is_finite():
            raise ParseError(f"Invalid price amount: {raw!r}")
        self.price = amount / _PRICE_DIVISOR

    def finish(self) -> PricePoint:
        return PricePoint(date=self.date, hour=self.hour, price=self.price)


def _local_name(tag: str) -> str:
    """Strip the XML namespace: '{urn:...}Point' -> 'Point'."""
    return tag.rsplit("}", 1)[-1]


def _parse_date(raw: str | None) -> date:
    """Keep the date part of an ISO timestamp like 2024-01-01T23:00Z."""
    text = (raw or "").strip().split("T", 1)[0]
    try:
        return date.fromisoformat(text)
    except ValueError as e:
        raise ParseError(f"Invalid date: {raw!r}") from e


def parse_price_document(document: str) -> list[PricePoint]:
    """Parse a day-ahead document into PricePoints in document order.

    The result is NOT re-sorted. Use sort_price_points() when a strict
    (date, hour) ordering is required.

    Input that ends with unclosed elements is treated as a normal end of
    the sequence. A Point still open at that moment is dropped.

    Raises:
        ParseError: On malformed markup, a malformed date, an unparseable
            position or price, a position outside 1..24, or a Point that
            appears before any `end` element. Nothing is returned in that
            case, not even points completed before the failure.
    """
    logger.debug("price_document_parse_started", size=len(document))

    parser = ET.XMLPullParser(events=("start", "end"))
    state = _State.SEEKING
    current_date: date | None = None
    draft: _PointDraft | None = None
    prices: list[PricePoint] = []

    try:
        parser.feed(document.lstrip())
        for event, element in parser.read_events():
            name = _local_name(element.tag)

            if state is _State.SEEKING or draft is None:
                if event == "end" and name == "end":
                    current_date = _parse_date(element.text)
                elif event == "start" and name == "Point":
                    if current_date is None:
                        raise ParseError("Point found before any end date")
                    draft = _PointDraft(date=current_date)
                    state = _State.IN_POINT
                continue

            if event != "end":
                continue
            if name == "position":
                draft.set_position(element.text)
            elif name == "price.amount":
                draft.set_price(element.text)
            elif name == "Point":
                prices.append(draft.finish())
                element.clear()
                draft = None
                state = _State.SEEKING
    except ET.ParseError as e:
        raise ParseError(f"Malformed market document: {e}") from e

    logger.info("price_document_parsed", prices=len(prices))
    return prices


def sort_price_points(points: list[PricePoint]) -> list[PricePoint]:
    """Return points sorted ascending by (date, hour)."""
    return sorted(points, key=lambda p: p.slot)
