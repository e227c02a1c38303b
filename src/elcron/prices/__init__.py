"""Price pipeline -- day-ahead document fetch, streaming parse, and hourly queue."""

from elcron.prices.entsoe_client import EntsoeClient
from elcron.prices.feed import PriceFeed, RequestWindow, request_window
from elcron.prices.parser import parse_price_document, sort_price_points
from elcron.prices.queue import PriceQueue

__all__ = [
    "EntsoeClient",
    "PriceFeed",
    "PriceQueue",
    "RequestWindow",
    "parse_price_document",
    "request_window",
    "sort_price_points",
]
