"""ENTSO-E transparency platform client for day-ahead prices.

Requests document type A44 (day-ahead prices) for a single bidding zone.
The same area code is used for in_Domain and out_Domain.

No retries: a failed fetch is reported as FetchError and the scheduler tries
again on its next cycle.
"""

from __future__ import annotations

from typing import Self

import httpx

from elcron.config import FeedSettings
from elcron.exceptions import FetchError
from elcron.logging import get_logger
from elcron.prices.feed import PriceFeed, RequestWindow

logger = get_logger(__name__)

DAY_AHEAD_DOCUMENT_TYPE = "A44"

_PERIOD_FORMAT = "%Y%m%d%H%M"


class EntsoeClient(PriceFeed):
    """Async httpx client fetching A44 documents from the ENTSO-E API.

    Usage:
        async with EntsoeClient(api_key, area, settings.feed) as client:
            document = await client.fetch(request_window(datetime.now()))

    Args:
        api_key: ENTSO-E security token.
        area: EIC code of the bidding zone, e.g. "10YFI-1--------U".
        settings: Base URL and request timeout.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        api_key: str,
        area: str,
        settings: FeedSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._area = area
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def build_params(self, window: RequestWindow) -> dict[str, str]:
        return {
            "securityToken": self._api_key,
            "documentType": DAY_AHEAD_DOCUMENT_TYPE,
            "in_Domain": self._area,
            "out_Domain": self._area,
            "periodStart": window.start.strftime(_PERIOD_FORMAT),
            "periodEnd": window.end.strftime(_PERIOD_FORMAT),
        }

    async def connect(self) -> None:
        self._get_client()

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._settings.fetch_timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def fetch(self, window: RequestWindow) -> str:
        """Download the day-ahead document for `window`.

        Raises:
            FetchError: On connection errors, timeouts and non-2xx responses.
        """
        client = self._get_client()

        params = self.build_params(window)
        logger.info(
            "fetching_price_document",
            url=self._settings.base_url,
            area=self._area,
            period_start=params["periodStart"],
            period_end=params["periodEnd"],
        )

        try:
            response = await client.get(self._settings.base_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"ENTSO-E returned HTTP {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            # str(e) may embed the request URL, which carries the token
            raise FetchError(f"ENTSO-E request failed: {type(e).__name__}") from e

        logger.info(
            "price_document_fetched",
            status=response.status_code,
            size=len(response.content),
        )
        return response.text

    async def __aenter__(self) -> Self:
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # type: ignore[no-untyped-def]
        await self.close()
