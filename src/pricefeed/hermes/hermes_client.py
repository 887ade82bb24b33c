"""Pyth Hermes price service client via httpx async.

Issues a single ``GET /api/latest_price_feeds?ids[]=..`` per poll and maps
every transport, status and body problem onto the FeedError taxonomy.
"""

from collections.abc import Sequence

import httpx

from pricefeed.config import HermesSettings
from pricefeed.exceptions import NetworkError, ParsingError, RateLimitedError
from pricefeed.hermes.client import PriceServiceClient
from pricefeed.hermes.schema import parse_price_feeds
from pricefeed.logging import get_logger
from pricefeed.models import RawReading

logger = get_logger(__name__)

LATEST_PRICE_FEEDS_PATH = "/api/latest_price_feeds"


class HermesClient(PriceServiceClient):
    """Concrete Hermes REST client using a shared httpx.AsyncClient."""

    def __init__(
        self,
        settings: HermesSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def base_url(self) -> str:
        return self._settings.base_url.rstrip("/")

    async def connect(self) -> None:
        """Create the pooled HTTP client. Safe to call more than once."""
        if self._client is not None:
            return
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self._settings.request_timeout,
            transport=self._transport,
            headers={"Accept": "application/json"},
        )
        logger.info("hermes_client_connected", base_url=self.base_url)

    async def close(self) -> None:
        """Close the pooled HTTP client."""
        if self._client is None:
            return
        await self._client.aclose()
        self._client = None
        logger.info("hermes_client_closed")

    async def fetch_latest_price_feeds(
        self, feed_ids: Sequence[str]
    ) -> list[RawReading]:
        """Fetch latest price feeds for all ids in one request."""
        if self._client is None:
            await self.connect()
        assert self._client is not None

        params = [("ids[]", feed_id) for feed_id in feed_ids]
        try:
            response = await self._client.get(LATEST_PRICE_FEEDS_PATH, params=params)
        except httpx.HTTPError as exc:
            raise NetworkError(f"Request to price service failed: {exc!r}") from exc

        if response.status_code == 429:
            raise RateLimitedError(f"HTTP 429: {response.reason_phrase}")
        if not response.is_success:
            raise NetworkError(
                f"HTTP {response.status_code}: {response.reason_phrase}"
            )

        try:
            payload = response.json()
        except ValueError as exc:
            raise ParsingError(f"Response body is not valid JSON: {exc}") from exc

        readings = parse_price_feeds(payload)
        logger.debug(
            "hermes_price_feeds_fetched",
            requested=len(feed_ids),
            received=len(readings),
        )
        return readings
