"""Shared test fixtures for the price feed client and dashboard."""

from collections.abc import Callable
from typing import Any
from unittest.mock import AsyncMock

import pytest

from pricefeed.config import FeedClientSettings
from pricefeed.feeds.catalog import DEMO_PRICE_FEEDS
from pricefeed.feeds.client import FeedClient
from pricefeed.hermes.client import PriceServiceClient
from pricefeed.hermes.schema import parse_price_feeds
from pricefeed.models import RawReading

NOW = 1_700_000_000.0

# Hermes returns ids without the 0x prefix used in the catalog.
SOL_ID = DEMO_PRICE_FEEDS[0].canonical_id
BTC_ID = DEMO_PRICE_FEEDS[1].canonical_id
ETH_ID = DEMO_PRICE_FEEDS[2].canonical_id


class FakeClock:
    """Settable replacement for time.time."""

    def __init__(self, now: float = NOW) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def wire_feed(
    feed_id: str,
    price: str = "10000",
    conf: str = "10",
    expo: int = -2,
    publish_time: int = int(NOW),
    ema_price: str | None = None,
    ema_conf: str | None = None,
) -> dict[str, Any]:
    """One entry of a Hermes latest_price_feeds response."""
    return {
        "id": feed_id,
        "price": {
            "price": price,
            "conf": conf,
            "expo": expo,
            "publish_time": publish_time,
        },
        "ema_price": {
            "price": ema_price if ema_price is not None else price,
            "conf": ema_conf if ema_conf is not None else conf,
            "expo": expo,
            "publish_time": publish_time,
        },
    }


@pytest.fixture
def make_wire_feed() -> Callable[..., dict[str, Any]]:
    return wire_feed


@pytest.fixture
def make_raw_reading() -> Callable[..., RawReading]:
    """Build a schema-validated RawReading from wire_feed() arguments."""

    def _make(feed_id: str = BTC_ID, **kwargs: Any) -> RawReading:
        return parse_price_feeds([wire_feed(feed_id, **kwargs)])[0]

    return _make


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def feed_settings() -> FeedClientSettings:
    """Default thresholds with the periodic timer disabled."""
    return FeedClientSettings(
        refresh_interval_ms=5000,
        staleness_threshold_seconds=60,
        confidence_threshold_ratio=0.1,
        max_retries=3,
        enable_real_time_updates=False,
    )


@pytest.fixture
def price_service() -> AsyncMock:
    """Mock price service returning one fresh reading per demo feed."""
    service = AsyncMock(spec=PriceServiceClient)
    service.fetch_latest_price_feeds = AsyncMock(
        return_value=parse_price_feeds(
            [
                wire_feed(SOL_ID, price="15000000000", conf="15000000", expo=-8),
                wire_feed(BTC_ID, price="6500000000000", conf="3000000000", expo=-8),
                wire_feed(ETH_ID, price="350000000000", conf="200000000", expo=-8),
            ]
        )
    )
    return service


@pytest.fixture
def feed_client(
    price_service: AsyncMock,
    feed_settings: FeedClientSettings,
    clock: FakeClock,
) -> FeedClient:
    return FeedClient(DEMO_PRICE_FEEDS, price_service, feed_settings, clock=clock)
