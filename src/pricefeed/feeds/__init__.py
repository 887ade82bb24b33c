"""Feed client layer -- polling, decoding, validation and backoff."""

from pricefeed.feeds.backoff import backoff_delay_ms
from pricefeed.feeds.catalog import DEMO_PRICE_FEEDS, build_feed_index
from pricefeed.feeds.client import FeedClient
from pricefeed.feeds.decoding import decode_fixed_point, format_reading
from pricefeed.feeds.validation import validate_reading

__all__ = [
    "DEMO_PRICE_FEEDS",
    "FeedClient",
    "backoff_delay_ms",
    "build_feed_index",
    "decode_fixed_point",
    "format_reading",
    "validate_reading",
]
