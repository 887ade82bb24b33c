"""Tests for feed id normalization and catalog indexing."""

import pytest

from pricefeed.exceptions import FeedErrorKind, InvalidFeedIdError
from pricefeed.feeds.catalog import DEMO_PRICE_FEEDS, build_feed_index
from pricefeed.models import AssetType, FeedConfig, normalize_feed_id


def _feed(feed_id: str, symbol: str = "TEST/USD") -> FeedConfig:
    return FeedConfig(
        symbol=symbol,
        feed_id=feed_id,
        description="Test feed",
        asset_type=AssetType.CRYPTO,
        base_asset="TEST",
        quote_asset="USD",
    )


class TestNormalizeFeedId:
    def test_strips_prefix(self) -> None:
        assert normalize_feed_id("0xabc123") == "abc123"

    def test_lowercases(self) -> None:
        assert normalize_feed_id("0XABC123") == "abc123"

    def test_unprefixed_is_unchanged(self) -> None:
        assert normalize_feed_id("abc123") == "abc123"

    def test_only_leading_prefix_is_removed(self) -> None:
        assert normalize_feed_id("ab0x12") == "ab0x12"


class TestBuildFeedIndex:
    def test_demo_feeds_indexed_in_order(self) -> None:
        index = build_feed_index(DEMO_PRICE_FEEDS)
        assert [feed.symbol for feed in index.values()] == ["SOL/USD", "BTC/USD", "ETH/USD"]
        assert all(not key.startswith("0x") for key in index)

    def test_rejects_non_hex_id(self) -> None:
        with pytest.raises(InvalidFeedIdError) as exc_info:
            build_feed_index([_feed("0xnothex")])
        assert exc_info.value.kind is FeedErrorKind.INVALID_FEED_ID
        assert exc_info.value.retryable is False

    def test_rejects_duplicates_across_prefix_forms(self) -> None:
        with pytest.raises(InvalidFeedIdError, match="Duplicate"):
            build_feed_index([_feed("0xABCD", "A/USD"), _feed("abcd", "B/USD")])

    def test_feed_config_is_immutable(self) -> None:
        feed = _feed("0xabcd")
        with pytest.raises(AttributeError):
            feed.symbol = "OTHER"  # type: ignore[misc]
