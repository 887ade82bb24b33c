"""Tracked feed catalog and feed-id indexing."""

import re
from collections.abc import Iterable

from pricefeed.exceptions import InvalidFeedIdError
from pricefeed.models import AssetType, FeedConfig

_HEX_ID = re.compile(r"^[0-9a-f]+$")

DEMO_PRICE_FEEDS: tuple[FeedConfig, ...] = (
    FeedConfig(
        symbol="SOL/USD",
        feed_id="0xef0d8b6fda2ceba41da15d4095d1da392a0d2f8ed0c6c7bc0f4cfac8c280b56d",
        description="Solana / US Dollar",
        asset_type=AssetType.CRYPTO,
        base_asset="SOL",
        quote_asset="USD",
        legacy_address="J83w4HKfqxwcq3BEMMkPFSppX3gqekLyLJBexebFVkix",
    ),
    FeedConfig(
        symbol="BTC/USD",
        feed_id="0xe62df6c8b4a85fe1a67db44dc12de5db330f7ac66b72dc658afedf0f4a415b43",
        description="Bitcoin / US Dollar",
        asset_type=AssetType.CRYPTO,
        base_asset="BTC",
        quote_asset="USD",
        legacy_address="HovQMDrbAgAYPCmHVSrezcSmkMtXSSUsLDFANExrZh2J",
    ),
    FeedConfig(
        symbol="ETH/USD",
        feed_id="0xff61491a931112ddf1bd8147cd1b641375f79f5825126d665480874634fd0ace",
        description="Ethereum / US Dollar",
        asset_type=AssetType.CRYPTO,
        base_asset="ETH",
        quote_asset="USD",
        legacy_address="EdVCmQ9FSPcVe5YySXDPCRmc8aDQLKJ9xvYBMZPie1Vw",
    ),
)


def build_feed_index(feeds: Iterable[FeedConfig]) -> dict[str, FeedConfig]:
    """Index feeds by canonical id, preserving configuration order.

    Raises:
        InvalidFeedIdError: A feed id is not hex, or two feeds share an id.
    """
    index: dict[str, FeedConfig] = {}
    for feed in feeds:
        canonical = feed.canonical_id
        if not _HEX_ID.match(canonical):
            raise InvalidFeedIdError(
                f"Feed id for {feed.symbol} is not a hex string: {feed.feed_id!r}",
                feed_id=feed.feed_id,
            )
        if canonical in index:
            raise InvalidFeedIdError(
                f"Duplicate feed id {feed.feed_id!r} "
                f"({index[canonical].symbol} and {feed.symbol})",
                feed_id=feed.feed_id,
            )
        index[canonical] = feed
    return index
