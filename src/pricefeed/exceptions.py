"""Custom exceptions and error classification for the price feed client.

Every failure the price service can produce maps onto one FeedErrorKind.
The feed client converts caught FeedErrors into a FeedErrorState, which is
what the dashboard displays.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from enum import Enum


class FeedErrorKind(str, Enum):
    """Classification attached to every recorded feed error."""

    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_FEED_ID = "INVALID_FEED_ID"
    STALE_PRICE = "STALE_PRICE"
    LOW_CONFIDENCE = "LOW_CONFIDENCE"
    PARSING_ERROR = "PARSING_ERROR"
    RATE_LIMITED = "RATE_LIMITED"


@dataclass(frozen=True)
class FeedErrorState:
    """A classified error as exposed in client snapshots."""

    kind: FeedErrorKind
    message: str
    retryable: bool
    timestamp: float = field(default_factory=time.time)
    feed_id: str | None = None


class PriceFeedError(Exception):
    """Base exception for all price feed errors."""


class FeedError(PriceFeedError):
    """An error with a FeedErrorKind classification."""

    kind: FeedErrorKind = FeedErrorKind.NETWORK_ERROR
    retryable: bool = True

    def __init__(self, message: str, feed_id: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.feed_id = feed_id

    def to_state(self, timestamp: float | None = None) -> FeedErrorState:
        """Freeze this exception into a snapshot-friendly error record."""
        return FeedErrorState(
            kind=self.kind,
            message=self.message,
            retryable=self.retryable,
            timestamp=time.time() if timestamp is None else timestamp,
            feed_id=self.feed_id,
        )


class NetworkError(FeedError):
    """Raised when the price service is unreachable or returns a non-2xx status."""

    kind = FeedErrorKind.NETWORK_ERROR


class RateLimitedError(NetworkError):
    """Raised when the price service answers HTTP 429."""

    kind = FeedErrorKind.RATE_LIMITED


class ParsingError(FeedError):
    """Raised when a response body is malformed or violates the expected schema."""

    kind = FeedErrorKind.PARSING_ERROR


class InvalidFeedIdError(FeedError):
    """Raised when a configured feed id is not a unique hex identifier."""

    kind = FeedErrorKind.INVALID_FEED_ID
    retryable = False
