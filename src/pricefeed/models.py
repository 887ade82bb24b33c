"""Shared data models for the price feed client.

Prices and confidences are decoded into Decimal and stay Decimal all the way
to the presentation layer. Wire mantissas are never routed through float.
"""

from __future__ import annotations

import time
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from types import MappingProxyType

from pricefeed.exceptions import FeedErrorState


def normalize_feed_id(feed_id: str) -> str:
    """Return the canonical form of a feed id: lowercase hex without ``0x``.

    This is the only comparison key used between configured feeds and
    ids returned by the price service.
    """
    canonical = feed_id.strip().lower()
    if canonical.startswith("0x"):
        canonical = canonical[2:]
    return canonical


class AssetType(str, Enum):
    """Asset class of a tracked feed."""

    CRYPTO = "crypto"
    EQUITY = "equity"
    FX = "fx"
    COMMODITY = "commodity"


@dataclass(frozen=True)
class FeedConfig:
    """Static description of one tracked asset."""

    symbol: str
    feed_id: str
    description: str
    asset_type: AssetType
    base_asset: str
    quote_asset: str
    legacy_address: str | None = None  # push-oracle account, display only

    @property
    def canonical_id(self) -> str:
        return normalize_feed_id(self.feed_id)


@dataclass(frozen=True)
class PriceComponent:
    """Fixed-point price as delivered on the wire: ``mantissa * 10**exponent``."""

    mantissa: str
    confidence: str
    exponent: int
    publish_time: int  # Unix seconds


@dataclass(frozen=True)
class RawReading:
    """One asset's unprocessed snapshot from the price service."""

    id: str
    price: PriceComponent
    ema_price: PriceComponent


@dataclass(frozen=True)
class FormattedReading:
    """Decoded reading with derived freshness and movement metrics."""

    symbol: str
    feed_id: str
    price: Decimal
    confidence: Decimal
    confidence_ratio: Decimal  # confidence / |price|
    publish_time: datetime
    age_seconds: float
    is_stale: bool
    ema_price: Decimal
    ema_confidence: Decimal
    price_change: Decimal | None = None
    price_change_percent: Decimal | None = None


class Staleness(str, Enum):
    """Freshness classification of a reading."""

    FRESH = "fresh"
    STALE = "stale"
    VERY_STALE = "very_stale"


class ConfidenceLevel(str, Enum):
    """Confidence classification of a reading."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass
class ValidationResult:
    """Outcome of validating one reading against the configured thresholds."""

    is_valid: bool
    errors: list[str]
    warnings: list[str]
    staleness: Staleness
    confidence: ConfidenceLevel


class ClientPhase(str, Enum):
    """Polling state machine phase."""

    IDLE = "idle"
    POLLING = "polling"
    SUCCESS = "success"
    FAILURE = "failure"


@dataclass(frozen=True)
class PollStats:
    """Running poll counters for the status panel."""

    total_polls: int = 0
    error_count: int = 0

    @property
    def success_rate(self) -> float:
        if self.total_polls == 0:
            return 1.0
        return (self.total_polls - self.error_count) / self.total_polls


@dataclass
class ClientState:
    """Mutable state owned by a single FeedClient polling session."""

    readings: dict[str, FormattedReading] = field(default_factory=dict)
    last_update: float | None = None
    error: FeedErrorState | None = None
    is_connected: bool = False
    retry_count: int = 0
    loading: bool = True
    phase: ClientPhase = ClientPhase.IDLE
    stats: PollStats = field(default_factory=PollStats)


@dataclass(frozen=True)
class ClientSnapshot:
    """Read-only view of ClientState handed to consumers."""

    readings: Mapping[str, FormattedReading]
    loading: bool
    error: FeedErrorState | None
    last_update: float | None
    is_connected: bool
    retry_count: int
    phase: ClientPhase
    stats: PollStats
    taken_at: float = field(default_factory=time.time)

    @classmethod
    def from_state(cls, state: ClientState) -> ClientSnapshot:
        return cls(
            readings=MappingProxyType(dict(state.readings)),
            loading=state.loading,
            error=state.error,
            last_update=state.last_update,
            is_connected=state.is_connected,
            retry_count=state.retry_count,
            phase=state.phase,
            stats=state.stats,
        )
