"""Display formatting and template context for the dashboard.

Everything here is a pure function of a client snapshot so the page route,
the refresh action and the WebSocket broadcaster render identical markup.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from pricefeed.exceptions import FeedErrorKind, FeedErrorState
from pricefeed.feeds.validation import validate_reading
from pricefeed.models import (
    ClientSnapshot,
    FeedConfig,
    FormattedReading,
    ValidationResult,
)

if TYPE_CHECKING:
    from pricefeed.feeds.client import FeedClient


def format_price(price: Decimal | None) -> str:
    """``$65,000.00`` at or above 1000, ``$65.4321`` below."""
    if price is None:
        return "—"
    if price >= 1000:
        return f"${price:,.2f}"
    return f"${price:.4f}"


def format_confidence(confidence: Decimal | None) -> str:
    if confidence is None:
        return "—"
    return f"±${confidence:.4f}"


def format_percent(value: Decimal | None, digits: int = 2) -> str:
    if value is None:
        return "—"
    return f"{value:.{digits}f}%"


def _relative(seconds: float) -> str:
    if seconds < 60:
        return f"{int(seconds)}s ago"
    if seconds < 3600:
        return f"{int(seconds // 60)}m ago"
    return f"{int(seconds // 3600)}h ago"


def format_age(age_seconds: float) -> str:
    """Reading age as ``42s ago`` / ``3m ago`` / ``2h ago``."""
    return _relative(max(age_seconds, 0.0))


def format_last_update(timestamp: float | None, now: float | None = None) -> str:
    """Time since the last successful poll, ``Never`` before the first one."""
    if timestamp is None:
        return "Never"
    current = time.time() if now is None else now
    return _relative(max(current - timestamp, 0.0))


def change_tone(change: Decimal | None) -> str:
    if not change:
        return "neutral"
    return "up" if change > 0 else "down"


def validation_badge(validation: ValidationResult | None) -> tuple[str, str]:
    """(label, tone) for a card's status badge."""
    if validation is None:
        return "Loading", "pending"
    if not validation.is_valid:
        return "Invalid", "error"
    if validation.warnings:
        return "Valid", "warning"
    return "Valid", "ok"


def confidence_bar(ratio: Decimal) -> tuple[float, str]:
    """(width percent, tone) for the confidence bar. Width is capped at 100."""
    width = min(float(ratio * 100), 100.0)
    if ratio <= Decimal("0.05"):
        return width, "ok"
    if ratio <= Decimal("0.1"):
        return width, "warning"
    return width, "error"


def connection_status(snapshot: ClientSnapshot) -> tuple[str, str]:
    """(label, tone) for the status panel header."""
    if snapshot.error is not None:
        return "Error", "error"
    if not snapshot.is_connected:
        return "Disconnected", "warning"
    return "Connected", "ok"


def error_kind_label(kind: FeedErrorKind) -> str:
    return kind.value.replace("_", " ")


def short_feed_id(feed_id: str) -> str:
    if len(feed_id) <= 16:
        return feed_id
    return f"{feed_id[:8]}...{feed_id[-6:]}"


@dataclass(frozen=True)
class PriceCardView:
    """Everything one price card template needs."""

    feed: FeedConfig
    reading: FormattedReading | None
    validation: ValidationResult | None
    badge_label: str
    badge_tone: str
    bar_width: float
    bar_tone: str


def build_price_cards(
    feeds: list[FeedConfig],
    snapshot: ClientSnapshot,
    client: FeedClient,
) -> list[PriceCardView]:
    """One card per configured feed, in configuration order."""
    cards: list[PriceCardView] = []
    for feed in feeds:
        reading = snapshot.readings.get(feed.feed_id)
        validation = (
            validate_reading(reading, client.settings) if reading is not None else None
        )
        label, tone = validation_badge(validation)
        width, bar_tone = 0.0, "pending"
        if reading is not None:
            width, bar_tone = confidence_bar(reading.confidence_ratio)
        cards.append(
            PriceCardView(
                feed=feed,
                reading=reading,
                validation=validation,
                badge_label=label,
                badge_tone=tone,
                bar_width=width,
                bar_tone=bar_tone,
            )
        )
    return cards


def build_dashboard_context(
    client: FeedClient,
    snapshot: ClientSnapshot | None = None,
    now: float | None = None,
) -> dict[str, Any]:
    """Template context shared by the page, the refresh action and broadcasts."""
    snap = client.snapshot() if snapshot is None else snapshot
    status_label, status_tone = connection_status(snap)
    error: FeedErrorState | None = snap.error
    return {
        "snapshot": snap,
        "status_label": status_label,
        "status_tone": status_tone,
        "error": error,
        "error_label": error_kind_label(error.kind) if error is not None else None,
        "last_update_text": format_last_update(snap.last_update, now),
        "cards": build_price_cards(client.feeds, snap, client),
        "refresh_interval_seconds": client.settings.refresh_interval_ms / 1000,
        "real_time": client.settings.enable_real_time_updates,
        "show_placeholders": snap.loading and not snap.readings,
    }
