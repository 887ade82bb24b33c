"""JSON API endpoints exposing the feed client snapshot and validation."""

from __future__ import annotations

from decimal import Decimal
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse

from pricefeed.exceptions import FeedErrorState
from pricefeed.models import FormattedReading, ValidationResult

router = APIRouter()


def _decimal_to_str(value: Decimal | None) -> str | None:
    return str(value) if value is not None else None


def reading_to_dict(reading: FormattedReading) -> dict[str, Any]:
    """Serialize a reading. Decimals become strings to keep full precision."""
    return {
        "symbol": reading.symbol,
        "feed_id": reading.feed_id,
        "price": str(reading.price),
        "confidence": str(reading.confidence),
        "confidence_ratio": str(reading.confidence_ratio),
        "publish_time": reading.publish_time.isoformat(),
        "age_seconds": reading.age_seconds,
        "is_stale": reading.is_stale,
        "price_change": _decimal_to_str(reading.price_change),
        "price_change_percent": _decimal_to_str(reading.price_change_percent),
        "ema_price": str(reading.ema_price),
        "ema_confidence": str(reading.ema_confidence),
    }


def validation_to_dict(result: ValidationResult) -> dict[str, Any]:
    return {
        "is_valid": result.is_valid,
        "errors": list(result.errors),
        "warnings": list(result.warnings),
        "staleness": result.staleness.value,
        "confidence": result.confidence.value,
    }


def error_to_dict(error: FeedErrorState | None) -> dict[str, Any] | None:
    if error is None:
        return None
    return {
        "kind": error.kind.value,
        "message": error.message,
        "timestamp": error.timestamp,
        "retryable": error.retryable,
        "feed_id": error.feed_id,
    }


@router.get("/prices")
async def get_prices(request: Request) -> JSONResponse:
    """Current readings keyed by feed id, in configuration order."""
    snapshot = request.app.state.feed_client.snapshot()
    return JSONResponse(
        content={
            feed_id: reading_to_dict(reading)
            for feed_id, reading in snapshot.readings.items()
        }
    )


@router.get("/status")
async def get_status(request: Request) -> JSONResponse:
    """Connection flag, loading flag, error, retry counter and poll stats."""
    client = request.app.state.feed_client
    hub = request.app.state.hub
    snapshot = client.snapshot()
    return JSONResponse(
        content={
            "phase": snapshot.phase.value,
            "is_connected": snapshot.is_connected,
            "loading": snapshot.loading,
            "last_update": snapshot.last_update,
            "retry_count": snapshot.retry_count,
            "error": error_to_dict(snapshot.error),
            "total_polls": snapshot.stats.total_polls,
            "error_count": snapshot.stats.error_count,
            "success_rate": snapshot.stats.success_rate,
            "feeds": [feed.symbol for feed in client.feeds],
            "dashboard_clients": len(hub.connections),
            "fragments_delivered": hub.fragments_delivered,
            "dashboard_sockets_dropped": hub.sockets_dropped,
        }
    )


@router.get("/validate/{feed_id}")
async def validate_feed(feed_id: str, request: Request) -> JSONResponse:
    """Validation result for one feed; 404 when it has no reading yet."""
    result = request.app.state.feed_client.validate(feed_id)
    if result is None:
        raise HTTPException(status_code=404, detail=f"No reading for feed {feed_id}")
    return JSONResponse(content=validation_to_dict(result))
