"""Reading validation against staleness and confidence thresholds.

Checks run in a fixed order and their messages are appended in that order:
staleness, confidence, positivity, large movement.
"""

from decimal import Decimal

from pricefeed.config import FeedClientSettings
from pricefeed.models import (
    ConfidenceLevel,
    FormattedReading,
    Staleness,
    ValidationResult,
)

LARGE_MOVEMENT_PERCENT = Decimal("20")


def classify_staleness(age_seconds: float, threshold_seconds: int) -> Staleness:
    """Exclusive boundary: an age equal to the threshold is still fresh."""
    if age_seconds <= threshold_seconds:
        return Staleness.FRESH
    if age_seconds > threshold_seconds * 2:
        return Staleness.VERY_STALE
    return Staleness.STALE


def classify_confidence(ratio: Decimal, threshold_ratio: Decimal) -> ConfidenceLevel:
    """High at or below the threshold, low above twice the threshold."""
    if ratio <= threshold_ratio:
        return ConfidenceLevel.HIGH
    if ratio > threshold_ratio * 2:
        return ConfidenceLevel.LOW
    return ConfidenceLevel.MEDIUM


def validate_reading(
    reading: FormattedReading, settings: FeedClientSettings
) -> ValidationResult:
    """Validate one reading. Pure: same inputs always give the same result."""
    errors: list[str] = []
    warnings: list[str] = []

    threshold_seconds = settings.staleness_threshold_seconds
    staleness = classify_staleness(reading.age_seconds, threshold_seconds)
    if staleness is not Staleness.FRESH:
        errors.append(
            f"Price is {reading.age_seconds:.0f}s old "
            f"(threshold: {threshold_seconds}s)"
        )

    threshold_ratio = Decimal(str(settings.confidence_threshold_ratio))
    confidence = classify_confidence(reading.confidence_ratio, threshold_ratio)
    if confidence is not ConfidenceLevel.HIGH:
        conf_percent = f"{reading.confidence_ratio * 100:.2f}"
        threshold_percent = f"{threshold_ratio * 100:.1f}"
        if confidence is ConfidenceLevel.LOW:
            errors.append(
                f"Low confidence: ±{conf_percent}% (threshold: {threshold_percent}%)"
            )
        else:
            warnings.append(
                f"Medium confidence: ±{conf_percent}% (threshold: {threshold_percent}%)"
            )

    if reading.price <= 0:
        errors.append("Invalid price: must be positive")

    change_percent = reading.price_change_percent
    if change_percent is not None and abs(change_percent) > LARGE_MOVEMENT_PERCENT:
        warnings.append(f"Large price movement: {change_percent:.2f}%")

    return ValidationResult(
        is_valid=not errors,
        errors=errors,
        warnings=warnings,
        staleness=staleness,
        confidence=confidence,
    )
