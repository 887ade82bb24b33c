"""Fixed-point decoding and derived reading metrics.

Hermes delivers prices as ``mantissa * 10**exponent`` with the mantissa as a
decimal string. Decoding goes straight from string to Decimal so that
large mantissas keep every digit.
"""

from datetime import datetime, timezone
from decimal import Decimal

from pricefeed.models import FeedConfig, FormattedReading, RawReading

INFINITE_RATIO = Decimal("Infinity")


def decode_fixed_point(mantissa: str, exponent: int) -> Decimal:
    """Return ``mantissa * 10**exponent`` as an exact Decimal.

    Example:
        decode_fixed_point("6543210", -5) == Decimal("65.43210")
    """
    return Decimal(mantissa).scaleb(exponent)


def confidence_ratio(confidence: Decimal, price: Decimal) -> Decimal:
    """Relative uncertainty ``confidence / |price|``.

    A zero price has no meaningful ratio; it is reported as infinite so
    that it always fails the confidence threshold.
    """
    if price == 0:
        return INFINITE_RATIO
    return confidence / abs(price)


def price_delta(
    price: Decimal, previous: Decimal | None
) -> tuple[Decimal | None, Decimal | None]:
    """Return (change, change_percent) against the previous observed price.

    Both are None without a previous price. The percentage is None when
    the previous price was zero.
    """
    if previous is None:
        return None, None
    change = price - previous
    if previous == 0:
        return change, None
    return change, change / previous * 100


def format_reading(
    raw: RawReading,
    feed: FeedConfig,
    *,
    now: float,
    staleness_threshold_seconds: int,
    previous_price: Decimal | None = None,
) -> FormattedReading:
    """Decode a RawReading and compute age, staleness, ratio and delta.

    Args:
        raw: Schema-validated reading from the price service.
        feed: The configured feed the reading belongs to.
        now: Current Unix time in seconds.
        staleness_threshold_seconds: Age above which a reading is stale.
        previous_price: Last successfully observed price for this feed.
    """
    price = decode_fixed_point(raw.price.mantissa, raw.price.exponent)
    confidence = decode_fixed_point(raw.price.confidence, raw.price.exponent)
    ema_price = decode_fixed_point(raw.ema_price.mantissa, raw.ema_price.exponent)
    ema_confidence = decode_fixed_point(
        raw.ema_price.confidence, raw.ema_price.exponent
    )

    age_seconds = now - raw.price.publish_time
    change, change_percent = price_delta(price, previous_price)

    return FormattedReading(
        symbol=feed.symbol,
        feed_id=feed.feed_id,
        price=price,
        confidence=confidence,
        confidence_ratio=confidence_ratio(confidence, price),
        publish_time=datetime.fromtimestamp(raw.price.publish_time, tz=timezone.utc),
        age_seconds=age_seconds,
        is_stale=age_seconds > staleness_threshold_seconds,
        ema_price=ema_price,
        ema_confidence=ema_confidence,
        price_change=change,
        price_change_percent=change_percent,
    )
