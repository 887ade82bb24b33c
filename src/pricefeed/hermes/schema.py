"""Strict wire schema for Hermes ``latest_price_feeds`` responses.

Validation fails closed: a missing field, a float where an int is expected,
or a mantissa that is not a decimal integer string rejects the whole
response with ParsingError instead of letting bad values reach decoding.
"""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictInt,
    StringConstraints,
    TypeAdapter,
    ValidationError,
)

from pricefeed.exceptions import ParsingError
from pricefeed.models import PriceComponent, RawReading

SignedIntString = Annotated[str, StringConstraints(strict=True, pattern=r"^-?\d+$")]
UnsignedIntString = Annotated[str, StringConstraints(strict=True, pattern=r"^\d+$")]
FeedIdString = Annotated[
    str, StringConstraints(strict=True, pattern=r"^(0x)?[0-9a-fA-F]+$")
]

# Hermes exponents are small negatives, around -12..0.
MAX_ABS_EXPONENT = 32
# 9999-12-31T23:59:59Z, the last second datetime can represent.
MAX_PUBLISH_TIME = 253_402_300_799

Exponent = Annotated[StrictInt, Field(ge=-MAX_ABS_EXPONENT, le=MAX_ABS_EXPONENT)]
PublishTime = Annotated[StrictInt, Field(ge=0, le=MAX_PUBLISH_TIME)]


class WirePrice(BaseModel):
    """``price`` / ``ema_price`` object of a Hermes price feed."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    price: SignedIntString
    conf: UnsignedIntString
    expo: Exponent
    publish_time: PublishTime

    def to_component(self) -> PriceComponent:
        return PriceComponent(
            mantissa=self.price,
            confidence=self.conf,
            exponent=self.expo,
            publish_time=self.publish_time,
        )


class WirePriceFeed(BaseModel):
    """One entry of the ``latest_price_feeds`` array. ``vaa`` and metadata are ignored."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: FeedIdString
    price: WirePrice
    ema_price: WirePrice


_FEED_LIST = TypeAdapter(list[WirePriceFeed])


def parse_price_feeds(payload: Any) -> list[RawReading]:
    """Validate a decoded JSON payload and convert it to RawReadings.

    Args:
        payload: The decoded JSON body.

    Returns:
        One RawReading per array entry, in response order.

    Raises:
        ParsingError: The payload is not a non-empty array of valid feeds.
    """
    if not isinstance(payload, list):
        raise ParsingError(
            f"Unexpected response shape: expected array, got {type(payload).__name__}"
        )
    if not payload:
        raise ParsingError("No price data received")

    try:
        feeds = _FEED_LIST.validate_python(payload)
    except ValidationError as exc:
        first = exc.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        raise ParsingError(
            f"Invalid price feed payload at {location}: {first['msg']}"
        ) from exc

    return [
        RawReading(
            id=feed.id,
            price=feed.price.to_component(),
            ema_price=feed.ema_price.to_component(),
        )
        for feed in feeds
    ]
