"""Price service layer -- Pyth Hermes REST integration via httpx."""

from pricefeed.hermes.client import PriceServiceClient
from pricefeed.hermes.hermes_client import HermesClient
from pricefeed.hermes.schema import parse_price_feeds

__all__ = ["HermesClient", "PriceServiceClient", "parse_price_feeds"]
