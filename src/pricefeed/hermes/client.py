"""Abstract price service client interface.

The feed client depends only on this contract, keeping Hermes transport
details isolated in the concrete implementation.
"""

from abc import ABC, abstractmethod
from collections.abc import Sequence

from pricefeed.models import RawReading


class PriceServiceClient(ABC):
    """Abstract base class for remote price oracle clients."""

    @abstractmethod
    async def connect(self) -> None:
        """Open the underlying transport."""
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying transport."""
        ...

    @abstractmethod
    async def fetch_latest_price_feeds(
        self, feed_ids: Sequence[str]
    ) -> list[RawReading]:
        """Fetch the latest snapshot for every feed id in one batched request.

        Raises:
            NetworkError: Transport failure or non-2xx status.
            RateLimitedError: The service answered HTTP 429.
            ParsingError: The body is not JSON, not a non-empty array,
                or any entry violates the expected schema.
        """
        ...
