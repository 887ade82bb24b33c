"""Bounded exponential backoff for failed polls."""

from pricefeed.exceptions import FeedErrorState

BACKOFF_BASE_MS = 1000
BACKOFF_CAP_MS = 10_000


def backoff_delay_ms(
    retry_count: int,
    base_ms: int = BACKOFF_BASE_MS,
    cap_ms: int = BACKOFF_CAP_MS,
) -> int:
    """Delay before the next backoff poll: 1000, 2000, 4000, 8000, 10000, ...

    Args:
        retry_count: Consecutive failures recorded before the current one.
    """
    return min(base_ms * 2**retry_count, cap_ms)


def should_schedule_retry(
    error: FeedErrorState, retry_count: int, max_retries: int
) -> bool:
    """Whether a failure with ``retry_count`` prior failures earns a backoff poll."""
    return error.retryable and retry_count < max_retries
