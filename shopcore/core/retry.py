"""Retry utilities for async operations.

Exponential backoff for transient failures of outbound calls.
"""

import asyncio
from collections.abc import Awaitable, Callable

DEFAULT_ATTEMPTS = 2
DEFAULT_BASE_DELAY = 0.2  # seconds


def _calculate_delay(attempt: int, base_delay: float = DEFAULT_BASE_DELAY) -> float:
    """Delay before retrying after the zero-indexed ``attempt``."""
    return base_delay * (2**attempt)


async def with_retry[T](
    fn: Callable[[], Awaitable[T]],
    attempts: int = DEFAULT_ATTEMPTS,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    base_delay: float = DEFAULT_BASE_DELAY,
    retry_if: Callable[[Exception], bool] | None = None,
) -> T:
    """Execute async function with exponential backoff retry.

    Args:
        fn: Async function to execute (typically a lambda or partial)
        attempts: Maximum number of attempts
        exceptions: Exception types that are candidates for a retry
        base_delay: Base delay in seconds for exponential backoff
        retry_if: Optional predicate; a caught exception for which it
            returns False is re-raised immediately

    Returns:
        Result from successful function execution

    Raises:
        The last exception if all attempts fail

    Example:
        delivery_id = await with_retry(
            lambda: transport.send(message),
            attempts=3,
            exceptions=(EmailDeliveryError,),
            retry_if=lambda e: e.transient,
        )
    """
    last_error: Exception | None = None

    for attempt in range(attempts):
        try:
            return await fn()
        except exceptions as e:
            if retry_if is not None and not retry_if(e):
                raise
            last_error = e
            if attempt < attempts - 1:
                await asyncio.sleep(_calculate_delay(attempt, base_delay))

    raise last_error  # type: ignore[misc]
