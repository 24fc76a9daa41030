"""Retry decorator for handling GitHub API rate limits.

Only rate limit responses are retried. Every other failure is raised
immediately so the tracker adapter can turn it into a typed result.
"""

import asyncio
import functools
import inspect
from typing import Any, Callable, TypeVar

import structlog
from githubkit.exception import PrimaryRateLimitExceeded, SecondaryRateLimitExceeded

from review_tracker.utils.constants import RATE_LIMIT_INITIAL_DELAY, RATE_LIMIT_MAX_DELAY, RATE_LIMIT_MAX_RETRIES

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def retry_on_rate_limit(
    max_retries: int = RATE_LIMIT_MAX_RETRIES,
    initial_delay: float = RATE_LIMIT_INITIAL_DELAY,
    max_delay: float = RATE_LIMIT_MAX_DELAY,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator for retrying async functions when they encounter GitHub rate limits.

    The wait time comes from the exception's ``retry_after`` when GitHub
    supplies one, otherwise from an exponential backoff. Both are capped at
    ``max_delay``.

    Args:
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds between retries
        max_delay: Maximum delay in seconds between retries
        exponential_base: Base for exponential backoff calculation

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: F) -> F:
        if not inspect.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded) as e:
                    if attempt >= max_retries:
                        logger.error(
                            "Max retries reached for GitHub rate limit error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            error_type=type(e).__name__,
                        )
                        raise

                    retry_after = getattr(e, "retry_after", None)
                    if retry_after:
                        wait_time = min(retry_after.total_seconds(), max_delay)
                    else:
                        wait_time = min(delay, max_delay)

                    logger.warning(
                        "GitHub rate limit exceeded, waiting before retrying",
                        function=func.__name__,
                        rate_limit_type="primary" if isinstance(e, PrimaryRateLimitExceeded) else "secondary",
                        attempt=attempt + 1,
                        max_retries=max_retries,
                        wait_time=wait_time,
                    )
                    await asyncio.sleep(wait_time)
                    delay = min(delay * exponential_base, max_delay)
                    attempt += 1

        return async_wrapper  # type: ignore

    return decorator
