"""Retry logic and exponential backoff utilities."""

import asyncio
import inspect
import random
import socket
import time
import logging
from functools import wraps
from typing import Callable, Any

from googleapiclient.errors import HttpError

logger = logging.getLogger(__name__)


def exponential_backoff(attempt: int, base_delay: float = 1.0, max_delay: float = 60.0) -> float:
    """Calculate exponential backoff delay with jitter."""
    delay = min(base_delay * (2 ** attempt), max_delay)
    # Add jitter to prevent thundering herd
    jitter = random.uniform(0, delay * 0.1)
    return delay + jitter


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: tuple = (Exception,)
):
    """Decorator for exponential backoff retry logic.

    Works for both plain functions and coroutine functions; coroutines sleep
    with asyncio so the event loop is never blocked.
    """
    def decorator(func: Callable) -> Callable:
        def _log_retry(attempt: int, e: Exception) -> float:
            delay = exponential_backoff(attempt, base_delay, max_delay)
            logger.warning(
                f"Attempt {attempt + 1} of {func.__name__} failed: {e}. "
                f"Retrying in {delay:.2f}s..."
            )
            return delay

        if inspect.iscoroutinefunction(func):
            @wraps(func)
            async def async_wrapper(*args, **kwargs) -> Any:
                for attempt in range(max_retries + 1):
                    try:
                        return await func(*args, **kwargs)
                    except exceptions as e:
                        if attempt == max_retries:
                            logger.error(f"Function {func.__name__} failed after {max_retries} retries: {e}")
                            raise
                        await asyncio.sleep(_log_retry(attempt, e))

            return async_wrapper

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_retries:
                        logger.error(f"Function {func.__name__} failed after {max_retries} retries: {e}")
                        raise
                    time.sleep(_log_retry(attempt, e))

        return wrapper
    return decorator


class RetryableError(Exception):
    """Base class for errors that should trigger retries."""
    pass


class APIRateLimitError(RetryableError):
    """Raised when API rate limit is hit."""
    pass


class NetworkError(RetryableError):
    """Raised for network-related errors."""
    pass


class TemporaryServiceError(RetryableError):
    """Raised for temporary service unavailability."""
    pass


def classify_google_error(e: Exception) -> Exception:
    """Map a Google API client failure onto the retryable error types.

    Returns the original exception when it should not be retried.
    """
    if isinstance(e, HttpError):
        status = getattr(e.resp, "status", None)
        try:
            status = int(status)
        except (TypeError, ValueError):
            return e
        if status == 429:
            return APIRateLimitError(f"Rate limit hit: {e}")
        if status >= 500:
            return TemporaryServiceError(f"Service unavailable ({status}): {e}")
        return e
    if isinstance(e, (socket.timeout, ConnectionError, TimeoutError)):
        return NetworkError(f"Network error: {e}")
    if "rate limit" in str(e).lower():
        return APIRateLimitError(f"Rate limit hit: {e}")
    if "network" in str(e).lower() or "connection" in str(e).lower():
        return NetworkError(f"Network error: {e}")
    return e


# Specific retry decorators for different use cases
def retry_api_call(max_retries: int = 2, base_delay: float = 1.0):
    """Retry decorator specifically for API calls with longer delays."""
    return retry_with_backoff(
        max_retries=max_retries,
        base_delay=base_delay,
        max_delay=30.0,
        exceptions=(APIRateLimitError, NetworkError, TemporaryServiceError)
    )
