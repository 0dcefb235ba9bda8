"""Retry with exponential backoff."""

from __future__ import annotations

import functools
import logging
import random
import time
from collections.abc import Callable
from typing import Any

from .errors import ConnectionError as MWKitConnectionError
from .errors import MWKitError

logger = logging.getLogger(__name__)


class RetryError(MWKitError):
    """
    Raised when the maximum number of retries is exhausted.

    ``response`` holds the last response when the final attempt ended on a
    retryable status code, and is None when it ended on an exception.
    """

    def __init__(self, message: str, response: Any = None) -> None:
        super().__init__(message)
        self.response = response


def _default_retryable_status_codes() -> set[int]:
    """Default HTTP status codes that are considered retryable."""
    return {408, 429, 500, 502, 503, 504, 507, 511}


def _default_retryable_exceptions() -> set[type[BaseException]]:
    """Default exception types that are considered retryable."""
    return {MWKitConnectionError, ConnectionError, TimeoutError, OSError}


def _calculate_delay(attempt: int, base: float, max_delay: float, jitter: bool) -> float:
    """Calculate exponential backoff delay with optional jitter."""
    delay = min(base * (2 ** attempt), max_delay)
    if jitter:
        delay *= (0.5 + random.random() * 0.5)  # 50-100% of delay
    return delay


def retry_with_backoff(
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retryable_status_codes: set[int] | None = None,
    retryable_exceptions: set[type[BaseException]] | None = None,
) -> Callable:
    """
    Decorator for retry with exponential backoff.

    Args:
        max_attempts: Maximum number of total attempts (including first).
        base_delay: Initial delay in seconds.
        max_delay: Maximum delay in seconds.
        jitter: Whether to add random jitter.
        retryable_status_codes: HTTP status codes to retry on.
        retryable_exceptions: Exception types to retry on.

    Returns:
        Decorated function that retries on failure.
    """
    if retryable_status_codes is None:
        retryable_status_codes = _default_retryable_status_codes()
    if retryable_exceptions is None:
        retryable_exceptions = _default_retryable_exceptions()
    retry_on = tuple(retryable_exceptions)

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempt = 0
            last_exc: BaseException | None = None
            last_response = None

            while attempt < max_attempts:
                try:
                    result = func(*args, **kwargs)
                except retry_on as exc:
                    last_exc = exc
                    last_response = None
                    reason = f"{type(exc).__name__}: {exc}"
                else:
                    status = getattr(result, "status_code", None)
                    if status not in retryable_status_codes:
                        return result
                    last_exc = RetryError(f"Retryable status code: {status}", response=result)
                    last_response = result
                    reason = f"status {status}"

                attempt += 1
                if attempt >= max_attempts:
                    break

                delay = _calculate_delay(attempt - 1, base_delay, max_delay, jitter)
                logger.warning(
                    "Attempt %d/%d failed (%s); retrying in %.2fs",
                    attempt,
                    max_attempts,
                    reason,
                    delay,
                )
                time.sleep(delay)

            raise RetryError(
                f"Max retries ({max_attempts}) exhausted", response=last_response
            ) from last_exc

        return wrapper
    return decorator
