"""Retry strategies for idempotent remote reads.

Writes (payment intents, confirmations, booking persistence) are never
retried automatically.
"""

import logging as stdlib_logging
from typing import Tuple, Type, Union

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_incrementing,
    wait_random,
)

from .exceptions import ApiError, NetworkError

# Stdlib logger needed for tenacity's before_sleep_log
_stdlib_logger = stdlib_logging.getLogger(__name__)


def _make_retry(
    attempts: int,
    wait_strategy: object,
    exception_types: Union[Type[Exception], Tuple[Type[Exception], ...]],
) -> object:
    """
    Factory for creating retry decorators with consistent configuration.

    Args:
        attempts: Maximum number of attempts
        wait_strategy: Tenacity wait strategy
        exception_types: Exception type(s) to retry on

    Returns:
        Configured retry decorator
    """
    return retry(
        stop=stop_after_attempt(max(1, attempts)),
        wait=wait_strategy,
        retry=retry_if_exception_type(exception_types),
        before_sleep=before_sleep_log(_stdlib_logger, stdlib_logging.WARNING),
        reraise=True,
    )


def get_status_fetch_retry(attempts: int = 3, delay: float = 1.0):
    """
    Get retry strategy for delivery status fetches.

    Waits grow linearly (delay, 2*delay, ...) between attempts.

    Args:
        attempts: Attempts per poll tick
        delay: Base delay in seconds

    Returns:
        Retry decorator configured for status fetch errors
    """
    return _make_retry(
        attempts=attempts,
        wait_strategy=wait_incrementing(start=delay, increment=delay),
        exception_types=(NetworkError, ApiError),
    )


def get_payment_method_retry(attempts: int = 3):
    """
    Get retry strategy for listing saved payment methods.

    Returns:
        Retry decorator configured for network errors
    """
    return _make_retry(
        attempts=attempts,
        wait_strategy=wait_exponential(multiplier=1, min=1, max=8) + wait_random(0, 1),
        exception_types=NetworkError,
    )
