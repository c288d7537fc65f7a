"""Timing-related constants (timeouts, intervals, delays)."""

from typing import Final


class Timeouts:
    """Timeout values in SECONDS."""

    HTTP_REQUEST_SECONDS: Final[int] = 30
    HTTP_CONNECT_SECONDS: Final[int] = 10
    HTTP_SOCK_READ_SECONDS: Final[int] = 20
    POLLER_STOP_SECONDS: Final[float] = 5.0


class Intervals:
    """Interval values in SECONDS."""

    STATUS_POLL_DEFAULT: Final[float] = 15.0
    STATUS_POLL_MIN: Final[float] = 1.0
    STATUS_POLL_MAX: Final[float] = 300.0
    STATUS_FETCH_RETRY_DELAY: Final[float] = 1.0


class Limits:
    """Retry and failure thresholds."""

    STATUS_FETCH_ATTEMPTS: Final[int] = 3
    STATUS_POLL_MAX_FAILURES: Final[int] = 3
    PAYMENT_METHOD_FETCH_ATTEMPTS: Final[int] = 3


class Delays:
    """Delays in SECONDS."""

    DEV_PAYMENT_CONFIRMATION: Final[float] = 1.0
