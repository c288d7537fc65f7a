"""Constants and copy shared across the booking core.

All names can be imported directly from this package:
    from pikup.constants import Intervals, TAX_RATE, ERROR_COPY
"""

from .messages import (
    BOOKING_PERSIST_FAILED_MESSAGE,
    COVERAGE_REFRESH_MESSAGE,
    ERROR_COPY,
    GENERIC_PAYMENT_ERROR,
    INSURANCE_GENERIC_ERROR,
    INSURANCE_NO_QUOTE_ERROR,
    INSURANCE_REQUIRED,
    INSURANCE_UNAVAILABLE,
    ITEM_VALUE_REQUIRED,
    NETWORK_ERROR_MESSAGE,
    PAYMENT_METHOD_REQUIRED_MESSAGE,
    PRICING_UNAVAILABLE_MESSAGE,
    STATUS_FETCH_FAILED_MESSAGE,
)
from .pricing import (
    CENT,
    DEFAULT_CURRENCY,
    DEFAULT_ITEM_WEIGHT,
    FALLBACK_DISTANCE_MILES,
    FALLBACK_DURATION_MINUTES,
    FALLBACK_FARES,
    TAX_RATE,
)
from .timing import Delays, Intervals, Limits, Timeouts

__all__ = [
    # Messages
    "BOOKING_PERSIST_FAILED_MESSAGE",
    "COVERAGE_REFRESH_MESSAGE",
    "ERROR_COPY",
    "GENERIC_PAYMENT_ERROR",
    "INSURANCE_GENERIC_ERROR",
    "INSURANCE_NO_QUOTE_ERROR",
    "INSURANCE_REQUIRED",
    "INSURANCE_UNAVAILABLE",
    "ITEM_VALUE_REQUIRED",
    "NETWORK_ERROR_MESSAGE",
    "PAYMENT_METHOD_REQUIRED_MESSAGE",
    "PRICING_UNAVAILABLE_MESSAGE",
    "STATUS_FETCH_FAILED_MESSAGE",
    # Pricing
    "CENT",
    "DEFAULT_CURRENCY",
    "DEFAULT_ITEM_WEIGHT",
    "FALLBACK_DISTANCE_MILES",
    "FALLBACK_DURATION_MINUTES",
    "FALLBACK_FARES",
    "TAX_RATE",
    # Timing
    "Delays",
    "Intervals",
    "Limits",
    "Timeouts",
]
