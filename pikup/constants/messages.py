"""User-facing copy for every failure the booking pipeline can surface."""

from typing import Dict, Final

INSURANCE_UNAVAILABLE: Final[str] = "INSURANCE_UNAVAILABLE"
ITEM_VALUE_REQUIRED: Final[str] = "ITEM_VALUE_REQUIRED"
INSURANCE_REQUIRED: Final[str] = "INSURANCE_REQUIRED"

ERROR_COPY: Final[Dict[str, str]] = {
    INSURANCE_UNAVAILABLE: "Insurance is temporarily unavailable. Please try again.",
    ITEM_VALUE_REQUIRED: "Please enter the item value to get coverage.",
    INSURANCE_REQUIRED: "Insurance is required for this ride. Please try again.",
}

INSURANCE_GENERIC_ERROR: Final[str] = "Unable to calculate price. Please try again."
INSURANCE_NO_QUOTE_ERROR: Final[str] = "Unable to get insurance quote. Please try again."
NETWORK_ERROR_MESSAGE: Final[str] = "Network error. Please check your connection and try again."

PRICING_UNAVAILABLE_MESSAGE: Final[str] = (
    "Live pricing is unavailable right now. Showing an estimated price."
)

PAYMENT_METHOD_REQUIRED_MESSAGE: Final[str] = (
    "Please add a payment method to schedule your pickup."
)
GENERIC_PAYMENT_ERROR: Final[str] = "Failed to create payment. Please try again."
COVERAGE_REFRESH_MESSAGE: Final[str] = (
    "Coverage unavailable. Please refresh the price and try again."
)

BOOKING_PERSIST_FAILED_MESSAGE: Final[str] = (
    "Your payment went through but we couldn't save your booking. "
    "Please contact support and do not pay again."
)

STATUS_FETCH_FAILED_MESSAGE: Final[str] = "Unable to load delivery status"
