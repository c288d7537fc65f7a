"""Custom exception classes for the Pikup booking core."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..constants.messages import (
    BOOKING_PERSIST_FAILED_MESSAGE,
    ERROR_COPY,
    GENERIC_PAYMENT_ERROR,
    INSURANCE_GENERIC_ERROR,
    NETWORK_ERROR_MESSAGE,
    PAYMENT_METHOD_REQUIRED_MESSAGE,
    PRICING_UNAVAILABLE_MESSAGE,
    STATUS_FETCH_FAILED_MESSAGE,
)


class PikupError(Exception):
    """Base exception for the booking core."""

    default_user_message = "Something went wrong. Please try again."

    def __init__(
        self,
        message: str,
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        """
        Initialize Pikup error.

        Args:
            message: Error message
            recoverable: Whether the error is recoverable with retry
            details: Additional error details
            code: Machine readable error code reported by a remote service
        """
        self.message = message
        self.recoverable = recoverable
        self.details = details or {}
        self.code = code
        self.timestamp = datetime.now(timezone.utc).isoformat()
        super().__init__(self.message)

    @property
    def kind(self) -> str:
        """Error kind used by callers to branch on failures."""
        return self.__class__.__name__

    @property
    def user_message(self) -> str:
        """Human readable message mapped from the error code."""
        if self.code and self.code in ERROR_COPY:
            return ERROR_COPY[self.code]
        return self.default_user_message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary."""
        return {
            "error": self.kind,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "recoverable": self.recoverable,
            "details": self.details,
            "timestamp": self.timestamp,
        }


class NetworkError(PikupError):
    """Network connection error occurred."""

    default_user_message = NETWORK_ERROR_MESSAGE

    def __init__(self, message: str = "Network error occurred", recoverable: bool = True):
        super().__init__(message, recoverable)


class ApiError(PikupError):
    """Remote service answered with an unusable response."""

    def __init__(
        self,
        message: str = "API error occurred",
        status: Optional[int] = None,
        code: Optional[str] = None,
    ):
        self.status = status
        super().__init__(message, recoverable=True, details={"status": status}, code=code)


# Pricing


class PricingUnavailableError(PikupError):
    """Pricing service could not produce a fare breakdown."""

    default_user_message = PRICING_UNAVAILABLE_MESSAGE

    def __init__(self, message: str = "Pricing service unavailable", status: Optional[int] = None):
        super().__init__(message, recoverable=True, details={"status": status} if status else {})


# Insurance


class InsuranceUnavailableError(PikupError):
    """Insurance quote could not be obtained."""

    default_user_message = INSURANCE_GENERIC_ERROR

    def __init__(
        self,
        message: str = "Insurance quote unavailable",
        code: Optional[str] = "INSURANCE_UNAVAILABLE",
        user_message: Optional[str] = None,
    ):
        self._user_message = user_message
        super().__init__(message, recoverable=True, code=code)

    @property
    def user_message(self) -> str:
        if self._user_message:
            return self._user_message
        return super().user_message


# Payment


class PaymentError(PikupError):
    """Base class for payment-related errors."""

    default_user_message = GENERIC_PAYMENT_ERROR

    def __init__(
        self,
        message: str = "Payment error occurred",
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message, recoverable, details, code)


class PaymentMethodMissingError(PaymentError):
    """Raised when no payment method is on file."""

    default_user_message = PAYMENT_METHOD_REQUIRED_MESSAGE

    def __init__(self):
        super().__init__("No payment method available", recoverable=True)


class PaymentIntentFailedError(PaymentError):
    """Payment intent creation was rejected."""

    def __init__(
        self, message: str = "Failed to create payment intent", code: Optional[str] = None
    ):
        super().__init__(message, recoverable=True, code=code)


class PaymentConfirmationFailedError(PaymentError):
    """Payment confirmation against the selected method failed."""

    default_user_message = "We couldn't process your payment. Please try again."

    def __init__(self, message: str = "Failed to confirm payment", code: Optional[str] = None):
        super().__init__(message, recoverable=True, code=code)


class InvalidPaymentTransitionError(PaymentError):
    """Illegal state change requested on a payment transaction."""

    def __init__(self, current: str, requested: str):
        super().__init__(
            f"Cannot move payment transaction from '{current}' to '{requested}'",
            recoverable=False,
            details={"current": current, "requested": requested},
        )


class DuplicatePaymentAttemptError(PaymentError):
    """A payment for the same booking draft is already in flight."""

    default_user_message = "Your payment is already being processed."

    def __init__(self, draft_id: str):
        super().__init__(
            f"Payment already in flight for draft {draft_id}",
            recoverable=False,
            details={"draft_id": draft_id},
        )


# Booking


class BookingError(PikupError):
    """Booking operation failed."""

    def __init__(
        self,
        message: str = "Booking failed",
        recoverable: bool = False,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, recoverable, details)


class PaymentNotSucceededError(BookingError):
    """Booking assembly attempted before payment succeeded."""

    def __init__(self, state: str):
        super().__init__(
            f"Cannot assemble booking while payment is '{state}'",
            recoverable=False,
            details={"payment_state": state},
        )


class BookingPersistFailedError(BookingError):
    """Booking could not be stored after the payment went through."""

    default_user_message = BOOKING_PERSIST_FAILED_MESSAGE

    def __init__(self, message: str = "Failed to persist booking", payment_intent_id: str = ""):
        super().__init__(
            message, recoverable=False, details={"payment_intent_id": payment_intent_id}
        )


class BookingNotCancellableError(BookingError):
    """Booking is past the point where it can be cancelled."""

    def __init__(self, reason: str):
        super().__init__(reason, recoverable=False)

    @property
    def user_message(self) -> str:
        return self.message


# Tracking


class StatusFetchFailedError(PikupError):
    """Delivery status could not be fetched."""

    default_user_message = STATUS_FETCH_FAILED_MESSAGE

    def __init__(self, booking_id: str, message: str = "Unable to load delivery status"):
        super().__init__(message, recoverable=True, details={"booking_id": booking_id})


# Configuration / validation


class ConfigurationError(PikupError):
    """Configuration error occurred."""

    def __init__(self, message: str = "Configuration error"):
        super().__init__(message, recoverable=False)


class ValidationError(PikupError):
    """Input validation error."""

    def __init__(self, message: str = "Validation error", field: Optional[str] = None):
        """
        Initialize validation error.

        Args:
            message: Error message
            field: Field name that failed validation
        """
        self.field = field
        if field:
            message = f"Validation error for field '{field}': {message}"
        super().__init__(message, recoverable=False, details={"field": field} if field else {})
