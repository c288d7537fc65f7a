"""Domain models for the booking pipeline."""

from .booking import Booking, BookingDraft, CustomerRef, ItemDetails
from .fare import FareBreakdown, round2, to_cents
from .insurance import CoverageSelection, InsuranceQuote, InsuranceQuoteRequest
from .payment import PaymentErrorInfo, PaymentMethodRef, PaymentRecord, PaymentTransaction
from .trip import Coordinates, Location, TripParameters

__all__ = [
    "Booking",
    "BookingDraft",
    "CustomerRef",
    "ItemDetails",
    "FareBreakdown",
    "round2",
    "to_cents",
    "CoverageSelection",
    "InsuranceQuote",
    "InsuranceQuoteRequest",
    "PaymentErrorInfo",
    "PaymentMethodRef",
    "PaymentRecord",
    "PaymentTransaction",
    "Coordinates",
    "Location",
    "TripParameters",
]
