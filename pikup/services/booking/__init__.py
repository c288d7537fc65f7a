"""Booking assembly, flow, cancellation and feedback."""

from .assembler import BookingAssembler
from .cancellation import CancellationInfo, cancel_booking, get_cancellation_info
from .feedback import submit_feedback
from .flow import BookingFlow, BookingOutcome

__all__ = [
    "BookingAssembler",
    "BookingFlow",
    "BookingOutcome",
    "CancellationInfo",
    "cancel_booking",
    "get_cancellation_info",
    "submit_feedback",
]
