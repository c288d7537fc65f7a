"""Booking persistence."""

from .base import BookingStore, new_booking_id
from .http import HttpBookingStore
from .memory import InMemoryBookingStore

__all__ = ["BookingStore", "HttpBookingStore", "InMemoryBookingStore", "new_booking_id"]
