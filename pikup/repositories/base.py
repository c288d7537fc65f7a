"""Booking store interface."""

import secrets
import string
import time
from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional

from ..core.enums import DeliveryStatus
from ..models.booking import Booking

_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_booking_id() -> str:
    """Generate an id of the form ``pickup_<epoch ms>_<9 random chars>``."""
    suffix = "".join(secrets.choice(_ID_ALPHABET) for _ in range(9))
    return f"pickup_{int(time.time() * 1000)}_{suffix}"


class BookingStore(ABC):
    """Persistence for paid bookings. Bookings are never deleted."""

    @abstractmethod
    async def create(self, booking: Booking) -> str:
        """
        Persist a new booking.

        Args:
            booking: Booking without an id

        Returns:
            Assigned booking id
        """
        pass

    @abstractmethod
    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        """
        Get booking by ID.

        Args:
            booking_id: Booking ID

        Returns:
            Booking or None if not found
        """
        pass

    @abstractmethod
    async def update_status(self, booking_id: str, status: DeliveryStatus) -> Booking:
        """
        Change a booking's lifecycle status.

        Args:
            booking_id: Booking ID
            status: New status

        Returns:
            Updated booking
        """
        pass

    @abstractmethod
    async def record_feedback(self, booking_id: str, rating: int, tip: Decimal) -> Booking:
        """
        Store the customer's rating and tip.

        Args:
            booking_id: Booking ID
            rating: Rating from 1 to 5
            tip: Tip amount

        Returns:
            Updated booking
        """
        pass
