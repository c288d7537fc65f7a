"""In-process booking store."""

from dataclasses import replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, List, Optional

from loguru import logger

from ..core.enums import DeliveryStatus
from ..core.exceptions import BookingError
from ..models.booking import Booking
from .base import BookingStore, new_booking_id


class InMemoryBookingStore(BookingStore):
    """Dictionary-backed store for local runs and tests."""

    def __init__(self) -> None:
        self._bookings: Dict[str, Booking] = {}

    def _require(self, booking_id: str) -> Booking:
        booking = self._bookings.get(booking_id)
        if booking is None:
            raise BookingError(f"Booking {booking_id} not found")
        return booking

    async def create(self, booking: Booking) -> str:
        booking_id = booking.id or new_booking_id()
        self._bookings[booking_id] = booking.with_id(booking_id)
        logger.info(f"Booking {booking_id} stored")
        return booking_id

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        return self._bookings.get(booking_id)

    async def get_all(self) -> List[Booking]:
        return sorted(self._bookings.values(), key=lambda b: b.created_at, reverse=True)

    async def update_status(self, booking_id: str, status: DeliveryStatus) -> Booking:
        booking = self._require(booking_id).with_status(status)
        self._bookings[booking_id] = booking
        logger.info(f"Booking {booking_id} status -> {status.value}")
        return booking

    async def assign_driver(
        self, booking_id: str, driver_email: str, vehicle_plate: Optional[str] = None
    ) -> Booking:
        """Attach the driver who accepted the booking."""
        booking = replace(
            self._require(booking_id),
            driver_email=driver_email,
            vehicle_plate=vehicle_plate,
            status=DeliveryStatus.ACCEPTED,
            updated_at=datetime.now(timezone.utc),
        )
        self._bookings[booking_id] = booking
        return booking

    async def record_feedback(self, booking_id: str, rating: int, tip: Decimal) -> Booking:
        booking = replace(
            self._require(booking_id),
            rating=rating,
            tip=tip,
            updated_at=datetime.now(timezone.utc),
        )
        self._bookings[booking_id] = booking
        logger.info(f"Feedback recorded for booking {booking_id}: {rating} star(s), tip {tip}")
        return booking
