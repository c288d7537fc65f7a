"""Booking store backed by the remote document API."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from loguru import logger

from ..core.enums import DeliveryStatus
from ..core.exceptions import ApiError
from ..models.booking import Booking
from ..services.api.client import ApiResponse, PikupApiClient
from .base import BookingStore, new_booking_id

COLLECTION = "pickupRequests"


class HttpBookingStore(BookingStore):
    """
    Stores bookings as documents under ``{base}/pickupRequests/{id}``.

    Documents are written with PATCH so a create is an upsert on a fresh id.
    """

    def __init__(self, api: PikupApiClient):
        self.api = api

    @staticmethod
    def _path(booking_id: str) -> str:
        return f"/{COLLECTION}/{booking_id}"

    @staticmethod
    def _check(response: ApiResponse, action: str) -> None:
        if not response.success:
            raise ApiError(
                f"Booking store could not {action}: {response.error_message}",
                status=response.status,
                code=response.error_code,
            )

    async def _patch(self, booking_id: str, fields: Dict[str, Any], action: str) -> ApiResponse:
        response = await self.api.patch_json(self._path(booking_id), fields)
        self._check(response, action)
        return response

    async def create(self, booking: Booking) -> str:
        """
        Raises:
            NetworkError: If the store is unreachable
            ApiError: If the store rejected the document
        """
        booking_id = booking.id or new_booking_id()
        await self._patch(booking_id, booking.with_id(booking_id).to_dict(), "create booking")
        logger.info(f"Booking {booking_id} stored")
        return booking_id

    async def get_by_id(self, booking_id: str) -> Optional[Booking]:
        """
        Raises:
            NetworkError: If the store is unreachable
            ApiError: If the store failed or returned an unreadable document
        """
        response = await self.api.get_json(self._path(booking_id))
        if response.status == 404:
            return None
        self._check(response, "load booking")
        try:
            return Booking.from_dict(response.data)
        except (KeyError, AttributeError, TypeError, ValueError, ArithmeticError) as e:
            raise ApiError(f"Unreadable booking document {booking_id}: {e}", status=response.status)

    async def _patched(self, booking_id: str, fields: Dict[str, Any], action: str) -> Booking:
        fields["updatedAt"] = datetime.now(timezone.utc).isoformat()
        await self._patch(booking_id, fields, action)
        booking = await self.get_by_id(booking_id)
        if booking is None:
            raise ApiError(f"Booking {booking_id} disappeared after update", status=404)
        return booking

    async def update_status(self, booking_id: str, status: DeliveryStatus) -> Booking:
        booking = await self._patched(booking_id, {"status": status.value}, "update status")
        logger.info(f"Booking {booking_id} status -> {status.value}")
        return booking

    async def record_feedback(self, booking_id: str, rating: int, tip: Decimal) -> Booking:
        return await self._patched(
            booking_id,
            {"customerRating": rating, "driverTip": str(tip)},
            "record feedback",
        )
