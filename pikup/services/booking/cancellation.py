"""Booking cancellation rules."""

from dataclasses import dataclass
from decimal import Decimal

from loguru import logger

from ...core.enums import DeliveryStatus
from ...core.exceptions import BookingNotCancellableError
from ...models.booking import Booking
from ...models.fare import ZERO
from ...repositories.base import BookingStore

_FREE_REASONS = {
    DeliveryStatus.PENDING: "Free cancellation - no driver assigned yet",
    DeliveryStatus.ACCEPTED: "Free cancellation - driver is on the way",
    DeliveryStatus.IN_PROGRESS: "Free cancellation - driver is on the way",
}

_BLOCKED_REASONS = {
    DeliveryStatus.ARRIVED_AT_PICKUP: "Cannot cancel - driver has arrived at pickup location",
    DeliveryStatus.PICKED_UP: "Cannot cancel - items have been picked up",
    DeliveryStatus.EN_ROUTE_TO_DROPOFF: "Cannot cancel - delivery is in progress",
    DeliveryStatus.ARRIVED_AT_DROPOFF: "Cannot cancel - delivery is in progress",
    DeliveryStatus.COMPLETED: "Cannot cancel - order has been completed",
    DeliveryStatus.CANCELLED: "Order is already cancelled",
}


@dataclass(frozen=True)
class CancellationInfo:
    can_cancel: bool
    reason: str
    fee: Decimal = ZERO
    refund_amount: Decimal = ZERO


def get_cancellation_info(booking: Booking) -> CancellationInfo:
    """Whether a booking can be cancelled, and on what terms."""
    if booking.status in _FREE_REASONS:
        return CancellationInfo(
            can_cancel=True,
            reason=_FREE_REASONS[booking.status],
            fee=ZERO,
            refund_amount=booking.fare.total,
        )
    return CancellationInfo(can_cancel=False, reason=_BLOCKED_REASONS[booking.status])


async def cancel_booking(store: BookingStore, booking: Booking) -> Booking:
    """
    Cancel a booking that is still cancellable.

    Raises:
        BookingNotCancellableError: If the booking is past the cancellation point
    """
    info = get_cancellation_info(booking)
    if not info.can_cancel:
        raise BookingNotCancellableError(info.reason)

    cancelled = await store.update_status(booking.id, DeliveryStatus.CANCELLED)
    logger.info(f"Booking {booking.id} cancelled, refund {info.refund_amount}")
    return cancelled
