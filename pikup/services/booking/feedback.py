"""Post-delivery rating and tip."""

from decimal import Decimal

from loguru import logger

from ...core.enums import DeliveryStatus
from ...core.exceptions import BookingError, ValidationError
from ...models.booking import Booking
from ...models.fare import Money, round2
from ...repositories.base import BookingStore

DEFAULT_RATING = 5


async def submit_feedback(
    store: BookingStore, booking: Booking, rating: int = DEFAULT_RATING, tip: Money = 0
) -> Booking:
    """
    Record the customer's rating and tip for a delivered booking.

    Args:
        store: Booking store
        booking: Completed booking
        rating: Stars from 1 to 5
        tip: Tip for the driver, rounded to cents

    Returns:
        Updated booking

    Raises:
        ValidationError: If rating or tip is out of range
        BookingError: If the booking is not completed or already rated
    """
    if not isinstance(rating, int) or not 1 <= rating <= 5:
        raise ValidationError("rating must be between 1 and 5", field="rating")
    tip_amount: Decimal = round2(tip)
    if tip_amount < 0:
        raise ValidationError("tip cannot be negative", field="tip")

    if booking.status != DeliveryStatus.COMPLETED:
        raise BookingError(f"Booking {booking.id} is not completed yet")
    if booking.rating is not None:
        raise BookingError(f"Feedback for booking {booking.id} was already submitted")

    updated = await store.record_feedback(booking.id, rating, tip_amount)
    logger.info(f"Feedback submitted for booking {booking.id}")
    return updated
