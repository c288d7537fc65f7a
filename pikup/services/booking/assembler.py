"""Booking assembler: turns a paid draft into a persisted booking."""

from dataclasses import replace
from datetime import datetime, timezone
from typing import Optional, Set

from loguru import logger

from ...core.enums import DeliveryStatus, PaymentState
from ...core.exceptions import (
    BookingError,
    BookingPersistFailedError,
    PaymentNotSucceededError,
    ValidationError,
)
from ...models.booking import Booking, BookingDraft
from ...models.payment import PaymentTransaction
from ...repositories.base import BookingStore
from ...utils.masking import mask_secret


class BookingAssembler:
    """
    Combines draft, fare, coverage and payment into one booking.

    ``assemble`` is pure. ``submit`` calls the store exactly once per draft
    and is never retried: the customer has already paid.
    """

    def __init__(self, store: BookingStore):
        self.store = store
        self._submitted: Set[str] = set()

    def assemble(
        self,
        draft: BookingDraft,
        transaction: PaymentTransaction,
        now: Optional[datetime] = None,
    ) -> Booking:
        """
        Build the booking for a paid draft.

        Args:
            draft: Priced draft
            transaction: Payment transaction of the draft
            now: Reference time for the schedule check

        Returns:
            Booking in ``pending`` status, without an id

        Raises:
            PaymentNotSucceededError: If the payment has not succeeded
            ValidationError: If the draft and payment do not match
        """
        if transaction.state != PaymentState.SUCCEEDED or transaction.record is None:
            raise PaymentNotSucceededError(transaction.state.value)
        if transaction.draft_id != draft.draft_id:
            raise ValidationError("payment belongs to another draft", field="draft_id")

        fare = draft.selected_fare
        if fare is None:
            raise ValidationError("draft has no fare for the selected vehicle", field="fare")
        if fare.total != transaction.record.amount:
            raise ValidationError(
                f"charged {transaction.record.amount} but fare total is {fare.total}",
                field="amount",
            )

        now = now or datetime.now(timezone.utc)
        if draft.scheduled_at is not None and draft.scheduled_at <= now:
            raise ValidationError("scheduled time must be in the future", field="scheduled_at")

        quote = draft.applicable_quote if draft.coverage.included else None
        trip = draft.trip
        return Booking(
            draft_id=draft.draft_id,
            customer=draft.customer,
            pickup=trip.pickup,
            dropoff=trip.dropoff,
            item=replace(draft.item),
            vehicle_type=trip.vehicle_type,
            fare=replace(fare),
            payment=transaction.record,
            insurance=replace(quote) if quote is not None else None,
            scheduled_at=draft.scheduled_at,
            distance_miles=trip.distance_miles or 0.0,
            duration_minutes=trip.duration_minutes or 0,
            status=DeliveryStatus.PENDING,
            created_at=now,
            updated_at=now,
        )

    async def submit(self, booking: Booking) -> Booking:
        """
        Persist the booking once.

        Returns:
            Booking carrying the id assigned by the store

        Raises:
            BookingError: If this draft was already submitted
            BookingPersistFailedError: If the store failed; payment was taken
        """
        if booking.draft_id in self._submitted:
            raise BookingError(f"Booking for draft {booking.draft_id} was already submitted")
        self._submitted.add(booking.draft_id)

        try:
            booking_id = await self.store.create(booking)
        except Exception as e:
            logger.error(
                f"Booking for draft {booking.draft_id} not saved after payment "
                f"{mask_secret(booking.payment.intent_id)}: {e}"
            )
            raise BookingPersistFailedError(
                f"Failed to persist booking: {e}", payment_intent_id=booking.payment.intent_id
            ) from e

        logger.info(f"Booking {booking_id} created for draft {booking.draft_id}")
        return booking.with_id(booking_id)
