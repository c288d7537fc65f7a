"""Booking flow: draft → price and insure → pay → book → track."""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Dict, Optional, Set

from loguru import logger

from ...core.config.settings import PikupSettings, get_settings
from ...core.enums import VehicleType
from ...core.exceptions import (
    BookingError,
    BookingPersistFailedError,
    InsuranceUnavailableError,
    PikupError,
    ValidationError,
)
from ...core.logger import draft_context
from ...models.booking import Booking, BookingDraft, CustomerRef, ItemDetails
from ...models.fare import Money, round2
from ...models.payment import PaymentMethodRef, PaymentTransaction
from ...models.trip import TripParameters
from ...repositories.base import BookingStore
from ..insurance.gateway import InsuranceGateway
from ..insurance.manager import InsuranceQuoteManager
from ..payment.coordinator import PaymentCoordinator
from ..payment.notices import PaymentFailureNotice
from ..payment.ride_details import build_ride_details
from ..pricing.client import PricingClient, PricingQuote
from ..tracking.status_poller import BookingCallback, DeliveryStatusPoller
from .assembler import BookingAssembler


@dataclass(frozen=True)
class BookingOutcome:
    """Result of confirming a draft."""

    booking: Optional[Booking] = None
    transaction: Optional[PaymentTransaction] = None
    notice: Optional[PaymentFailureNotice] = None
    error: Optional[PikupError] = None

    @property
    def succeeded(self) -> bool:
        return self.booking is not None

    @property
    def message(self) -> Optional[str]:
        """What to tell the user when the booking did not go through."""
        if self.notice is not None:
            return self.notice.message
        if self.error is not None:
            return self.error.user_message
        return None


class BookingFlow:
    """
    Owns booking drafts from trip parameters to tracking.

    Every stage takes a draft and returns an updated copy. The fare and
    coverage of a draft are only written by the pricing and insurance
    stages; payment transactions only by the coordinator.
    """

    def __init__(
        self,
        pricing: PricingClient,
        insurance: InsuranceGateway,
        payments: PaymentCoordinator,
        store: BookingStore,
        settings: Optional[PikupSettings] = None,
    ):
        """
        Initialize booking flow.

        Args:
            pricing: Pricing service client
            insurance: Insurance quoting adapter
            payments: Payment coordinator
            store: Booking store
            settings: Settings, defaults to the process settings
        """
        self.settings = settings or get_settings()
        self.pricing = pricing
        self.insurance = insurance
        self.payments = payments
        self.store = store
        self.assembler = BookingAssembler(store)
        self._quotes: Dict[str, InsuranceQuoteManager] = {}
        self._closed: Set[str] = set()

    # Drafts

    def start_draft(
        self,
        trip: TripParameters,
        item: ItemDetails,
        customer: CustomerRef,
        scheduled_at: Optional[datetime] = None,
        include_coverage: bool = False,
    ) -> BookingDraft:
        """
        Open a new draft.

        Coverage starts included when requested or when it cannot be
        switched off; the quote is then fetched alongside pricing.

        Raises:
            ValidationError: If the scheduled time is not in the future
        """
        if scheduled_at is not None and scheduled_at <= datetime.now(timezone.utc):
            raise ValidationError("scheduled time must be in the future", field="scheduled_at")
        draft = BookingDraft(trip=trip, item=item, customer=customer, scheduled_at=scheduled_at)
        manager = InsuranceQuoteManager(
            self.insurance, opt_out_allowed=self.settings.insurance_opt_out_allowed
        )
        manager.included = include_coverage or not manager.opt_out_allowed
        self._quotes[draft.draft_id] = manager
        draft = self._with_coverage(draft, manager)
        logger.info(
            f"Draft {draft.draft_id} started ({trip.pickup.address} -> {trip.dropoff.address})"
        )
        return draft

    def quote_manager(self, draft: BookingDraft) -> InsuranceQuoteManager:
        """
        Insurance quote manager of a draft.

        Raises:
            BookingError: If the draft is unknown to this flow
        """
        manager = self._quotes.get(draft.draft_id)
        if manager is None:
            raise BookingError(f"Unknown draft {draft.draft_id}")
        return manager

    def is_closed(self, draft: BookingDraft) -> bool:
        return draft.closed or draft.draft_id in self._closed

    @staticmethod
    def _with_coverage(draft: BookingDraft, manager: InsuranceQuoteManager) -> BookingDraft:
        if manager.closed:
            return draft.evolve(closed=True)
        return draft.evolve(
            coverage=manager.selection,
            insurance_state=manager.state,
            insurance_error=manager.error_message,
        )

    def _with_pricing(self, draft: BookingDraft, quote: PricingQuote) -> BookingDraft:
        trip = draft.trip
        if trip.distance_miles is None:
            trip = trip.with_route(quote.distance_miles, quote.duration_minutes)
        elif trip.duration_minutes is None:
            trip = trip.with_route(trip.distance_miles, quote.duration_minutes)
        return draft.evolve(
            trip=trip,
            fares=dict(quote.fares),
            pricing_degraded=quote.degraded,
            pricing_error=quote.reason,
        )

    async def price(self, draft: BookingDraft) -> BookingDraft:
        """
        Price every vehicle type and, when coverage is on, quote insurance.

        Both requests run concurrently when the trip distance is known;
        otherwise insurance waits for the distance resolved by pricing.
        Results for a closed draft are discarded.
        """
        if self.is_closed(draft):
            return draft

        with draft_context(draft.draft_id):
            manager = self.quote_manager(draft)
            if draft.trip.distance_miles is not None:
                quote, _ = await asyncio.gather(
                    self.pricing.fetch_prices_or_fallback(draft.trip),
                    self._quote_if_included(draft, manager),
                )
                if self.is_closed(draft):
                    logger.debug("Discarding pricing for closed draft")
                    return draft.evolve(closed=True)
                priced = self._with_pricing(draft, quote)
            else:
                quote = await self.pricing.fetch_prices_or_fallback(draft.trip)
                if self.is_closed(draft):
                    logger.debug("Discarding pricing for closed draft")
                    return draft.evolve(closed=True)
                priced = self._with_pricing(draft, quote)
                await self._quote_if_included(priced, manager)

            if quote.degraded:
                logger.warning(f"Draft priced with static estimates: {quote.reason}")
            return self._with_coverage(priced, manager)

    async def _quote_if_included(self, draft: BookingDraft, manager: InsuranceQuoteManager) -> None:
        if manager.included:
            await manager.ensure_quote(draft.insurance_request)

    async def set_coverage(self, draft: BookingDraft, included: bool) -> BookingDraft:
        """
        Switch item coverage on or off.

        Raises:
            ValidationError: If switching off is not allowed
        """
        if self.is_closed(draft):
            return draft
        with draft_context(draft.draft_id):
            manager = self.quote_manager(draft)
            if included:
                await manager.enable(draft.insurance_request)
            else:
                manager.disable()
            return self._with_coverage(draft, manager)

    async def select_vehicle(self, draft: BookingDraft, vehicle_type: VehicleType) -> BookingDraft:
        """Pick a vehicle type; coverage is re-quoted for the new trip when included."""
        if self.is_closed(draft):
            return draft
        updated = draft.evolve(trip=draft.trip.with_vehicle(vehicle_type))
        with draft_context(draft.draft_id):
            manager = self.quote_manager(draft)
            await self._quote_if_included(updated, manager)
            return self._with_coverage(updated, manager)

    async def set_item_value(self, draft: BookingDraft, value: Optional[Money]) -> BookingDraft:
        """Declare the item value; coverage is re-quoted when included."""
        if self.is_closed(draft):
            return draft
        item_value = round2(value) if value is not None else None
        updated = draft.evolve(
            item=ItemDetails(
                description=draft.item.description,
                value=item_value,
                photo_urls=draft.item.photo_urls,
            )
        )
        with draft_context(draft.draft_id):
            manager = self.quote_manager(draft)
            await self._quote_if_included(updated, manager)
            return self._with_coverage(updated, manager)

    async def retry_insurance(self, draft: BookingDraft) -> BookingDraft:
        """Request the coverage quote again after an error."""
        if self.is_closed(draft):
            return draft
        with draft_context(draft.draft_id):
            manager = self.quote_manager(draft)
            await manager.retry()
            return self._with_coverage(draft, manager)

    async def refresh_insurance(self, draft: BookingDraft) -> BookingDraft:
        """Fetch a fresh coverage quote, e.g. after the payment service rejected the old one."""
        if self.is_closed(draft):
            return draft
        with draft_context(draft.draft_id):
            manager = self.quote_manager(draft)
            await manager.refresh()
            return self._with_coverage(draft, manager)

    # Payment and booking

    async def confirm(
        self, draft: BookingDraft, payment_method: Optional[PaymentMethodRef] = None
    ) -> BookingOutcome:
        """
        Pay for the draft and create the booking.

        Returns:
            BookingOutcome with the stored booking, or the failure to show

        Raises:
            BookingError: If the draft was closed
            ValidationError: If the draft has not been priced
            DuplicatePaymentAttemptError: If a payment for the draft is in flight
        """
        if self.is_closed(draft):
            raise BookingError(f"Draft {draft.draft_id} is closed")

        fare = draft.selected_fare
        if fare is None:
            raise ValidationError("draft must be priced before confirming", field="fare")

        manager = self.quote_manager(draft)
        if manager.blocks_confirmation:
            error = manager.error or InsuranceUnavailableError(
                "Coverage quote is not ready", code=None
            )
            logger.info(f"Confirmation blocked by insurance: {error.user_message}")
            return BookingOutcome(error=error)

        transaction = self.payments.begin(draft.draft_id, fare.total, payment_method)
        return await self.pay(draft, transaction)

    async def pay(self, draft: BookingDraft, transaction: PaymentTransaction) -> BookingOutcome:
        """Run a transaction and, once it succeeds, assemble and submit the booking."""
        with draft_context(draft.draft_id):
            result = await self.payments.pay(
                transaction, draft.customer, build_ride_details(draft)
            )
            if result.is_failure():
                notice = PaymentFailureNotice.from_error(result.exception)
                error = result.exception if isinstance(result.exception, PikupError) else None
                return BookingOutcome(transaction=transaction, notice=notice, error=error)

            booking = self.assembler.assemble(draft, transaction)
            try:
                stored = await self.assembler.submit(booking)
            except BookingPersistFailedError as e:
                return BookingOutcome(
                    transaction=transaction, notice=PaymentFailureNotice.from_error(e), error=e
                )

            self._release(draft)
            return BookingOutcome(booking=stored, transaction=transaction)

    async def retry_payment(
        self, draft: BookingDraft, transaction: PaymentTransaction
    ) -> BookingOutcome:
        """Retry a failed payment with the same method at the current fare."""
        retry = self.payments.retry(transaction, self._payable_total(draft))
        return await self.pay(draft, retry)

    async def change_payment_method(
        self,
        draft: BookingDraft,
        transaction: PaymentTransaction,
        payment_method: PaymentMethodRef,
    ) -> BookingOutcome:
        """Retry a failed payment with another method at the current fare."""
        retry = self.payments.change_method(
            transaction, payment_method, self._payable_total(draft)
        )
        return await self.pay(draft, retry)

    @staticmethod
    def _payable_total(draft: BookingDraft) -> Decimal:
        fare = draft.selected_fare
        if fare is None:
            raise ValidationError("draft must be priced before paying", field="fare")
        return fare.total

    def abandon_payment(self, draft: BookingDraft, transaction: PaymentTransaction) -> BookingDraft:
        """Give up paying and close the draft."""
        self.payments.abandon(transaction)
        return self.close(draft)

    # Tracking

    def track(
        self,
        booking: Booking,
        on_complete: Optional[BookingCallback] = None,
        on_cancel: Optional[BookingCallback] = None,
        on_update: Optional[BookingCallback] = None,
    ) -> DeliveryStatusPoller:
        """
        Start following a stored booking.

        Raises:
            ValidationError: If the booking has no id yet
        """
        poller = DeliveryStatusPoller.from_settings(
            self.store,
            booking.id,
            self.settings,
            on_update=on_update,
            on_complete=on_complete,
            on_cancel=on_cancel,
        )
        return poller.start()

    def close(self, draft: BookingDraft) -> BookingDraft:
        """Abandon a draft; responses still in flight are discarded."""
        self._release(draft)
        logger.info(f"Draft {draft.draft_id} closed")
        return draft.evolve(closed=True)

    def _release(self, draft: BookingDraft) -> None:
        self._closed.add(draft.draft_id)
        manager = self._quotes.pop(draft.draft_id, None)
        if manager is not None:
            manager.close()
        self.payments.release(draft.draft_id)
