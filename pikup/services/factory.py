"""Wires the booking pipeline from settings."""

from typing import Optional

from loguru import logger

from ..core.config.settings import PikupSettings, get_settings
from ..repositories.base import BookingStore
from ..repositories.http import HttpBookingStore
from .api.client import PikupApiClient
from .booking.flow import BookingFlow
from .insurance.gateway import InsuranceGateway
from .payment.coordinator import PaymentCoordinator
from .payment.gateway import PaymentGateway
from .payment.methods import HttpPaymentMethodProvider, PaymentMethodProvider
from .pricing.client import PricingClient


class PikupServices:
    """
    Owns the HTTP clients and the booking flow built on them.

    Use as an async context manager so the HTTP sessions are closed.
    """

    def __init__(
        self,
        user_id: str,
        settings: Optional[PikupSettings] = None,
        methods: Optional[PaymentMethodProvider] = None,
        store: Optional[BookingStore] = None,
    ):
        """
        Initialize services.

        Args:
            user_id: Customer whose saved payment methods are used
            settings: Settings, defaults to the process settings
            methods: Payment method provider, defaults to the HTTP provider
            store: Booking store, defaults to the HTTP document store
        """
        self.settings = settings or get_settings()
        token = self.settings.api_token.get_secret_value() if self.settings.api_token else None

        self.api = PikupApiClient(
            self.settings.api_base_url, timeout=self.settings.http_timeout_seconds, api_token=token
        )
        self.store_api = PikupApiClient(
            self.settings.booking_store_url,
            timeout=self.settings.http_timeout_seconds,
            api_token=token,
        )

        self.pricing = PricingClient(self.api)
        self.insurance = InsuranceGateway(self.api)
        self.methods = methods or HttpPaymentMethodProvider(self.api, user_id)
        self.store = store or HttpBookingStore(self.store_api)
        self.payments = PaymentCoordinator(
            PaymentGateway.from_settings(self.api, self.settings),
            self.methods,
            currency=self.settings.default_currency,
        )
        self.flow = BookingFlow(
            self.pricing, self.insurance, self.payments, self.store, settings=self.settings
        )
        logger.debug(f"Services wired for {self.settings.env} ({self.settings.api_base_url})")

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def close(self) -> None:
        """Close HTTP sessions."""
        await self.api.close()
        await self.store_api.close()
