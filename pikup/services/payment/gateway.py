"""Payment service adapter: intent creation and confirmation."""

import asyncio
import secrets
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Dict

from loguru import logger

from ...constants import Delays
from ...core.config.settings import PikupSettings
from ...core.environment import Environment
from ...core.exceptions import (
    ConfigurationError,
    NetworkError,
    PaymentConfirmationFailedError,
    PaymentIntentFailedError,
)
from ...core.result import Result, err, ok
from ...models.booking import CustomerRef
from ...utils.masking import mask_email, mask_secret
from ..api.client import PikupApiClient

CREATE_PAYMENT_PATH = "/create-payment"
CONFIRM_PAYMENT_PATH = "/confirm-payment"


@dataclass(frozen=True)
class PaymentIntent:
    """Intent returned by ``create-payment``."""

    id: str
    client_secret: str
    fabricated: bool = False


class PaymentGateway:
    """
    Talks to the payment service.

    With ``dev_fallback`` on, connection failures yield a fabricated intent
    and confirmation. The flag is refused outside development.
    """

    def __init__(self, api: PikupApiClient, dev_fallback: bool = False):
        """
        Initialize payment gateway.

        Args:
            api: Backend HTTP client
            dev_fallback: Fabricate payments when the service is unreachable

        Raises:
            ConfigurationError: If the fallback is requested in production or staging
        """
        if dev_fallback and Environment.is_production_or_staging():
            raise ConfigurationError("Development payment fallback is not allowed in production")
        self.api = api
        self.dev_fallback = dev_fallback

    @classmethod
    def from_settings(cls, api: PikupApiClient, settings: PikupSettings) -> "PaymentGateway":
        return cls(api, dev_fallback=settings.dev_payment_fallback_enabled)

    async def create_intent(
        self,
        amount: Decimal,
        currency: str,
        customer: CustomerRef,
        payment_method_id: str,
        ride_details: Dict[str, Any],
    ) -> Result[PaymentIntent, str]:
        """
        Create a payment intent.

        Args:
            amount: Total to charge, in currency units
            currency: ISO currency code
            customer: Paying customer
            payment_method_id: Provider payment method id
            ride_details: Trip and insurance metadata attached to the intent

        Returns:
            Success(PaymentIntent) or Failure carrying PaymentIntentFailedError
            or NetworkError
        """
        payload = {
            "amount": float(amount),
            "currency": currency,
            "userEmail": customer.email,
            "userId": customer.user_id,
            "paymentMethodId": payment_method_id,
            "rideDetails": ride_details,
        }
        logger.info(
            f"Creating payment intent for {amount} {currency} ({mask_email(customer.email)})"
        )

        try:
            response = await self.api.post_json(CREATE_PAYMENT_PATH, payload)
        except NetworkError as e:
            if self.dev_fallback:
                return ok(self._fabricated_intent())
            logger.error(f"Payment intent request failed: {e}")
            return err(e)

        if not response.success:
            logger.warning(
                f"Payment intent rejected (status={response.status}, "
                f"code={response.error_code}): {response.error_message}"
            )
            return err(PaymentIntentFailedError(response.error_message, code=response.error_code))

        intent = response.data.get("paymentIntent") or {}
        intent_id = intent.get("id")
        client_secret = intent.get("client_secret")
        if not intent_id or not client_secret:
            logger.error("Payment intent response is missing its id or client secret")
            return err(PaymentIntentFailedError("Payment intent response is incomplete"))

        logger.info(f"Payment intent created: {mask_secret(intent_id)}")
        return ok(PaymentIntent(id=intent_id, client_secret=client_secret))

    async def confirm(self, intent: PaymentIntent, payment_method_id: str) -> Result[str, str]:
        """
        Confirm an intent against a payment method.

        Returns:
            Success(intent status) or Failure carrying
            PaymentConfirmationFailedError or NetworkError
        """
        if intent.fabricated:
            await asyncio.sleep(Delays.DEV_PAYMENT_CONFIRMATION)
            logger.warning(f"Confirming fabricated payment intent {intent.id}")
            return ok("succeeded")

        try:
            response = await self.api.post_json(
                CONFIRM_PAYMENT_PATH,
                {"clientSecret": intent.client_secret, "paymentMethodId": payment_method_id},
            )
        except NetworkError as e:
            logger.error(f"Payment confirmation request failed: {e}")
            return err(e)

        if not response.success:
            logger.warning(
                f"Payment confirmation rejected (status={response.status}, "
                f"code={response.error_code}): {response.error_message}"
            )
            return err(
                PaymentConfirmationFailedError(response.error_message, code=response.error_code)
            )

        status = (response.data.get("paymentIntent") or {}).get("status", "succeeded")
        if status != "succeeded":
            logger.warning(f"Payment intent {mask_secret(intent.id)} ended in status '{status}'")
            return err(
                PaymentConfirmationFailedError(f"Payment ended in status '{status}'", code=status)
            )

        logger.info(f"Payment confirmed: {mask_secret(intent.id)}")
        return ok(status)

    def _fabricated_intent(self) -> PaymentIntent:
        stamp = int(time.time() * 1000)
        intent = PaymentIntent(
            id=f"pi_mock_{stamp}",
            client_secret=f"pi_mock_{stamp}_secret_{secrets.token_hex(5)}",
            fabricated=True,
        )
        logger.warning(f"Payment service unreachable, fabricated intent {intent.id} (development)")
        return intent
