"""Saved payment method providers."""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from loguru import logger

from ...constants import Limits
from ...core.exceptions import ApiError
from ...core.retry import get_payment_method_retry
from ...models.payment import PaymentMethodRef
from ...utils.masking import mask_secret
from ..api.client import PikupApiClient


class PaymentMethodProvider(ABC):
    """Source of the customer's saved payment methods."""

    @abstractmethod
    async def list_methods(self) -> List[PaymentMethodRef]:
        """
        List saved payment methods.

        Returns:
            Payment methods, default first when there is one
        """
        pass

    @abstractmethod
    async def get_default(self) -> Optional[PaymentMethodRef]:
        """
        Get the default payment method.

        Returns:
            Default method or None if nothing is saved
        """
        pass


class InMemoryPaymentMethodProvider(PaymentMethodProvider):
    """Payment methods kept in process, e.g. for a wallet screen or tests."""

    def __init__(self, methods: Optional[List[PaymentMethodRef]] = None):
        self._methods: Dict[str, PaymentMethodRef] = {}
        self._default_id: Optional[str] = None
        for method in methods or []:
            self.save(method)

    def save(self, method: PaymentMethodRef) -> PaymentMethodRef:
        """Save a method; the first one saved becomes the default."""
        self._methods[method.id] = method
        if self._default_id is None or method.is_default:
            self._default_id = method.id
        logger.info(f"Payment method saved: {method.display}")
        return method

    def remove(self, method_id: str) -> bool:
        """Remove a method; removing the default promotes the next one."""
        if self._methods.pop(method_id, None) is None:
            return False
        if self._default_id == method_id:
            self._default_id = next(iter(self._methods), None)
        logger.info(f"Payment method removed: {mask_secret(method_id)}")
        return True

    def set_default(self, method_id: str) -> None:
        """
        Make a saved method the default.

        Raises:
            KeyError: If the method is not saved
        """
        if method_id not in self._methods:
            raise KeyError(method_id)
        self._default_id = method_id

    def _with_flag(self, method: PaymentMethodRef) -> PaymentMethodRef:
        is_default = method.id == self._default_id
        if method.is_default == is_default:
            return method
        return PaymentMethodRef(
            id=method.id,
            brand=method.brand,
            last4=method.last4,
            exp_month=method.exp_month,
            exp_year=method.exp_year,
            is_default=is_default,
        )

    async def list_methods(self) -> List[PaymentMethodRef]:
        methods = [self._with_flag(m) for m in self._methods.values()]
        return sorted(methods, key=lambda m: not m.is_default)

    async def get_default(self) -> Optional[PaymentMethodRef]:
        if self._default_id is None:
            return None
        return self._with_flag(self._methods[self._default_id])


class HttpPaymentMethodProvider(PaymentMethodProvider):
    """Reads saved methods from ``GET /customer-payment-methods/{userId}``."""

    def __init__(
        self,
        api: PikupApiClient,
        user_id: str,
        attempts: int = Limits.PAYMENT_METHOD_FETCH_ATTEMPTS,
    ):
        self.api = api
        self.user_id = user_id
        self._fetch = get_payment_method_retry(attempts)(self._fetch_once)

    async def _fetch_once(self) -> List[PaymentMethodRef]:
        response = await self.api.get_json(f"/customer-payment-methods/{self.user_id}")
        if not response.success:
            raise ApiError(
                f"Could not load payment methods: {response.error_message}",
                status=response.status,
                code=response.error_code,
            )
        default_id = response.data.get("defaultPaymentMethodId")
        methods = [
            PaymentMethodRef.from_service(item, default_id)
            for item in response.data.get("paymentMethods") or []
            if item.get("id")
        ]
        return sorted(methods, key=lambda m: not m.is_default)

    async def list_methods(self) -> List[PaymentMethodRef]:
        """
        Raises:
            NetworkError: If the service stayed unreachable after retries
            ApiError: If the service rejected the request
        """
        methods = await self._fetch()
        logger.debug(f"Loaded {len(methods)} payment method(s)")
        return methods

    async def get_default(self) -> Optional[PaymentMethodRef]:
        methods = await self.list_methods()
        return methods[0] if methods else None
