"""Payment transaction coordinator."""

from decimal import Decimal
from typing import Any, Dict, Optional, Set

from loguru import logger

from ...constants import DEFAULT_CURRENCY
from ...core.enums import PaymentState
from ...core.exceptions import (
    DuplicatePaymentAttemptError,
    InvalidPaymentTransitionError,
    PaymentMethodMissingError,
    PikupError,
    ValidationError,
)
from ...core.result import Result, err, ok
from ...models.booking import CustomerRef
from ...models.fare import round2
from ...models.payment import PaymentErrorInfo, PaymentMethodRef, PaymentRecord, PaymentTransaction
from ...utils.masking import mask_secret
from .gateway import PaymentGateway
from .methods import PaymentMethodProvider
from .notices import PaymentFailureNotice


class PaymentCoordinator:
    """
    Runs payment transactions for booking drafts.

    At most one transaction per draft may be in flight, and a draft that
    has been paid cannot be charged again. Failed transactions are frozen;
    ``retry``, ``change_method`` and ``abandon`` are the ways forward.
    """

    def __init__(
        self,
        gateway: PaymentGateway,
        methods: PaymentMethodProvider,
        currency: str = DEFAULT_CURRENCY,
    ):
        """
        Initialize payment coordinator.

        Args:
            gateway: Payment service adapter
            methods: Saved payment method provider
            currency: Currency for new transactions
        """
        self.gateway = gateway
        self.methods = methods
        self.currency = currency
        self._active: Dict[str, PaymentTransaction] = {}
        self._paying: Set[str] = set()

    def begin(
        self,
        draft_id: str,
        amount: Decimal,
        payment_method: Optional[PaymentMethodRef] = None,
        retry_count: int = 0,
    ) -> PaymentTransaction:
        """
        Create a transaction for a draft.

        Args:
            draft_id: Booking draft being paid for
            amount: Fare total
            payment_method: Method to charge, defaults to the saved default
            retry_count: Number of earlier attempts for this draft

        Returns:
            New idle transaction

        Raises:
            ValidationError: If the amount is not positive
            DuplicatePaymentAttemptError: If the draft is paid or a payment is in flight
        """
        amount = round2(amount)
        if amount <= 0:
            raise ValidationError("payment amount must be positive", field="amount")

        current = self._active.get(draft_id)
        if draft_id in self._paying or (current is not None and current.succeeded):
            raise DuplicatePaymentAttemptError(draft_id)

        tx = PaymentTransaction(
            draft_id=draft_id,
            amount=amount,
            currency=self.currency,
            payment_method=payment_method,
            retry_count=retry_count,
        )
        self._active[draft_id] = tx
        logger.debug(f"Payment transaction {tx.transaction_id} created (attempt {retry_count + 1})")
        return tx

    def active(self, draft_id: str) -> Optional[PaymentTransaction]:
        """Latest transaction of a draft."""
        return self._active.get(draft_id)

    async def pay(
        self,
        tx: PaymentTransaction,
        customer: CustomerRef,
        ride_details: Dict[str, Any],
    ) -> Result[PaymentRecord, str]:
        """
        Drive a transaction to ``succeeded`` or ``failed``.

        A transaction left in ``methodRequired`` can be paid again once a
        method is saved.

        Args:
            tx: Transaction created by ``begin``
            customer: Paying customer
            ride_details: Trip and insurance metadata for the intent

        Returns:
            Success(PaymentRecord) or Failure carrying the typed error

        Raises:
            InvalidPaymentTransitionError: If the transaction is already finished
            DuplicatePaymentAttemptError: If another transaction of the draft is in flight
        """
        if tx.state.is_terminal or tx.in_flight:
            raise InvalidPaymentTransitionError(tx.state.value, PaymentState.CREATING_INTENT.value)
        current = self._active.get(tx.draft_id)
        if tx.draft_id in self._paying or (
            current is not None and current is not tx and current.succeeded
        ):
            raise DuplicatePaymentAttemptError(tx.draft_id)
        self._active[tx.draft_id] = tx

        self._paying.add(tx.draft_id)
        try:
            return await self._run(tx, customer, ride_details)
        finally:
            self._paying.discard(tx.draft_id)

    async def _run(
        self,
        tx: PaymentTransaction,
        customer: CustomerRef,
        ride_details: Dict[str, Any],
    ) -> Result[PaymentRecord, str]:
        method = tx.payment_method
        if method is None:
            try:
                method = await self.methods.get_default()
            except PikupError as e:
                logger.warning(f"Could not load payment methods: {e}")
                return self._fail(tx, e)

        if method is None:
            error = PaymentMethodMissingError()
            if tx.state == PaymentState.IDLE:
                tx.transition(PaymentState.METHOD_REQUIRED)
            tx.last_error = self._error_info(error)
            logger.info(f"Payment for draft {tx.draft_id} blocked: no payment method")
            return err(error)

        tx.payment_method = method
        tx.transition(PaymentState.CREATING_INTENT)
        intent_result = await self.gateway.create_intent(
            tx.amount, tx.currency, customer, method.id, ride_details
        )
        if intent_result.is_failure():
            return self._fail(tx, intent_result.exception)

        intent = intent_result.unwrap()
        tx.intent_id = intent.id
        tx.client_secret = intent.client_secret
        tx.transition(PaymentState.AWAITING_CONFIRMATION)

        tx.transition(PaymentState.CONFIRMING)
        confirm_result = await self.gateway.confirm(intent, method.id)
        if confirm_result.is_failure():
            return self._fail(tx, confirm_result.exception)

        record = PaymentRecord(
            intent_id=intent.id,
            status=confirm_result.unwrap(),
            amount=tx.amount,
            currency=tx.currency,
            payment_method_id=method.id,
            confirmed_at=tx.updated_at,
        )
        tx.record = record
        tx.last_error = None
        tx.transition(PaymentState.SUCCEEDED)
        logger.info(
            f"Payment {mask_secret(intent.id)} succeeded for draft {tx.draft_id}: "
            f"{tx.amount} {tx.currency}"
        )
        return ok(record)

    def retry(
        self, tx: PaymentTransaction, amount: Optional[Decimal] = None
    ) -> PaymentTransaction:
        """
        Start a new transaction with the same method after a failure.

        Args:
            tx: Failed transaction
            amount: Current fare total, defaults to the amount of ``tx``

        Raises:
            InvalidPaymentTransitionError: If ``tx`` has not failed
        """
        if tx.state != PaymentState.FAILED:
            raise InvalidPaymentTransitionError(tx.state.value, "retry")
        return self.begin(
            tx.draft_id, amount or tx.amount, tx.payment_method, tx.retry_count + 1
        )

    def change_method(
        self,
        tx: PaymentTransaction,
        payment_method: PaymentMethodRef,
        amount: Optional[Decimal] = None,
    ) -> PaymentTransaction:
        """
        Start a new transaction with another method.

        A transaction still waiting for a method is closed first.

        Raises:
            InvalidPaymentTransitionError: If ``tx`` is in flight or succeeded
        """
        if tx.state == PaymentState.METHOD_REQUIRED:
            tx.transition(PaymentState.FAILED)
        elif tx.state != PaymentState.FAILED:
            raise InvalidPaymentTransitionError(tx.state.value, "change_method")
        return self.begin(tx.draft_id, amount or tx.amount, payment_method, tx.retry_count + 1)

    def abandon(self, tx: PaymentTransaction) -> None:
        """
        Give up on paying the draft.

        Raises:
            InvalidPaymentTransitionError: If ``tx`` is in flight or succeeded
        """
        if tx.in_flight or tx.succeeded:
            raise InvalidPaymentTransitionError(tx.state.value, "abandon")
        if tx.state != PaymentState.FAILED:
            tx.transition(PaymentState.FAILED)
            tx.last_error = PaymentErrorInfo(kind="Abandoned", message="Payment abandoned")
        if self._active.get(tx.draft_id) is tx:
            del self._active[tx.draft_id]
        logger.info(f"Payment for draft {tx.draft_id} abandoned")

    def release(self, draft_id: str) -> None:
        """Forget a draft's transactions once it is closed."""
        self._active.pop(draft_id, None)

    def notice_for(self, tx: PaymentTransaction) -> Optional[PaymentFailureNotice]:
        """Failure notice for the transaction's last error."""
        if tx.last_error is None:
            return None
        return PaymentFailureNotice.from_error_info(tx.last_error)

    def _fail(
        self, tx: PaymentTransaction, error: Optional[Exception]
    ) -> Result[PaymentRecord, str]:
        if error is None:
            error = PikupError("Payment failed")
        tx.last_error = self._error_info(error)
        tx.transition(PaymentState.FAILED)
        logger.warning(
            f"Payment transaction {tx.transaction_id} failed "
            f"({tx.last_error.kind}, code={tx.last_error.code}): {tx.last_error.message}"
        )
        return err(error)

    @staticmethod
    def _error_info(error: Exception) -> PaymentErrorInfo:
        if isinstance(error, PikupError):
            return PaymentErrorInfo(
                kind=error.kind,
                message=error.message,
                code=error.code,
                user_message=error.user_message,
            )
        return PaymentErrorInfo(kind=type(error).__name__, message=str(error))
