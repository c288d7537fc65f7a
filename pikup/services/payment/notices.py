"""User-facing descriptions of payment failures and what can be done next."""

from dataclasses import dataclass
from typing import Optional, Tuple

from ...constants import (
    BOOKING_PERSIST_FAILED_MESSAGE,
    COVERAGE_REFRESH_MESSAGE,
    ERROR_COPY,
    GENERIC_PAYMENT_ERROR,
    INSURANCE_REQUIRED,
    INSURANCE_UNAVAILABLE,
    ITEM_VALUE_REQUIRED,
    NETWORK_ERROR_MESSAGE,
    PAYMENT_METHOD_REQUIRED_MESSAGE,
)
from ...core.enums import RecoveryAction
from ...core.exceptions import PikupError
from ...models.payment import PaymentErrorInfo


@dataclass(frozen=True)
class PaymentFailureNotice:
    """What to tell the user after a failed payment, and which actions to offer."""

    title: str
    message: str
    actions: Tuple[RecoveryAction, ...]
    kind: str = "PaymentError"
    code: Optional[str] = None

    def allows(self, action: RecoveryAction) -> bool:
        return action in self.actions

    @classmethod
    def build(
        cls, kind: str, code: Optional[str] = None, message: str = ""
    ) -> "PaymentFailureNotice":
        """
        Map an error kind and code to a notice.

        Args:
            kind: Error kind (exception class name)
            code: Remote error code, if any
            message: Fallback user message for unclassified errors

        Returns:
            PaymentFailureNotice
        """
        if kind == "BookingPersistFailedError":
            return cls(
                title="Booking Not Saved",
                message=BOOKING_PERSIST_FAILED_MESSAGE,
                actions=(RecoveryAction.CONTACT_SUPPORT,),
                kind=kind,
            )
        if kind == "PaymentMethodMissingError":
            return cls(
                title="Payment Method Required",
                message=PAYMENT_METHOD_REQUIRED_MESSAGE,
                actions=(RecoveryAction.ADD_METHOD, RecoveryAction.ABANDON),
                kind=kind,
            )
        if code == INSURANCE_UNAVAILABLE:
            return cls(
                title="Coverage Unavailable",
                message=COVERAGE_REFRESH_MESSAGE,
                actions=(RecoveryAction.REFRESH_INSURANCE, RecoveryAction.ABANDON),
                kind=kind,
                code=code,
            )
        if code == ITEM_VALUE_REQUIRED:
            return cls(
                title="Item Value Required",
                message=ERROR_COPY[ITEM_VALUE_REQUIRED],
                actions=(RecoveryAction.ENTER_ITEM_VALUE, RecoveryAction.ABANDON),
                kind=kind,
                code=code,
            )
        if code == INSURANCE_REQUIRED:
            return cls(
                title="Insurance Required",
                message=ERROR_COPY[INSURANCE_REQUIRED],
                actions=(RecoveryAction.REFRESH_INSURANCE, RecoveryAction.ABANDON),
                kind=kind,
                code=code,
            )
        if kind == "NetworkError":
            return cls(
                title="Connection Problem",
                message=NETWORK_ERROR_MESSAGE,
                actions=(RecoveryAction.RETRY, RecoveryAction.ABANDON),
                kind=kind,
                code=code,
            )
        if kind == "PaymentConfirmationFailedError":
            return cls(
                title="Payment Failed",
                message=message or GENERIC_PAYMENT_ERROR,
                actions=(
                    RecoveryAction.CHANGE_METHOD,
                    RecoveryAction.RETRY,
                    RecoveryAction.ABANDON,
                ),
                kind=kind,
                code=code,
            )
        return cls(
            title="Payment Error",
            message=message or GENERIC_PAYMENT_ERROR,
            actions=(RecoveryAction.RETRY, RecoveryAction.CHANGE_METHOD, RecoveryAction.ABANDON),
            kind=kind,
            code=code,
        )

    @classmethod
    def from_error(cls, error: Exception) -> "PaymentFailureNotice":
        if isinstance(error, PikupError):
            return cls.build(error.kind, error.code, error.user_message)
        return cls.build(type(error).__name__)

    @classmethod
    def from_error_info(cls, info: PaymentErrorInfo) -> "PaymentFailureNotice":
        return cls.build(info.kind, info.code, info.user_message)
