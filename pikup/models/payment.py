"""Payment models: saved methods, transactions and finalized payments."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, FrozenSet, List, Optional

from ..core.enums import PaymentState
from ..core.exceptions import InvalidPaymentTransitionError
from .fare import round2


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PaymentMethodRef:
    """Reference to a payment method held by the payment provider.

    Only display metadata is kept; raw card data never reaches the core.
    """

    id: str
    brand: str = ""
    last4: str = ""
    exp_month: Optional[int] = None
    exp_year: Optional[int] = None
    is_default: bool = False

    @property
    def display(self) -> str:
        brand = self.brand.title() if self.brand else "Card"
        if self.last4:
            return f"{brand} ending in {self.last4}"
        return brand

    @classmethod
    def from_service(
        cls, data: Dict[str, Any], default_id: Optional[str] = None
    ) -> "PaymentMethodRef":
        """Build from a provider payment method object (``{id, card: {...}}``)."""
        card = data.get("card") or {}
        return cls(
            id=data["id"],
            brand=card.get("brand", ""),
            last4=card.get("last4", ""),
            exp_month=card.get("exp_month"),
            exp_year=card.get("exp_year"),
            is_default=data["id"] == default_id,
        )


@dataclass(frozen=True)
class PaymentErrorInfo:
    """Last error recorded on a transaction."""

    kind: str
    message: str
    code: Optional[str] = None
    user_message: str = ""


@dataclass(frozen=True)
class PaymentRecord:
    """Finalized payment attached to a booking."""

    intent_id: str
    status: str
    amount: Decimal
    currency: str
    payment_method_id: str
    confirmed_at: datetime

    def to_dict(self) -> Dict[str, Any]:
        return {
            "intentId": self.intent_id,
            "status": self.status,
            "amount": str(self.amount),
            "currency": self.currency,
            "paymentMethodId": self.payment_method_id,
            "confirmedAt": self.confirmed_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PaymentRecord":
        return cls(
            intent_id=data["intentId"],
            status=data.get("status", "succeeded"),
            amount=round2(data["amount"]),
            currency=data.get("currency", "usd"),
            payment_method_id=data.get("paymentMethodId", ""),
            confirmed_at=datetime.fromisoformat(data["confirmedAt"]),
        )


_TRANSITIONS: Dict[PaymentState, FrozenSet[PaymentState]] = {
    PaymentState.IDLE: frozenset(
        {PaymentState.METHOD_REQUIRED, PaymentState.CREATING_INTENT, PaymentState.FAILED}
    ),
    PaymentState.METHOD_REQUIRED: frozenset({PaymentState.CREATING_INTENT, PaymentState.FAILED}),
    PaymentState.CREATING_INTENT: frozenset(
        {PaymentState.AWAITING_CONFIRMATION, PaymentState.FAILED}
    ),
    PaymentState.AWAITING_CONFIRMATION: frozenset({PaymentState.CONFIRMING, PaymentState.FAILED}),
    PaymentState.CONFIRMING: frozenset({PaymentState.SUCCEEDED, PaymentState.FAILED}),
    PaymentState.SUCCEEDED: frozenset(),
    PaymentState.FAILED: frozenset(),
}

_IN_FLIGHT = frozenset(
    {
        PaymentState.CREATING_INTENT,
        PaymentState.AWAITING_CONFIRMATION,
        PaymentState.CONFIRMING,
    }
)


@dataclass
class PaymentTransaction:
    """
    One attempt to charge a booking draft.

    Owned and mutated by the payment coordinator only. A transaction that
    reached ``failed`` is never reused; recovery starts a new one.
    """

    draft_id: str
    amount: Decimal
    currency: str
    payment_method: Optional[PaymentMethodRef] = None
    transaction_id: str = field(default_factory=lambda: f"tx_{uuid.uuid4().hex}")
    state: PaymentState = PaymentState.IDLE
    intent_id: Optional[str] = None
    client_secret: Optional[str] = None
    last_error: Optional[PaymentErrorInfo] = None
    record: Optional[PaymentRecord] = None
    retry_count: int = 0
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    history: List[PaymentState] = field(default_factory=list)

    @property
    def in_flight(self) -> bool:
        return self.state in _IN_FLIGHT

    @property
    def succeeded(self) -> bool:
        return self.state == PaymentState.SUCCEEDED

    def transition(self, to: PaymentState) -> None:
        """
        Move to ``to``.

        Raises:
            InvalidPaymentTransitionError: If the move is not allowed
        """
        if to not in _TRANSITIONS[self.state]:
            raise InvalidPaymentTransitionError(self.state.value, to.value)
        self.history.append(self.state)
        self.state = to
        self.updated_at = _utcnow()
