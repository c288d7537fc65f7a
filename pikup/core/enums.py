"""Centralized enum definitions for the booking core."""

from enum import Enum
from typing import Optional


class VehicleType(str, Enum):
    """Vehicle types offered for a pickup."""
    CARGO_VAN = "Cargo Van"
    PICKUP_TRUCK = "Pickup Truck"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


class ItemWeight(str, Enum):
    """Weight class of the transported item."""
    LIGHT = "light"
    MEDIUM = "medium"
    HEAVY = "heavy"

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


class DeliveryStatus(str, Enum):
    """Lifecycle status of a booking.

    ``PENDING`` precedes driver acceptance; ``CANCELLED`` is terminal and
    sits outside the ordered progression.
    """
    PENDING = "pending"
    ACCEPTED = "accepted"
    IN_PROGRESS = "inProgress"
    ARRIVED_AT_PICKUP = "arrivedAtPickup"
    PICKED_UP = "pickedUp"
    EN_ROUTE_TO_DROPOFF = "enRouteToDropoff"
    ARRIVED_AT_DROPOFF = "arrivedAtDropoff"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def index(self) -> Optional[int]:
        """Position in the delivery progression, None for ``CANCELLED``."""
        try:
            return _PROGRESSION.index(self)
        except ValueError:
            return None

    @property
    def is_terminal(self) -> bool:
        """Whether no further transitions are expected."""
        return self in (DeliveryStatus.COMPLETED, DeliveryStatus.CANCELLED)

    @classmethod
    def values(cls) -> list:
        """Return list of all enum values."""
        return [e.value for e in cls]


_PROGRESSION = (
    DeliveryStatus.PENDING,
    DeliveryStatus.ACCEPTED,
    DeliveryStatus.IN_PROGRESS,
    DeliveryStatus.ARRIVED_AT_PICKUP,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.EN_ROUTE_TO_DROPOFF,
    DeliveryStatus.ARRIVED_AT_DROPOFF,
    DeliveryStatus.COMPLETED,
)


class QuoteState(str, Enum):
    """Insurance quote manager states."""
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class PaymentState(str, Enum):
    """Payment transaction states."""
    IDLE = "idle"
    METHOD_REQUIRED = "methodRequired"
    CREATING_INTENT = "creatingIntent"
    AWAITING_CONFIRMATION = "awaitingConfirmation"
    CONFIRMING = "confirming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        """Whether the transaction can no longer change."""
        return self in (PaymentState.SUCCEEDED, PaymentState.FAILED)


class RecoveryAction(str, Enum):
    """Actions offered to the user after a payment or booking failure."""
    RETRY = "retry"
    CHANGE_METHOD = "change_method"
    ADD_METHOD = "add_method"
    ABANDON = "abandon"
    REFRESH_INSURANCE = "refresh_insurance"
    ENTER_ITEM_VALUE = "enter_item_value"
    CONTACT_SUPPORT = "contact_support"


class PollerState(str, Enum):
    """Delivery status poller states."""
    IDLE = "idle"
    POLLING = "polling"
    STOPPED = "stopped"


class StopReason(str, Enum):
    """Why a status poller stopped."""
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    TORN_DOWN = "torn_down"
    ERROR_THRESHOLD = "error_threshold"
