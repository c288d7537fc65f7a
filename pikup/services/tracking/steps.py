"""Delivery progress steps shown to the customer."""

from dataclasses import dataclass
from typing import Optional, Tuple

from ...core.enums import DeliveryStatus

# Photo buttons appear from this step index on (pickedUp)
PHOTOS_FROM_STEP = 3


@dataclass(frozen=True)
class DeliveryStep:
    """One visible step of the delivery progress."""

    status: DeliveryStatus
    label: str
    icon: str
    description: str
    eta: str


DELIVERY_STEPS: Tuple[DeliveryStep, ...] = (
    DeliveryStep(
        DeliveryStatus.ACCEPTED,
        "Driver Confirmed",
        "checkmark-circle",
        "Driver is preparing for your pickup",
        "10-15 min",
    ),
    DeliveryStep(
        DeliveryStatus.IN_PROGRESS,
        "On the way to you",
        "car-sport",
        "Driver is heading to your location",
        "5-10 min",
    ),
    DeliveryStep(
        DeliveryStatus.ARRIVED_AT_PICKUP,
        "Driver arrived",
        "location",
        "Driver has arrived at pickup location",
        "Arrived",
    ),
    DeliveryStep(
        DeliveryStatus.PICKED_UP,
        "Package collected",
        "cube",
        "Your items are secured for transport",
        "15-20 min",
    ),
    DeliveryStep(
        DeliveryStatus.EN_ROUTE_TO_DROPOFF,
        "On the way to destination",
        "navigate",
        "Your package is in transit",
        "5-10 min",
    ),
    DeliveryStep(
        DeliveryStatus.ARRIVED_AT_DROPOFF,
        "Arrived at destination",
        "home",
        "Driver has arrived at delivery location",
        "Arrived",
    ),
    DeliveryStep(
        DeliveryStatus.COMPLETED,
        "Delivered",
        "checkmark-circle",
        "Your delivery is complete",
        "Delivered",
    ),
)


def step_index(status: Optional[DeliveryStatus]) -> int:
    """Index of ``status`` among the visible steps; unknown statuses map to the first step."""
    for index, step in enumerate(DELIVERY_STEPS):
        if step.status == status:
            return index
    return 0


def eta_text(status: Optional[DeliveryStatus]) -> str:
    """Rough ETA shown next to the current step."""
    if status is None:
        return "-- min"
    return DELIVERY_STEPS[step_index(status)].eta
