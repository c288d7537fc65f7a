"""Delivery status tracking."""

from .status_poller import DeliveryStatusPoller
from .steps import DELIVERY_STEPS, DeliveryStep, eta_text, step_index
from .view import TrackerView

__all__ = [
    "DELIVERY_STEPS",
    "DeliveryStatusPoller",
    "DeliveryStep",
    "TrackerView",
    "eta_text",
    "step_index",
]
