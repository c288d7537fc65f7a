"""Payment transactions, gateway and saved payment methods."""

from .coordinator import PaymentCoordinator
from .gateway import PaymentGateway, PaymentIntent
from .methods import HttpPaymentMethodProvider, InMemoryPaymentMethodProvider, PaymentMethodProvider
from .notices import PaymentFailureNotice
from .ride_details import build_ride_details

__all__ = [
    "PaymentCoordinator",
    "PaymentGateway",
    "PaymentIntent",
    "HttpPaymentMethodProvider",
    "InMemoryPaymentMethodProvider",
    "PaymentMethodProvider",
    "PaymentFailureNotice",
    "build_ride_details",
]
