"""Pricing constants: tax rate and the static estimate table."""

from decimal import Decimal
from typing import Dict, Final, Tuple

TAX_RATE: Final[Decimal] = Decimal("0.08")
CENT: Final[Decimal] = Decimal("0.01")

DEFAULT_CURRENCY: Final[str] = "usd"
DEFAULT_ITEM_WEIGHT: Final[str] = "medium"

# Degraded-mode estimates per vehicle type: (base fare, mileage charge, service fee).
# Totals derive to 58.50 (Cargo Van) and 49.14 (Pickup Truck).
FALLBACK_FARES: Final[Dict[str, Tuple[str, str, str]]] = {
    "Cargo Van": ("30.00", "20.00", "4.17"),
    "Pickup Truck": ("27.00", "15.00", "3.50"),
}
FALLBACK_DISTANCE_MILES: Final[float] = 10.0
FALLBACK_DURATION_MINUTES: Final[int] = 25
