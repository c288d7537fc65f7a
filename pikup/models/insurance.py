"""Insurance quote models."""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from ..core.enums import VehicleType
from .fare import ZERO, Money, round2
from .trip import TripParameters

TripKey = Tuple[str, Optional[float], str, str]


@dataclass(frozen=True)
class InsuranceQuoteRequest:
    """Item value and trip a coverage premium is requested for."""

    item_value: Optional[Decimal]
    vehicle_type: VehicleType
    distance_miles: Optional[float]
    origin: str
    destination: str
    user_email: str = ""

    def __post_init__(self) -> None:
        if self.item_value is not None:
            object.__setattr__(self, "item_value", round2(self.item_value))

    @classmethod
    def for_trip(
        cls, trip: TripParameters, item_value: Optional[Money], user_email: str = ""
    ) -> "InsuranceQuoteRequest":
        return cls(
            item_value=round2(item_value) if item_value is not None else None,
            vehicle_type=trip.vehicle_type,
            distance_miles=trip.distance_miles,
            origin=trip.pickup.address,
            destination=trip.dropoff.address,
            user_email=user_email,
        )

    @property
    def has_item_value(self) -> bool:
        return self.item_value is not None and self.item_value > 0

    @property
    def trip_key(self) -> TripKey:
        return (self.vehicle_type.value, self.distance_miles, self.origin, self.destination)

    @property
    def key(self) -> Tuple[Optional[Decimal], TripKey]:
        """Identity used to share in-flight requests and validate cached quotes."""
        return (self.item_value, self.trip_key)

    def to_payload(self) -> Dict[str, Any]:
        return {
            "vehicleType": self.vehicle_type.value,
            "distance": self.distance_miles,
            "includeCoverage": True,
            "itemValue": float(self.item_value) if self.item_value is not None else None,
            "origin": self.origin,
            "destination": self.destination,
            "userEmail": self.user_email,
        }


@dataclass(frozen=True)
class InsuranceQuote:
    """Coverage premium offered for one item value on one trip."""

    offer_id: str
    quote_id: str
    premium: Decimal
    currency: str
    item_value: Decimal
    trip_key: TripKey

    def is_valid_for(self, request: InsuranceQuoteRequest) -> bool:
        """Whether this quote still applies to ``request``."""
        return request.item_value == self.item_value and request.trip_key == self.trip_key

    @classmethod
    def from_service(
        cls, payload: Dict[str, Any], request: InsuranceQuoteRequest
    ) -> "InsuranceQuote":
        """Build a quote from the service's ``insurance`` object.

        Raises:
            KeyError: If the premium is missing
        """
        return cls(
            offer_id=str(payload.get("offerId", "")),
            quote_id=str(payload.get("quoteId", "")),
            premium=round2(payload["premium"]),
            currency=str(payload.get("currency") or "usd").lower(),
            item_value=request.item_value if request.item_value is not None else ZERO,
            trip_key=request.trip_key,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "offerId": self.offer_id,
            "quoteId": self.quote_id,
            "premium": str(self.premium),
            "currency": self.currency,
            "itemValue": str(self.item_value),
            "tripKey": list(self.trip_key),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "InsuranceQuote":
        return cls(
            offer_id=data.get("offerId", ""),
            quote_id=data.get("quoteId", ""),
            premium=round2(data["premium"]),
            currency=data.get("currency", "usd"),
            item_value=round2(data.get("itemValue") or 0),
            trip_key=tuple(data.get("tripKey") or ("", None, "", "")),
        )


@dataclass(frozen=True)
class CoverageSelection:
    """Whether coverage is included, plus the last quote fetched for it.

    The quote survives toggling coverage off so toggling back on can reuse it.
    """

    included: bool = False
    quote: Optional[InsuranceQuote] = None

    @property
    def coverage_fee(self) -> Decimal:
        if self.included and self.quote is not None:
            return self.quote.premium
        return ZERO

    def toggled(self, included: bool) -> "CoverageSelection":
        return replace(self, included=included)

    def with_quote(self, quote: Optional[InsuranceQuote]) -> "CoverageSelection":
        return replace(self, quote=quote)
