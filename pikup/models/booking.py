"""Booking draft and persisted booking models."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Mapping, Optional, Tuple

from ..core.enums import DeliveryStatus, QuoteState, VehicleType
from .fare import FareBreakdown, round2
from .insurance import CoverageSelection, InsuranceQuote, InsuranceQuoteRequest
from .payment import PaymentRecord
from .trip import Location, TripParameters


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ItemDetails:
    """What is being moved."""

    description: str = ""
    value: Optional[Decimal] = None
    photo_urls: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "description": self.description,
            "value": str(self.value) if self.value is not None else None,
            "photos": list(self.photo_urls),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ItemDetails":
        value = data.get("value")
        return cls(
            description=data.get("description", ""),
            value=round2(value) if value is not None else None,
            photo_urls=tuple(data.get("photos") or ()),
        )


@dataclass(frozen=True)
class CustomerRef:
    """Customer placing the booking."""

    user_id: str
    email: str
    display_name: str = ""


@dataclass(frozen=True)
class Booking:
    """
    Paid booking as persisted by the booking store.

    Created once payment succeeds. The fare and insurance quote are value
    copies taken at assembly time. Tracking fields (driver, plate, photos)
    are maintained by the store.
    """

    draft_id: str
    customer: CustomerRef
    pickup: Location
    dropoff: Location
    item: ItemDetails
    vehicle_type: VehicleType
    fare: FareBreakdown
    payment: PaymentRecord
    distance_miles: float
    duration_minutes: int
    id: Optional[str] = None
    insurance: Optional[InsuranceQuote] = None
    scheduled_at: Optional[datetime] = None
    status: DeliveryStatus = DeliveryStatus.PENDING
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)
    driver_email: Optional[str] = None
    vehicle_plate: Optional[str] = None
    pickup_photos: Tuple[str, ...] = ()
    dropoff_photos: Tuple[str, ...] = ()
    rating: Optional[int] = None
    tip: Optional[Decimal] = None

    @property
    def driver_name(self) -> Optional[str]:
        """Driver display name derived from the assigned driver email."""
        if not self.driver_email:
            return None
        return self.driver_email.split("@")[0]

    def with_id(self, booking_id: str) -> "Booking":
        return replace(self, id=booking_id)

    def with_status(self, status: DeliveryStatus) -> "Booking":
        return replace(self, status=status, updated_at=_utcnow())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "draftId": self.draft_id,
            "customerId": self.customer.user_id,
            "customerEmail": self.customer.email,
            "customerName": self.customer.display_name,
            "pickup": self.pickup.to_dict(),
            "dropoff": self.dropoff.to_dict(),
            "item": self.item.to_dict(),
            "vehicle": {"type": self.vehicle_type.value},
            "pricing": self.fare.to_dict(),
            "payment": self.payment.to_dict(),
            "insurance": self.insurance.to_dict() if self.insurance else None,
            "scheduledTime": self.scheduled_at.isoformat() if self.scheduled_at else None,
            "distance": self.distance_miles,
            "duration": self.duration_minutes,
            "status": self.status.value,
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
            "assignedTo": self.driver_email,
            "vehiclePlate": self.vehicle_plate,
            "pickupPhotos": list(self.pickup_photos),
            "dropoffPhotos": list(self.dropoff_photos),
            "customerRating": self.rating,
            "driverTip": str(self.tip) if self.tip is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Booking":
        """Rebuild a booking from its stored document.

        Raises:
            KeyError: If a required field is missing
            ValueError: If the status or a timestamp is malformed
        """
        scheduled = data.get("scheduledTime")
        tip = data.get("driverTip")
        insurance = data.get("insurance")
        return cls(
            id=data.get("id"),
            draft_id=data.get("draftId", ""),
            customer=CustomerRef(
                user_id=data.get("customerId", ""),
                email=data.get("customerEmail", ""),
                display_name=data.get("customerName", ""),
            ),
            pickup=Location.from_dict(data["pickup"]),
            dropoff=Location.from_dict(data["dropoff"]),
            item=ItemDetails.from_dict(data.get("item") or {}),
            vehicle_type=VehicleType((data.get("vehicle") or {}).get("type", "Cargo Van")),
            fare=FareBreakdown.from_dict(data["pricing"]),
            payment=PaymentRecord.from_dict(data["payment"]),
            insurance=InsuranceQuote.from_dict(insurance) if insurance else None,
            scheduled_at=datetime.fromisoformat(scheduled) if scheduled else None,
            distance_miles=float(data.get("distance") or 0.0),
            duration_minutes=int(data.get("duration") or 0),
            status=DeliveryStatus(data.get("status", "pending")),
            created_at=datetime.fromisoformat(data["createdAt"]),
            updated_at=datetime.fromisoformat(data.get("updatedAt") or data["createdAt"]),
            driver_email=data.get("assignedTo"),
            vehicle_plate=data.get("vehiclePlate"),
            pickup_photos=tuple(data.get("pickupPhotos") or ()),
            dropoff_photos=tuple(data.get("dropoffPhotos") or ()),
            rating=data.get("customerRating"),
            tip=round2(tip) if tip is not None else None,
        )


@dataclass(frozen=True)
class BookingDraft:
    """
    Booking being put together, passed from stage to stage.

    Every stage returns an updated copy. ``trip.vehicle_type`` is the
    selected vehicle; ``trip`` carries the route once pricing resolved it.
    """

    trip: TripParameters
    item: ItemDetails
    customer: CustomerRef
    draft_id: str = field(default_factory=lambda: f"draft_{uuid.uuid4().hex[:12]}")
    fares: Mapping[VehicleType, FareBreakdown] = field(default_factory=dict)
    pricing_degraded: bool = False
    pricing_error: Optional[str] = None
    coverage: CoverageSelection = field(default_factory=CoverageSelection)
    insurance_state: QuoteState = QuoteState.IDLE
    insurance_error: Optional[str] = None
    scheduled_at: Optional[datetime] = None
    closed: bool = False

    @property
    def vehicle_type(self) -> VehicleType:
        return self.trip.vehicle_type

    @property
    def is_priced(self) -> bool:
        return self.vehicle_type in self.fares

    @property
    def insurance_request(self) -> InsuranceQuoteRequest:
        return InsuranceQuoteRequest.for_trip(self.trip, self.item.value, self.customer.email)

    @property
    def applicable_quote(self) -> Optional[InsuranceQuote]:
        """Cached quote if it still matches the current item value and trip."""
        quote = self.coverage.quote
        if quote is not None and quote.is_valid_for(self.insurance_request):
            return quote
        return None

    @property
    def selected_fare(self) -> Optional[FareBreakdown]:
        """Fare of the selected vehicle with the coverage fee applied."""
        fare = self.fares.get(self.vehicle_type)
        if fare is None:
            return None
        quote = self.applicable_quote
        if self.coverage.included and quote is not None:
            return fare.with_coverage(quote.premium)
        return fare.with_coverage(0)

    def evolve(self, **changes: Any) -> "BookingDraft":
        return replace(self, **changes)
