"""Trip models: locations and the parameters a trip is priced with."""

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from ..core.enums import ItemWeight, VehicleType
from ..core.exceptions import ValidationError


@dataclass(frozen=True)
class Coordinates:
    """Geographic point."""

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise ValidationError("latitude out of range", field="latitude")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValidationError("longitude out of range", field="longitude")

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class Location:
    """Resolved address with its coordinates."""

    address: str
    coordinates: Coordinates

    def to_dict(self) -> Dict[str, Any]:
        return {"address": self.address, "coordinates": self.coordinates.to_dict()}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Location":
        coords = data.get("coordinates") or {}
        return cls(
            address=data.get("address", ""),
            coordinates=Coordinates(
                latitude=float(coords.get("latitude", 0.0)),
                longitude=float(coords.get("longitude", 0.0)),
            ),
        )


@dataclass(frozen=True)
class TripParameters:
    """
    Everything the pricing service needs to quote a trip.

    ``distance_miles`` and ``duration_minutes`` are unknown until the pricing
    service resolves the route; ``with_route`` returns a copy carrying them.
    Day of week counts from Sunday = 0.
    """

    pickup: Location
    dropoff: Location
    vehicle_type: VehicleType = VehicleType.CARGO_VAN
    distance_miles: Optional[float] = None
    duration_minutes: Optional[int] = None
    time_of_day: int = 12
    day_of_week: int = 0
    help_needed: bool = False
    item_weight: ItemWeight = ItemWeight.MEDIUM

    def __post_init__(self) -> None:
        if not 0 <= self.time_of_day <= 23:
            raise ValidationError("must be an hour between 0 and 23", field="time_of_day")
        if not 0 <= self.day_of_week <= 6:
            raise ValidationError("must be between 0 (Sunday) and 6", field="day_of_week")
        if self.distance_miles is not None and self.distance_miles < 0:
            raise ValidationError("cannot be negative", field="distance_miles")

    @classmethod
    def departing_at(
        cls, pickup: Location, dropoff: Location, when: datetime, **kwargs: Any
    ) -> "TripParameters":
        """Build trip parameters with time of day and weekday taken from ``when``."""
        return cls(
            pickup=pickup,
            dropoff=dropoff,
            time_of_day=when.hour,
            day_of_week=(when.weekday() + 1) % 7,
            **kwargs,
        )

    @property
    def trip_key(self) -> Tuple[str, Optional[float], str, str]:
        """Identity of the trip for insurance quoting."""
        return (
            self.vehicle_type.value,
            self.distance_miles,
            self.pickup.address,
            self.dropoff.address,
        )

    def with_route(self, distance_miles: float, duration_minutes: int) -> "TripParameters":
        return replace(self, distance_miles=distance_miles, duration_minutes=duration_minutes)

    def with_vehicle(self, vehicle_type: VehicleType) -> "TripParameters":
        return replace(self, vehicle_type=vehicle_type)
