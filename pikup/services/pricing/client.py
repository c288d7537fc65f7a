"""Pricing service client with an explicit degraded mode."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple

from loguru import logger

from ...constants import DEFAULT_ITEM_WEIGHT, FALLBACK_DISTANCE_MILES, FALLBACK_DURATION_MINUTES
from ...core.enums import VehicleType
from ...core.exceptions import NetworkError, PricingUnavailableError, ValidationError
from ...core.result import Result, err, ok
from ...models.fare import FareBreakdown
from ...models.trip import TripParameters
from ..api.client import PikupApiClient

CALCULATE_PRICE_PATH = "/calculate-price"

ALL_VEHICLE_TYPES: Tuple[VehicleType, ...] = tuple(VehicleType)


@dataclass(frozen=True)
class PricingQuote:
    """Fares for every requested vehicle type on one trip."""

    fares: Mapping[VehicleType, FareBreakdown]
    distance_miles: float
    duration_minutes: int
    degraded: bool = False
    reason: Optional[str] = field(default=None, compare=False)

    def fare_for(self, vehicle_type: VehicleType) -> FareBreakdown:
        return self.fares[vehicle_type]


def _to_minutes(value: Any, default: int) -> int:
    try:
        return int(round(float(value)))
    except (TypeError, ValueError):
        return default


class PricingClient:
    """Stateless client for ``POST /calculate-price``."""

    def __init__(self, api: PikupApiClient):
        self.api = api

    @staticmethod
    def build_payload(trip: TripParameters, vehicle_types: Iterable[VehicleType]) -> dict:
        return {
            "pickupLocation": trip.pickup.to_dict(),
            "destinationLocation": trip.dropoff.to_dict(),
            "vehicleTypes": [vt.value for vt in vehicle_types],
            "helpNeeded": trip.help_needed,
            "itemWeight": trip.item_weight.value if trip.item_weight else DEFAULT_ITEM_WEIGHT,
            "timeOfDay": trip.time_of_day,
            "dayOfWeek": trip.day_of_week,
        }

    async def fetch_prices(
        self,
        trip: TripParameters,
        vehicle_types: Iterable[VehicleType] = ALL_VEHICLE_TYPES,
    ) -> Result[PricingQuote, str]:
        """
        Request live fares.

        Args:
            trip: Trip to price
            vehicle_types: Vehicle types to quote

        Returns:
            Success(PricingQuote) or Failure carrying PricingUnavailableError
        """
        vehicle_types = tuple(vehicle_types)
        try:
            response = await self.api.post_json(
                CALCULATE_PRICE_PATH, self.build_payload(trip, vehicle_types)
            )
        except NetworkError as e:
            logger.warning(f"Pricing request failed: {e}")
            return err(PricingUnavailableError(str(e)))

        if not response.success:
            logger.warning(
                f"Pricing service rejected request (status={response.status}): "
                f"{response.error_message}"
            )
            return err(PricingUnavailableError(response.error_message, status=response.status))

        try:
            fares = self._parse_fares(response.data, vehicle_types)
            distance = response.data.get("distance")
            if distance is None:
                distance = trip.distance_miles or FALLBACK_DISTANCE_MILES
            distance_miles = float(distance)
        except (ValidationError, AttributeError, TypeError, ValueError, ArithmeticError) as e:
            logger.warning(f"Malformed pricing response: {e}")
            return err(PricingUnavailableError(str(e), status=response.status))

        quote = PricingQuote(
            fares=fares,
            distance_miles=distance_miles,
            duration_minutes=_to_minutes(
                response.data.get("estimatedTime"),
                trip.duration_minutes or FALLBACK_DURATION_MINUTES,
            ),
        )
        logger.info(
            f"Priced {len(fares)} vehicle type(s) for {quote.distance_miles:.1f} mi "
            f"({quote.duration_minutes} min)"
        )
        return ok(quote)

    @staticmethod
    def _parse_fares(
        data: Dict[str, Any], vehicle_types: Iterable[VehicleType]
    ) -> Dict[VehicleType, FareBreakdown]:
        prices = data.get("prices") or {}
        fares = {}
        for vehicle_type in vehicle_types:
            entry = prices.get(vehicle_type.value)
            if entry is None:
                raise ValidationError(f"no price for {vehicle_type.value}", field="prices")
            fares[vehicle_type] = FareBreakdown.from_service(entry)
        return fares

    @staticmethod
    def fallback_quote(
        vehicle_types: Iterable[VehicleType] = ALL_VEHICLE_TYPES, reason: Optional[str] = None
    ) -> PricingQuote:
        """Static estimate table, flagged as degraded."""
        return PricingQuote(
            fares={vt: FareBreakdown.fallback(vt) for vt in vehicle_types},
            distance_miles=FALLBACK_DISTANCE_MILES,
            duration_minutes=FALLBACK_DURATION_MINUTES,
            degraded=True,
            reason=reason,
        )

    async def fetch_prices_or_fallback(
        self,
        trip: TripParameters,
        vehicle_types: Iterable[VehicleType] = ALL_VEHICLE_TYPES,
    ) -> PricingQuote:
        """
        Request live fares, falling back to the static estimate table.

        Never raises for service failures; the returned quote is flagged
        ``degraded`` when the fallback was used.
        """
        vehicle_types = tuple(vehicle_types)
        result = await self.fetch_prices(trip, vehicle_types)
        if result.is_success():
            return result.unwrap()

        logger.warning(f"Using static fare estimates: {result.error}")
        return self.fallback_quote(vehicle_types, reason=result.error)
