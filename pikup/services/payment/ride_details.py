"""Trip and insurance metadata attached to a payment intent."""

from datetime import datetime, timezone
from typing import Any, Dict

from ...models.booking import BookingDraft


def build_ride_details(draft: BookingDraft) -> Dict[str, Any]:
    """
    Describe the ride being paid for.

    Insurance ids and premium are only sent when coverage is included and
    a quote for the current item value and trip exists.
    """
    trip = draft.trip
    quote = draft.applicable_quote
    covered = draft.coverage.included and quote is not None
    return {
        "vehicleType": trip.vehicle_type.value,
        "pickup": trip.pickup.address,
        "dropoff": trip.dropoff.address,
        "distance": trip.distance_miles,
        "duration": trip.duration_minutes,
        "includeCoverage": covered,
        "rideId": draft.draft_id,
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "insurance": {
            "included": covered,
            "offerId": quote.offer_id if covered else None,
            "quoteId": quote.quote_id if covered else None,
            "premium": float(quote.premium) if covered else None,
            "currency": quote.currency if covered else None,
        },
        "itemValue": float(draft.item.value) if draft.item.value is not None else None,
    }
