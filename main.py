#!/usr/bin/env python3
"""
Pikup - Booking and fulfillment core.

Command line entry point: price a trip or follow a booking until delivery.
"""

import argparse
import asyncio
import sys
from datetime import datetime
from typing import Optional

from loguru import logger

from pikup.core.config import get_settings
from pikup.core.enums import ItemWeight, VehicleType
from pikup.core.exceptions import PikupError
from pikup.core.logger import setup_structured_logging
from pikup.models.booking import Booking
from pikup.models.trip import Coordinates, Location, TripParameters
from pikup.repositories.http import HttpBookingStore
from pikup.services.api.client import PikupApiClient
from pikup.services.pricing.client import PricingClient, PricingQuote
from pikup.services.tracking.status_poller import DeliveryStatusPoller
from pikup.services.tracking.view import TrackerView


def parse_location(address: str, lat: float, lng: float) -> Location:
    return Location(address=address, coordinates=Coordinates(latitude=lat, longitude=lng))


def format_quote(quote: PricingQuote) -> str:
    """Render a pricing quote as a small table."""
    lines = []
    if quote.degraded:
        lines.append("Live pricing is unavailable right now. Showing estimated prices.")
    lines.append(f"Distance: {quote.distance_miles:.1f} mi, about {quote.duration_minutes} min")
    for vehicle_type, fare in quote.fares.items():
        lines.append(
            f"{vehicle_type.value:<14} base {fare.base_fare:>7}  mileage {fare.mileage_charge:>7}  "
            f"service {fare.service_fee:>6}  tax {fare.tax:>6}  total {fare.total:>8}"
        )
    return "\n".join(lines)


async def run_quote(args: argparse.Namespace) -> int:
    """Price a trip for every vehicle type."""
    settings = get_settings()
    trip = TripParameters.departing_at(
        pickup=parse_location(args.pickup, args.pickup_lat, args.pickup_lng),
        dropoff=parse_location(args.dropoff, args.dropoff_lat, args.dropoff_lng),
        when=datetime.now(),
        distance_miles=args.distance,
        help_needed=args.help_needed,
        item_weight=ItemWeight(args.weight),
    )
    async with PikupApiClient(
        settings.api_base_url, timeout=settings.http_timeout_seconds
    ) as api:
        quote = await PricingClient(api).fetch_prices_or_fallback(trip, tuple(VehicleType))
    print(format_quote(quote))
    return 0


async def run_track(args: argparse.Namespace) -> int:
    """Follow a booking until it is delivered or cancelled."""
    settings = get_settings()

    def on_update(booking: Booking) -> None:
        print(view.render_text())

    def on_complete(booking: Booking) -> None:
        print(f"Booking {booking.id} delivered.")

    def on_cancel(booking: Booking) -> None:
        print(f"Booking {booking.id} was cancelled.")

    async with PikupApiClient(
        settings.booking_store_url, timeout=settings.http_timeout_seconds
    ) as store_api:
        poller = DeliveryStatusPoller.from_settings(
            HttpBookingStore(store_api),
            args.booking_id,
            settings,
            on_update=on_update,
            on_complete=on_complete,
            on_cancel=on_cancel,
        )
        view = TrackerView(poller, expanded=args.expanded)
        async with poller:
            reason = await poller.wait_closed()

    if poller.last_error is not None:
        print(poller.last_error.user_message)
        return 1
    logger.info(f"Tracking finished: {reason.value if reason else 'unknown'}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Pikup booking and fulfillment core")
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Override LOG_LEVEL",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    quote = subparsers.add_parser("quote", help="Price a trip for every vehicle type")
    quote.add_argument("--pickup", required=True, help="Pickup address")
    quote.add_argument("--pickup-lat", type=float, required=True)
    quote.add_argument("--pickup-lng", type=float, required=True)
    quote.add_argument("--dropoff", required=True, help="Dropoff address")
    quote.add_argument("--dropoff-lat", type=float, required=True)
    quote.add_argument("--dropoff-lng", type=float, required=True)
    quote.add_argument("--distance", type=float, default=None, help="Route distance in miles")
    quote.add_argument("--help-needed", action="store_true", help="Driver help with loading")
    quote.add_argument("--weight", choices=ItemWeight.values(), default=ItemWeight.MEDIUM.value)

    track = subparsers.add_parser("track", help="Follow a booking until delivery")
    track.add_argument("booking_id", help="Booking id (pickup_...)")
    track.add_argument("--expanded", action="store_true", help="Show every delivery step")

    return parser


def main(argv: Optional[list] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    setup_structured_logging(
        level=args.log_level or settings.log_level, json_format=settings.log_json
    )

    handlers = {"quote": run_quote, "track": run_track}
    try:
        return asyncio.run(handlers[args.command](args))
    except PikupError as e:
        logger.error(f"{e.kind}: {e.message}")
        print(e.user_message, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
