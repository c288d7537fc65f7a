"""Tests for PricingClient."""

from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from pikup.core.enums import VehicleType
from pikup.core.exceptions import NetworkError, PricingUnavailableError
from pikup.services.pricing.client import PricingClient


class TestPricingClient:
    """Tests for live and degraded pricing."""

    @pytest.fixture
    def client(self, mock_api):
        return PricingClient(mock_api)

    def test_payload_shape(self, trip):
        payload = PricingClient.build_payload(trip, [VehicleType.CARGO_VAN])
        assert payload["pickupLocation"] == trip.pickup.to_dict()
        assert payload["destinationLocation"] == trip.dropoff.to_dict()
        assert payload["vehicleTypes"] == ["Cargo Van"]
        assert payload["itemWeight"] == "medium"
        assert payload["timeOfDay"] == 14
        assert payload["dayOfWeek"] == 2
        assert payload["helpNeeded"] is False

    @pytest.mark.asyncio
    async def test_fetch_prices(self, client, mock_api, trip, make_response, pricing_payload):
        mock_api.post_json.return_value = make_response(pricing_payload())

        result = await client.fetch_prices(trip)

        assert result.is_success()
        quote = result.unwrap()
        assert not quote.degraded
        assert quote.distance_miles == 12.4
        assert quote.duration_minutes == 31
        assert quote.fare_for(VehicleType.CARGO_VAN).total == Decimal("70.20")
        mock_api.post_json.assert_awaited_once()
        assert mock_api.post_json.call_args.args[0] == "/calculate-price"

    @pytest.mark.asyncio
    async def test_rejected_request_is_failure(self, client, mock_api, trip, make_response):
        mock_api.post_json.return_value = make_response(
            {"success": False, "error": "Invalid locations"}, status=400
        )

        result = await client.fetch_prices(trip)

        assert result.is_failure()
        assert isinstance(result.exception, PricingUnavailableError)
        assert "Invalid locations" in result.error

    @pytest.mark.asyncio
    async def test_missing_vehicle_is_failure(
        self, client, mock_api, trip, make_response, pricing_payload
    ):
        payload = pricing_payload()
        del payload["prices"]["Pickup Truck"]
        mock_api.post_json.return_value = make_response(payload)

        result = await client.fetch_prices(trip)

        assert result.is_failure()
        assert result.kind == "PricingUnavailableError"

    @pytest.mark.asyncio
    async def test_distance_defaults_to_trip(
        self, client, mock_api, trip, make_response, pricing_payload
    ):
        payload = pricing_payload()
        del payload["distance"]
        del payload["estimatedTime"]
        mock_api.post_json.return_value = make_response(payload)

        quote = (await client.fetch_prices(trip)).unwrap()

        assert quote.distance_miles == 10.0
        assert quote.duration_minutes == 25

    @pytest.mark.asyncio
    async def test_timeout_falls_back_to_static_estimates(self, client, mock_api, trip):
        """A pricing timeout yields the static table for both vehicle types."""
        mock_api.post_json = AsyncMock(
            side_effect=NetworkError("Request to /calculate-price timed out")
        )

        quote = await client.fetch_prices_or_fallback(trip)

        assert quote.degraded
        assert "timed out" in quote.reason
        assert set(quote.fares) == {VehicleType.CARGO_VAN, VehicleType.PICKUP_TRUCK}
        assert quote.fare_for(VehicleType.CARGO_VAN).total == Decimal("58.50")
        assert quote.fare_for(VehicleType.PICKUP_TRUCK).total == Decimal("49.14")
        for fare in quote.fares.values():
            assert fare.coverage_fee == Decimal("0.00")
            assert fare.tax > 0
        assert quote.distance_miles == 10.0
        assert quote.duration_minutes == 25

    @pytest.mark.asyncio
    async def test_live_prices_not_degraded(
        self, client, mock_api, trip, make_response, pricing_payload
    ):
        mock_api.post_json.return_value = make_response(pricing_payload())
        quote = await client.fetch_prices_or_fallback(trip, [VehicleType.PICKUP_TRUCK])
        assert not quote.degraded
        assert list(quote.fares) == [VehicleType.PICKUP_TRUCK]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "overrides",
        [
            {"distance": "n/a"},
            {"prices": ["Cargo Van"]},
            {"prices": {"Cargo Van": "70.20", "Pickup Truck": "62.10"}},
        ],
    )
    async def test_malformed_response_falls_back(
        self, client, mock_api, trip, make_response, pricing_payload, overrides
    ):
        mock_api.post_json.return_value = make_response(pricing_payload(**overrides))

        result = await client.fetch_prices(trip)
        quote = await client.fetch_prices_or_fallback(trip)

        assert result.is_failure()
        assert result.kind == "PricingUnavailableError"
        assert quote.degraded
        assert quote.fare_for(VehicleType.CARGO_VAN).total == Decimal("58.50")
