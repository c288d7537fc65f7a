"""Tests for the insurance gateway and quote manager."""

import asyncio
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest

from pikup.constants import (
    ERROR_COPY,
    INSURANCE_GENERIC_ERROR,
    INSURANCE_NO_QUOTE_ERROR,
    NETWORK_ERROR_MESSAGE,
)
from pikup.core.enums import QuoteState, VehicleType
from pikup.core.exceptions import InsuranceUnavailableError, NetworkError, ValidationError
from pikup.core.result import err, ok
from pikup.models.insurance import InsuranceQuote, InsuranceQuoteRequest
from pikup.services.insurance.gateway import InsuranceGateway
from pikup.services.insurance.manager import InsuranceQuoteManager


class TestInsuranceGateway:
    """Tests for InsuranceGateway.request_quote."""

    @pytest.fixture
    def gateway(self, mock_api):
        return InsuranceGateway(mock_api)

    @pytest.fixture
    def request_500(self, trip):
        return InsuranceQuoteRequest.for_trip(trip, "500", "jamie@example.com")

    @pytest.mark.asyncio
    async def test_quote(self, gateway, mock_api, request_500, make_response, insurance_payload):
        mock_api.post_json.return_value = make_response(insurance_payload("12.50"))

        result = await gateway.request_quote(request_500)

        assert result.is_success()
        quote = result.unwrap()
        assert quote.premium == Decimal("12.50")
        assert quote.quote_id == "quote_1"
        assert quote.is_valid_for(request_500)
        sent = mock_api.post_json.call_args.args[1]
        assert sent["includeCoverage"] is True
        assert sent["itemValue"] == 500.0

    @pytest.mark.asyncio
    async def test_known_code_maps_to_copy(self, gateway, mock_api, request_500, make_response):
        mock_api.post_json.return_value = make_response(
            {"success": False, "error": "down", "code": "INSURANCE_UNAVAILABLE"}
        )

        result = await gateway.request_quote(request_500)

        assert result.is_failure()
        assert result.code == "INSURANCE_UNAVAILABLE"
        assert result.exception.user_message == ERROR_COPY["INSURANCE_UNAVAILABLE"]

    @pytest.mark.asyncio
    async def test_unknown_code_uses_generic_copy(
        self, gateway, mock_api, request_500, make_response
    ):
        mock_api.post_json.return_value = make_response(
            {"success": False, "error": "weird", "code": "E_WEIRD"}, status=500
        )

        result = await gateway.request_quote(request_500)

        assert result.exception.user_message == INSURANCE_GENERIC_ERROR

    @pytest.mark.asyncio
    async def test_missing_insurance_object(self, gateway, mock_api, request_500, make_response):
        mock_api.post_json.return_value = make_response({"success": True})

        result = await gateway.request_quote(request_500)

        assert result.exception.user_message == INSURANCE_NO_QUOTE_ERROR

    @pytest.mark.asyncio
    async def test_network_error(self, gateway, mock_api, request_500):
        mock_api.post_json = AsyncMock(side_effect=NetworkError("refused"))

        result = await gateway.request_quote(request_500)

        assert result.exception.user_message == NETWORK_ERROR_MESSAGE


def _quote_for(request: InsuranceQuoteRequest, premium: str = "12.50") -> InsuranceQuote:
    return InsuranceQuote(
        offer_id="offer_1",
        quote_id="quote_1",
        premium=Decimal(premium),
        currency="usd",
        item_value=request.item_value,
        trip_key=request.trip_key,
    )


class TestInsuranceQuoteManager:
    """Tests for the quote life cycle of one draft."""

    @pytest.fixture
    def gateway(self):
        gateway = MagicMock(spec=InsuranceGateway)

        async def request_quote(request):
            return ok(_quote_for(request))

        gateway.request_quote = AsyncMock(side_effect=request_quote)
        return gateway

    @pytest.fixture
    def manager(self, gateway):
        return InsuranceQuoteManager(gateway)

    @pytest.fixture
    def request_500(self, trip):
        return InsuranceQuoteRequest.for_trip(trip, "500")

    @pytest.mark.asyncio
    async def test_enable_fetches_quote(self, manager, gateway, request_500):
        selection = await manager.enable(request_500)

        assert manager.state == QuoteState.READY
        assert selection.included
        assert selection.coverage_fee == Decimal("12.50")
        assert not manager.blocks_confirmation
        gateway.request_quote.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_toggle_reuses_cached_quote(self, manager, gateway, request_500):
        """Off then on with the same item value does not request again."""
        await manager.enable(request_500)
        off = manager.disable()
        assert off.coverage_fee == Decimal("0.00")
        assert manager.state == QuoteState.READY

        on = await manager.enable(request_500)

        assert on.coverage_fee == Decimal("12.50")
        assert gateway.request_quote.await_count == 1

    @pytest.mark.asyncio
    async def test_missing_item_value_fails_locally(self, manager, gateway, trip):
        await manager.enable(InsuranceQuoteRequest.for_trip(trip, None))

        assert manager.state == QuoteState.ERROR
        assert manager.error.code == "ITEM_VALUE_REQUIRED"
        assert manager.error_message == ERROR_COPY["ITEM_VALUE_REQUIRED"]
        assert manager.blocks_confirmation
        gateway.request_quote.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_error_sticks_until_retry(self, manager, gateway, request_500):
        gateway.request_quote = AsyncMock(
            return_value=err(InsuranceUnavailableError("down", code="INSURANCE_UNAVAILABLE"))
        )
        await manager.enable(request_500)
        assert manager.state == QuoteState.ERROR

        # Same request again: no new call, still in error
        await manager.ensure_quote(request_500)
        assert gateway.request_quote.await_count == 1
        assert manager.state == QuoteState.ERROR

        gateway.request_quote = AsyncMock(return_value=ok(_quote_for(request_500)))
        await manager.retry()

        assert manager.state == QuoteState.READY
        assert manager.error is None

    @pytest.mark.asyncio
    async def test_error_blocks_even_when_coverage_off(self, manager, gateway, request_500):
        gateway.request_quote = AsyncMock(return_value=err(InsuranceUnavailableError("down")))
        await manager.enable(request_500)
        manager.disable()
        assert manager.blocks_confirmation

    @pytest.mark.asyncio
    async def test_new_item_value_is_new_request(self, manager, gateway, trip, request_500):
        await manager.enable(request_500)
        await manager.ensure_quote(InsuranceQuoteRequest.for_trip(trip, "800"))

        assert gateway.request_quote.await_count == 2
        assert manager.quote.item_value == Decimal("800.00")

    @pytest.mark.asyncio
    async def test_vehicle_change_invalidates_quote(self, manager, gateway, trip, request_500):
        await manager.enable(request_500)
        truck = InsuranceQuoteRequest.for_trip(trip.with_vehicle(VehicleType.PICKUP_TRUCK), "500")

        await manager.ensure_quote(truck)

        assert gateway.request_quote.await_count == 2
        assert manager.quote.trip_key[0] == "Pickup Truck"

    @pytest.mark.asyncio
    async def test_refresh_drops_cached_quote(self, manager, gateway, request_500):
        await manager.enable(request_500)
        await manager.refresh()
        assert gateway.request_quote.await_count == 2
        assert manager.state == QuoteState.READY

    @pytest.mark.asyncio
    async def test_concurrent_requests_share_one_call(self, manager, gateway, request_500):
        release = asyncio.Event()

        async def slow_quote(request):
            await release.wait()
            return ok(_quote_for(request))

        gateway.request_quote = AsyncMock(side_effect=slow_quote)
        manager.included = True

        first = asyncio.ensure_future(manager.ensure_quote(request_500))
        second = asyncio.ensure_future(manager.ensure_quote(request_500))
        await asyncio.sleep(0)
        release.set()
        await asyncio.gather(first, second)

        assert gateway.request_quote.await_count == 1
        assert manager.state == QuoteState.READY

    @pytest.mark.asyncio
    async def test_close_discards_late_response(self, manager, gateway, request_500):
        release = asyncio.Event()

        async def slow_quote(request):
            await release.wait()
            return ok(_quote_for(request))

        gateway.request_quote = AsyncMock(side_effect=slow_quote)
        pending = asyncio.ensure_future(manager.enable(request_500))
        await asyncio.sleep(0)
        assert manager.state == QuoteState.LOADING

        manager.close()
        release.set()
        await pending

        assert manager.quote is None
        assert manager.state == QuoteState.LOADING

        # Closed manager makes no further calls
        await manager.ensure_quote(request_500)
        assert gateway.request_quote.await_count == 1

    def test_opt_out_disallowed(self, gateway):
        manager = InsuranceQuoteManager(gateway, opt_out_allowed=False)
        with pytest.raises(ValidationError):
            manager.disable()
