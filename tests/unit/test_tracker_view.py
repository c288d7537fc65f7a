"""Tests for the delivery tracker presentation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from pikup.core.enums import DeliveryStatus
from pikup.core.exceptions import NetworkError
from pikup.repositories.base import BookingStore
from pikup.services.tracking import DELIVERY_STEPS, TrackerView, eta_text, step_index
from pikup.services.tracking.status_poller import DeliveryStatusPoller


@pytest.fixture
def store():
    store = MagicMock(spec=BookingStore)
    store.get_by_id = AsyncMock()
    return store


@pytest.fixture
def view(store):
    poller = DeliveryStatusPoller(
        store, "pickup_1700000000000_abc123xyz", fetch_attempts=1, fetch_retry_delay=0
    )
    return TrackerView(poller)


def test_step_mapping():
    assert len(DELIVERY_STEPS) == 7
    assert step_index(DeliveryStatus.PENDING) == 0
    assert step_index(DeliveryStatus.COMPLETED) == 6
    assert eta_text(None) == "-- min"
    assert eta_text(DeliveryStatus.ARRIVED_AT_PICKUP) == "Arrived"


class TestTrackerView:
    """Tests for TrackerView."""

    @pytest.mark.asyncio
    async def test_loading(self, view):
        assert view.is_loading
        assert view.render_text() == "Loading..."
        assert view.compact() is None
        assert view.eta == "-- min"

    @pytest.mark.asyncio
    async def test_steps_at_pickup(self, view, store, make_booking):
        store.get_by_id.return_value = make_booking(
            DeliveryStatus.PICKED_UP, pickup_photos=("https://cdn.pikup.app/p1.jpg",)
        )
        await view.poller.tick()

        steps = view.steps()

        assert view.current_index == 3
        assert [s.is_active for s in steps] == [True] * 4 + [False] * 3
        assert [s.is_current for s in steps].index(True) == 3
        assert steps[3].description == "Your items are secured for transport"
        assert steps[2].description is None
        assert view.photo_buttons() == ("Pickup Photos",)

    @pytest.mark.asyncio
    async def test_no_photos_before_pickup(self, view, store, make_booking):
        store.get_by_id.return_value = make_booking(
            DeliveryStatus.IN_PROGRESS, pickup_photos=("https://cdn.pikup.app/p1.jpg",)
        )
        await view.poller.tick()
        assert view.photo_buttons() == ()
        assert view.eta == "5-10 min"

    @pytest.mark.asyncio
    async def test_compact(self, view, store, make_booking):
        store.get_by_id.return_value = make_booking(DeliveryStatus.PICKED_UP)
        await view.poller.tick()

        compact = view.compact()

        assert compact.label == "Package collected"
        assert compact.icon == "cube"
        assert compact.info == "Sofa • ETA: 15-20 min"
        assert view.render_text() == "Package collected - Sofa • ETA: 15-20 min"

    @pytest.mark.asyncio
    async def test_expanded_with_driver(self, view, store, make_booking):
        store.get_by_id.return_value = make_booking(
            DeliveryStatus.EN_ROUTE_TO_DROPOFF,
            driver_email="sam.driver@pikup.app",
            dropoff_photos=("https://cdn.pikup.app/d1.jpg",),
        )
        await view.poller.tick()
        assert view.toggle() is True

        full = view.full()

        assert full.title == "Delivery Status"
        assert full.driver.name == "sam.driver"
        assert full.driver.vehicle == "Cargo Van"
        assert full.driver.plate == "Plate"
        assert full.photo_buttons == ("Delivery Photos",)
        text = view.render_text()
        assert text.startswith("Delivery Status")
        assert "[>] On the way to destination: Your package is in transit" in text

    @pytest.mark.asyncio
    async def test_cancelled(self, view, store, make_booking):
        store.get_by_id.return_value = make_booking(DeliveryStatus.CANCELLED)
        await view.poller.tick()

        compact = view.compact()

        assert compact.label == "Cancelled"
        assert compact.icon == "close-circle"

    @pytest.mark.asyncio
    async def test_error_prompt(self, view, store):
        store.get_by_id.side_effect = NetworkError("unreachable")
        await view.poller.tick()

        assert view.error_text == "Tap to retry"
        assert view.render_text() == "Tap to retry"
        assert not view.is_loading
