"""Tests for DeliveryStatusPoller."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from pikup.constants import STATUS_FETCH_FAILED_MESSAGE
from pikup.core.enums import DeliveryStatus, PollerState, StopReason
from pikup.core.exceptions import NetworkError, ValidationError
from pikup.repositories.base import BookingStore
from pikup.repositories.http import HttpBookingStore
from pikup.services.tracking.status_poller import DeliveryStatusPoller

BOOKING_ID = "pickup_1700000000000_abc123xyz"


@pytest.fixture
def store():
    """Booking store whose reads are scripted per test."""
    store = MagicMock(spec=BookingStore)
    store.get_by_id = AsyncMock()
    return store


def _script(store, make_booking, *statuses):
    store.get_by_id.side_effect = [make_booking(status) for status in statuses]


def _poller(store, **kwargs):
    kwargs.setdefault("interval", 0.01)
    kwargs.setdefault("fetch_attempts", 1)
    kwargs.setdefault("fetch_retry_delay", 0)
    return DeliveryStatusPoller(store, BOOKING_ID, **kwargs)


class TestTick:
    """Tests for single polling ticks."""

    def test_requires_booking_id(self, store):
        with pytest.raises(ValidationError):
            DeliveryStatusPoller(store, "")

    @pytest.mark.asyncio
    async def test_completion_fires_once(self, store, make_booking):
        """accepted, inProgress, completed: one completion, later ticks do nothing."""
        _script(
            store,
            make_booking,
            DeliveryStatus.ACCEPTED,
            DeliveryStatus.IN_PROGRESS,
            DeliveryStatus.COMPLETED,
        )
        on_update = MagicMock()
        on_complete = MagicMock()
        poller = _poller(store, on_update=on_update, on_complete=on_complete)

        for _ in range(5):
            await poller.tick()

        on_complete.assert_called_once()
        assert on_update.call_count == 3
        assert poller.status == DeliveryStatus.COMPLETED
        assert poller.state == PollerState.STOPPED
        assert poller.stop_reason == StopReason.COMPLETED
        assert store.get_by_id.await_count == 3

    @pytest.mark.asyncio
    async def test_stale_reads_are_ignored(self, store, make_booking):
        _script(
            store,
            make_booking,
            DeliveryStatus.ACCEPTED,
            DeliveryStatus.PICKED_UP,
            DeliveryStatus.IN_PROGRESS,
            DeliveryStatus.PICKED_UP,
        )
        on_update = MagicMock()
        poller = _poller(store, on_update=on_update)

        seen = [await poller.tick() for _ in range(4)]

        assert seen == [
            DeliveryStatus.ACCEPTED,
            DeliveryStatus.PICKED_UP,
            DeliveryStatus.PICKED_UP,
            DeliveryStatus.PICKED_UP,
        ]
        assert on_update.call_count == 2

    @pytest.mark.asyncio
    async def test_failed_tick_keeps_last_status(self, store, make_booking):
        store.get_by_id.side_effect = [
            make_booking(DeliveryStatus.ACCEPTED),
            NetworkError("reset"),
        ]
        poller = _poller(store)

        await poller.tick()
        status = await poller.tick()

        assert status == DeliveryStatus.ACCEPTED
        assert poller.consecutive_failures == 1
        assert poller.last_error.user_message == STATUS_FETCH_FAILED_MESSAGE
        assert poller.can_refresh

    @pytest.mark.asyncio
    async def test_failures_stop_polling(self, store):
        store.get_by_id.side_effect = NetworkError("unreachable")
        poller = _poller(store, max_failures=3, fetch_attempts=2)

        for _ in range(4):
            await poller.tick()

        assert poller.state == PollerState.STOPPED
        assert poller.stop_reason == StopReason.ERROR_THRESHOLD
        # Two attempts per tick, no fetch after stopping
        assert store.get_by_id.await_count == 6
        assert not poller.can_refresh

    @pytest.mark.asyncio
    async def test_success_resets_failure_count(self, store, make_booking):
        store.get_by_id.side_effect = [
            NetworkError("reset"),
            NetworkError("reset"),
            make_booking(DeliveryStatus.ACCEPTED),
            NetworkError("reset"),
            NetworkError("reset"),
        ]
        poller = _poller(store, max_failures=3)

        for _ in range(5):
            await poller.tick()

        assert poller.state == PollerState.IDLE
        assert poller.consecutive_failures == 2

    @pytest.mark.asyncio
    async def test_unexpected_error_counts_as_failure(self, store, make_booking):
        store.get_by_id.side_effect = [
            make_booking(DeliveryStatus.ACCEPTED),
            RuntimeError("store client bug"),
        ]
        poller = _poller(store)

        await poller.tick()
        status = await poller.tick()

        assert status == DeliveryStatus.ACCEPTED
        assert poller.consecutive_failures == 1
        assert poller.can_refresh

    @pytest.mark.asyncio
    async def test_missing_booking_counts_as_failure(self, store):
        store.get_by_id.return_value = None
        poller = _poller(store)

        await poller.refresh()

        assert poller.consecutive_failures == 1
        assert poller.status is None

    @pytest.mark.asyncio
    async def test_cancellation(self, store, make_booking):
        _script(store, make_booking, DeliveryStatus.ACCEPTED, DeliveryStatus.CANCELLED)
        on_cancel = MagicMock()
        on_complete = MagicMock()
        poller = _poller(store, on_cancel=on_cancel, on_complete=on_complete)

        for _ in range(3):
            await poller.tick()

        on_cancel.assert_called_once()
        on_complete.assert_not_called()
        assert poller.stop_reason == StopReason.CANCELLED
        assert poller.status == DeliveryStatus.CANCELLED

    @pytest.mark.asyncio
    async def test_async_and_failing_callbacks(self, store, make_booking):
        _script(store, make_booking, DeliveryStatus.ACCEPTED, DeliveryStatus.COMPLETED)
        on_update = MagicMock(side_effect=RuntimeError("listener broke"))
        on_complete = AsyncMock()
        poller = _poller(store, on_update=on_update, on_complete=on_complete)

        await poller.tick()
        await poller.tick()

        on_complete.assert_awaited_once()
        assert poller.stop_reason == StopReason.COMPLETED


class TestLoop:
    """Tests for the background polling loop."""

    @pytest.mark.asyncio
    async def test_runs_until_completed(self, store, make_booking):
        _script(
            store,
            make_booking,
            DeliveryStatus.ACCEPTED,
            DeliveryStatus.PICKED_UP,
            DeliveryStatus.COMPLETED,
        )
        on_complete = MagicMock()
        poller = _poller(store, on_complete=on_complete).start()
        assert poller.is_running

        reason = await asyncio.wait_for(poller.wait_closed(), timeout=2)

        assert reason == StopReason.COMPLETED
        on_complete.assert_called_once()
        assert not poller.is_running

    @pytest.mark.asyncio
    async def test_stop_tears_down(self, store, make_booking):
        store.get_by_id.return_value = make_booking(DeliveryStatus.ACCEPTED)
        poller = _poller(store, interval=30)

        async with poller:
            await asyncio.sleep(0.05)
            assert poller.status == DeliveryStatus.ACCEPTED

        assert poller.stop_reason == StopReason.TORN_DOWN
        assert poller._task.done()
        with pytest.raises(RuntimeError):
            poller.start()

    @pytest.mark.asyncio
    async def test_refresh_after_stop_is_noop(self, store, make_booking):
        store.get_by_id.return_value = make_booking(DeliveryStatus.ACCEPTED)
        poller = _poller(store)
        await poller.stop()

        assert await poller.refresh() is None
        store.get_by_id.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_survives_malformed_document(self, mock_api, make_booking, make_response):
        malformed = make_booking(DeliveryStatus.PICKED_UP).to_dict()
        malformed["pricing"]["surgeMultiplier"] = "abc"
        mock_api.get_json = AsyncMock(
            side_effect=[
                make_response(make_booking(DeliveryStatus.ACCEPTED).to_dict()),
                make_response(malformed),
                make_response(make_booking(DeliveryStatus.COMPLETED).to_dict()),
            ]
        )
        on_complete = MagicMock()
        poller = _poller(HttpBookingStore(mock_api), on_complete=on_complete).start()

        reason = await asyncio.wait_for(poller.wait_closed(), timeout=2)

        assert reason == StopReason.COMPLETED
        on_complete.assert_called_once()
        assert poller.consecutive_failures == 0
        assert mock_api.get_json.await_count == 3
