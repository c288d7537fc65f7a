"""Delivery status poller: follows one booking until it reaches a terminal status."""

import asyncio
import inspect
from typing import Any, Awaitable, Callable, Optional, Union

from loguru import logger

from ...constants import Intervals, Limits, Timeouts
from ...core.config.settings import PikupSettings
from ...core.enums import DeliveryStatus, PollerState, StopReason
from ...core.exceptions import ApiError, PikupError, StatusFetchFailedError, ValidationError
from ...core.retry import get_status_fetch_retry
from ...models.booking import Booking
from ...repositories.base import BookingStore

BookingCallback = Callable[[Booking], Union[None, Awaitable[None]]]


class DeliveryStatusPoller:
    """
    Polls the booking store for one booking's status.

    Stops on ``completed`` or ``cancelled``, on ``stop()``, or after
    ``max_failures`` consecutive failed ticks. A failed tick keeps the last
    known status; ``refresh()`` runs a tick on demand. Reads reporting less
    progress than already observed are ignored. The completion and
    cancellation callbacks fire at most once.
    """

    def __init__(
        self,
        store: BookingStore,
        booking_id: str,
        interval: float = Intervals.STATUS_POLL_DEFAULT,
        max_failures: int = Limits.STATUS_POLL_MAX_FAILURES,
        fetch_attempts: int = Limits.STATUS_FETCH_ATTEMPTS,
        fetch_retry_delay: float = Intervals.STATUS_FETCH_RETRY_DELAY,
        on_update: Optional[BookingCallback] = None,
        on_complete: Optional[BookingCallback] = None,
        on_cancel: Optional[BookingCallback] = None,
    ):
        """
        Initialize status poller.

        Args:
            store: Booking store to read from
            booking_id: Booking to follow
            interval: Seconds between ticks
            max_failures: Consecutive failed ticks before giving up
            fetch_attempts: Attempts per tick
            fetch_retry_delay: Base delay between attempts inside a tick
            on_update: Called whenever a newer status is observed
            on_complete: Called once when the booking is completed
            on_cancel: Called once when the booking is cancelled

        Raises:
            ValidationError: If no booking id is given
        """
        if not booking_id:
            raise ValidationError("a booking id is required to track status", field="booking_id")

        self.store = store
        self.booking_id = booking_id
        self.interval = interval
        self.max_failures = max_failures
        self.on_update = on_update
        self.on_complete = on_complete
        self.on_cancel = on_cancel

        self.state = PollerState.IDLE
        self.stop_reason: Optional[StopReason] = None
        self.booking: Optional[Booking] = None
        self.consecutive_failures = 0
        self.last_error: Optional[StatusFetchFailedError] = None

        self._highest_index = -1
        self._completion_fired = False
        self._cancellation_fired = False
        self._stop_event = asyncio.Event()
        self._task: Optional[asyncio.Task] = None
        self._fetch = get_status_fetch_retry(fetch_attempts, fetch_retry_delay)(self._fetch_once)

    @classmethod
    def from_settings(
        cls, store: BookingStore, booking_id: str, settings: PikupSettings, **callbacks: Any
    ) -> "DeliveryStatusPoller":
        return cls(
            store,
            booking_id,
            interval=settings.status_poll_interval_seconds,
            max_failures=settings.status_poll_max_failures,
            fetch_attempts=settings.status_fetch_attempts,
            fetch_retry_delay=settings.status_fetch_retry_delay_seconds,
            **callbacks,
        )

    @property
    def status(self) -> Optional[DeliveryStatus]:
        """Last known status, None before the first successful tick."""
        return self.booking.status if self.booking else None

    @property
    def is_running(self) -> bool:
        return self.state == PollerState.POLLING

    @property
    def can_refresh(self) -> bool:
        """Whether a manual refresh should be offered."""
        return self.last_error is not None and self.state != PollerState.STOPPED

    async def __aenter__(self):
        """Async context manager entry."""
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.stop()

    def start(self) -> "DeliveryStatusPoller":
        """
        Start polling in the background.

        Raises:
            RuntimeError: If the poller was already stopped
        """
        if self.state == PollerState.POLLING:
            return self
        if self.state == PollerState.STOPPED:
            raise RuntimeError(f"Status poller for {self.booking_id} has already stopped")

        self.state = PollerState.POLLING
        self._task = asyncio.create_task(self._run())
        logger.info(f"Tracking booking {self.booking_id} every {self.interval}s")
        return self

    async def stop(self) -> None:
        """Tear down the poller and wait for the loop to exit."""
        self._halt(StopReason.TORN_DOWN)
        task = self._task
        if task is None or task.done() or task is asyncio.current_task():
            return
        try:
            await asyncio.wait_for(task, timeout=Timeouts.POLLER_STOP_SECONDS)
        except asyncio.TimeoutError:
            logger.warning(f"Status poller for {self.booking_id} did not stop in time")

    async def wait_closed(self) -> Optional[StopReason]:
        """Wait until the poller stops on its own."""
        if self._task is not None:
            await self._task
        return self.stop_reason

    async def refresh(self) -> Optional[DeliveryStatus]:
        """Run one tick now."""
        return await self.tick()

    async def tick(self) -> Optional[DeliveryStatus]:
        """
        Fetch the booking once (with a short retry) and apply the result.

        Returns:
            Last known status after the tick
        """
        if self.state == PollerState.STOPPED:
            return self.status

        try:
            booking = await self._fetch()
        except PikupError as e:
            self._record_failure(e)
            return self.status
        except Exception as e:
            logger.exception(f"Unexpected error fetching booking {self.booking_id}")
            self._record_failure(e)
            return self.status

        self.consecutive_failures = 0
        self.last_error = None
        await self._observe(booking)
        return self.status

    async def _fetch_once(self) -> Booking:
        booking = await self.store.get_by_id(self.booking_id)
        if booking is None:
            raise ApiError(f"Booking {self.booking_id} not found", status=404)
        return booking

    def _record_failure(self, error: Exception) -> None:
        self.consecutive_failures += 1
        self.last_error = StatusFetchFailedError(self.booking_id, str(error))
        logger.warning(
            f"Status fetch for {self.booking_id} failed "
            f"({self.consecutive_failures}/{self.max_failures}): {error}"
        )
        if self.consecutive_failures >= self.max_failures:
            logger.error(f"Giving up on tracking {self.booking_id} after repeated failures")
            self._halt(StopReason.ERROR_THRESHOLD)

    async def _observe(self, booking: Booking) -> None:
        if self.state == PollerState.STOPPED:
            return

        if booking.status == DeliveryStatus.CANCELLED:
            self.booking = booking
            self._halt(StopReason.CANCELLED)
            if not self._cancellation_fired:
                self._cancellation_fired = True
                logger.info(f"Booking {self.booking_id} was cancelled")
                await self._invoke(self.on_cancel, booking)
            return

        index = booking.status.index
        if index is None or index < self._highest_index:
            logger.debug(
                f"Ignoring stale status '{booking.status.value}' for {self.booking_id}"
            )
            return

        advanced = index > self._highest_index
        self._highest_index = index
        self.booking = booking
        if advanced:
            logger.info(f"Booking {self.booking_id} is now '{booking.status.value}'")
            await self._invoke(self.on_update, booking)

        if booking.status == DeliveryStatus.COMPLETED:
            self._halt(StopReason.COMPLETED)
            if not self._completion_fired:
                self._completion_fired = True
                await self._invoke(self.on_complete, booking)

    async def _invoke(self, callback: Optional[BookingCallback], booking: Booking) -> None:
        if callback is None:
            return
        try:
            result = callback(booking)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            # Listener errors must not stop tracking
            logger.error(f"Status callback failed for {self.booking_id}: {e}")

    def _halt(self, reason: StopReason) -> None:
        if self.state == PollerState.STOPPED:
            return
        self.state = PollerState.STOPPED
        self.stop_reason = reason
        self._stop_event.set()
        logger.info(f"Stopped tracking {self.booking_id} ({reason.value})")

    async def _wait_or_stop(self, seconds: float) -> bool:
        """
        Wait for the interval or until the poller is stopped.

        Returns:
            True if stop was requested during the wait
        """
        if self._stop_event.is_set():
            return True
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=seconds)
            return True
        except asyncio.TimeoutError:
            return False

    async def _run(self) -> None:
        try:
            while self.state == PollerState.POLLING:
                await self.tick()
                if self.state != PollerState.POLLING:
                    break
                if await self._wait_or_stop(self.interval):
                    break
        except asyncio.CancelledError:
            self._halt(StopReason.TORN_DOWN)
            raise
