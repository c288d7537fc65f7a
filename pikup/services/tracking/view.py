"""Compact and expanded presentation of a tracked booking."""

from dataclasses import dataclass
from typing import List, Optional, Tuple

from ...core.enums import DeliveryStatus, PollerState
from ...models.booking import Booking
from .status_poller import DeliveryStatusPoller
from .steps import DELIVERY_STEPS, PHOTOS_FROM_STEP, DeliveryStep, eta_text, step_index


@dataclass(frozen=True)
class StepView:
    """A progress step with its display flags."""

    step: DeliveryStep
    is_active: bool
    is_current: bool

    @property
    def description(self) -> Optional[str]:
        """Only the current step shows its description."""
        return self.step.description if self.is_current else None


@dataclass(frozen=True)
class DriverSummary:
    name: str
    vehicle: str
    plate: str


@dataclass(frozen=True)
class CompactTracker:
    label: str
    icon: str
    info: str


@dataclass(frozen=True)
class ExpandedTracker:
    title: str
    driver: Optional[DriverSummary]
    steps: Tuple[StepView, ...]
    photo_buttons: Tuple[str, ...]
    can_refresh: bool


class TrackerView:
    """
    Presentation of a poller's booking.

    Starts collapsed unless ``expanded`` is set; ``toggle()`` switches.
    """

    def __init__(self, poller: DeliveryStatusPoller, expanded: bool = False):
        self.poller = poller
        self.expanded = expanded

    def toggle(self) -> bool:
        self.expanded = not self.expanded
        return self.expanded

    @property
    def booking(self) -> Optional[Booking]:
        return self.poller.booking

    @property
    def current_index(self) -> int:
        return step_index(self.poller.status)

    @property
    def current_step(self) -> DeliveryStep:
        return DELIVERY_STEPS[self.current_index]

    @property
    def eta(self) -> str:
        return eta_text(self.poller.status)

    @property
    def is_loading(self) -> bool:
        return self.booking is None and self.poller.last_error is None

    @property
    def error_text(self) -> Optional[str]:
        """Error prompt, shown when the latest poll failed."""
        if self.poller.last_error is None:
            return None
        return "Tap to retry"

    def steps(self) -> Tuple[StepView, ...]:
        current = self.current_index
        return tuple(
            StepView(step=step, is_active=index <= current, is_current=index == current)
            for index, step in enumerate(DELIVERY_STEPS)
        )

    def driver(self) -> Optional[DriverSummary]:
        booking = self.booking
        if booking is None or not booking.driver_name:
            return None
        return DriverSummary(
            name=booking.driver_name,
            vehicle=booking.vehicle_type.value,
            plate=booking.vehicle_plate or "Plate",
        )

    def photo_buttons(self) -> Tuple[str, ...]:
        """Photo galleries available at the current step."""
        booking = self.booking
        if booking is None or self.current_index < PHOTOS_FROM_STEP:
            return ()
        buttons: List[str] = []
        if booking.pickup_photos:
            buttons.append("Pickup Photos")
        if booking.dropoff_photos:
            buttons.append("Delivery Photos")
        return tuple(buttons)

    def compact(self) -> Optional[CompactTracker]:
        booking = self.booking
        if booking is None:
            return None
        description = booking.item.description or "Your delivery"
        if booking.status == DeliveryStatus.CANCELLED:
            return CompactTracker(label="Cancelled", icon="close-circle", info=description)
        step = self.current_step
        return CompactTracker(
            label=step.label, icon=step.icon, info=f"{description} • ETA: {self.eta}"
        )

    def full(self) -> ExpandedTracker:
        return ExpandedTracker(
            title="Delivery Status",
            driver=self.driver(),
            steps=self.steps(),
            photo_buttons=self.photo_buttons(),
            can_refresh=self.poller.state != PollerState.STOPPED,
        )

    def render_text(self) -> str:
        """Plain-text rendering for terminals and logs."""
        if self.error_text:
            return self.error_text
        if self.is_loading:
            return "Loading..."
        if not self.expanded:
            compact = self.compact()
            return f"{compact.label} - {compact.info}" if compact else ""

        view = self.full()
        lines = [view.title]
        if view.driver:
            lines.append(f"{view.driver.name} ({view.driver.vehicle} • {view.driver.plate})")
        for item in view.steps:
            marker = ">" if item.is_current else ("x" if item.is_active else " ")
            line = f"[{marker}] {item.step.label}"
            if item.description:
                line += f": {item.description}"
            lines.append(line)
        if view.photo_buttons:
            lines.append(" | ".join(view.photo_buttons))
        return "\n".join(lines)
