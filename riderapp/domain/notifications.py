"""
Notification Fan-out  (Observer Pattern)
========================================

``RideNotifier.notify`` is called once per committed transition with the
ride in its new state.  Delivery runs in a background task: observers are
awaited one after another in registration order, and an observer error is
logged and skipped so it can never undo or delay the transition.

Observers decide *whether* and *what* to send; a ``NotificationTransport``
does the sending.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional

from .entities import Ride
from .enums import RideStatus

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Notification:
    audience: str  # "passenger" | "driver" | "nearby_drivers"
    recipient_id: Optional[int]
    ride_id: int
    event: str
    message: str


class NotificationTransport(ABC):
    @abstractmethod
    async def send(self, notification: Notification) -> None: ...


class RideObserver(ABC):
    @abstractmethod
    async def update(self, ride: Ride) -> None: ...


# ── Observers ─────────────────────────────────────────────────────────


class DriverNotifier(RideObserver):
    """Driver-facing channel: new requests and completed-ride earnings."""

    def __init__(self, transport: NotificationTransport):
        self.transport = transport

    async def update(self, ride: Ride) -> None:
        if ride.status == RideStatus.REQUESTED:
            where = ride.pickup.address or "Unknown location"
            await self.transport.send(Notification(
                audience="nearby_drivers",
                recipient_id=None,
                ride_id=ride.id,
                event="ride_requested",
                message=f"New ride request from {where}",
            ))
        elif ride.status == RideStatus.COMPLETED:
            await self.transport.send(Notification(
                audience="driver",
                recipient_id=ride.driver_id,
                ride_id=ride.id,
                event="ride_completed",
                message=f"Ride completed. Earnings: £{ride.fare:.2f}",
            ))


class PassengerNotifier(RideObserver):
    """Passenger-facing channel: acceptance, pickup, completion, cancellation."""

    def __init__(self, transport: NotificationTransport):
        self.transport = transport

    async def update(self, ride: Ride) -> None:
        if ride.status == RideStatus.ACCEPTED:
            driver = ride.driver_name or f"driver #{ride.driver_id}"
            event, message = "ride_accepted", f"Your ride has been accepted by {driver}"
        elif ride.status == RideStatus.PICKED_UP:
            event, message = "ride_started", "Your ride has started"
        elif ride.status == RideStatus.COMPLETED:
            event, message = (
                "ride_completed",
                f"Your ride has completed. Fare: £{ride.fare:.2f}",
            )
        elif ride.status == RideStatus.CANCELLED:
            event, message = "ride_cancelled", "Your ride has been cancelled"
        else:
            return

        await self.transport.send(Notification(
            audience="passenger",
            recipient_id=ride.passenger_id,
            ride_id=ride.id,
            event=event,
            message=message,
        ))


# ── Subject ───────────────────────────────────────────────────────────


class RideNotifier:
    def __init__(self, observers: Optional[list[RideObserver]] = None):
        self._observers: list[RideObserver] = list(observers or [])
        self._pending: set[asyncio.Task] = set()

    @property
    def observers(self) -> list[RideObserver]:
        return list(self._observers)

    def add_observer(self, observer: RideObserver) -> None:
        self._observers.append(observer)

    def remove_observer(self, observer: RideObserver) -> None:
        if observer in self._observers:
            self._observers.remove(observer)

    def notify(self, ride: Ride) -> None:
        """Schedule delivery of *ride* to every observer; returns immediately."""
        if not self._observers:
            return
        task = asyncio.create_task(self._deliver(replace(ride), self.observers))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, ride: Ride, observers: list[RideObserver]) -> None:
        for observer in observers:
            try:
                await observer.update(ride)
            except Exception:
                logger.exception(
                    "Observer %s failed for ride %d (%s)",
                    type(observer).__name__, ride.id, ride.status.value,
                )

    async def drain(self) -> None:
        """Wait for every scheduled delivery to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending))
