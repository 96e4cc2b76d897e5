"""
Domain entities.

These are plain snapshots handed out by the lifecycle engine and to
notification observers; the ORM models in ``riderapp.infrastructure`` are
the mutable, persisted side.

Lifecycle transitions are guarded by ``ensure_transition`` in
``riderapp.domain.enums``, applied by the engine before it mutates a ride.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from .enums import PaymentMethod, PaymentStatus, RideStatus, RideType


# ── Value Object ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class Location:
    latitude: float
    longitude: float
    address: Optional[str] = None
    postcode: Optional[str] = None

    def with_address(self, address: Optional[str]) -> Location:
        """Return a copy carrying *address* when one is given."""
        if not address:
            return self
        return Location(self.latitude, self.longitude, address, self.postcode)


# ── Entities ──────────────────────────────────────────────────────────


@dataclass
class Ride:
    id: int
    passenger_id: int
    pickup: Location
    dropoff: Location
    ride_type: RideType
    payment_method: PaymentMethod
    status: RideStatus = RideStatus.REQUESTED
    driver_id: Optional[int] = None
    passenger_name: Optional[str] = None
    driver_name: Optional[str] = None
    request_time: Optional[datetime] = None
    pickup_time: Optional[datetime] = None
    dropoff_time: Optional[datetime] = None
    fare: float = 0.0
    distance_km: float = 0.0
    surge_multiplier: float = 1.0
    rating: Optional[int] = None
    idempotency_key: Optional[str] = None


@dataclass
class Passenger:
    id: int
    name: str
    email: str
    wallet_balance: float = 0.0


@dataclass
class Driver:
    id: int
    name: str
    email: str
    vehicle_number: Optional[str] = None
    vehicle_type: Optional[str] = None
    available: bool = True
    location: Optional[Location] = None
    rating: float = 0.0
    earnings: float = 0.0
    total_rides: int = 0


@dataclass
class Payment:
    id: int
    ride_id: int
    amount: float
    payment_type: PaymentMethod
    status: PaymentStatus
    timestamp: datetime
    transaction_id: Optional[str] = None
