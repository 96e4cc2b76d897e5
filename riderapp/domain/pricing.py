"""
Fare Policy  (Strategy Pattern)
===============================

Formula
-------
Fare = (Base_Fare + Distance x Rate_Per_KM) x Surge_Multiplier

=========  =========  ===========
Type       Base fare  Rate per km
=========  =========  ===========
STANDARD   5.00       2.00
POOL       3.00       1.50
LUXURY     0.00       0.50
=========  =========  ===========

* **Surge_Multiplier** is snapshotted once per ride at request time from the
  number of non-terminal rides: > 10 -> 2.0, > 5 -> 1.5, otherwise 1.0.

Complexity: O(1) per fare calculation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from .enums import RideType


# ── Strategy hierarchy ────────────────────────────────────────────────


class FareStrategy(ABC):
    base_fare: float = 0.0
    rate_per_km: float = 0.0

    @abstractmethod
    def calculate(self, distance_km: float, surge_multiplier: float) -> float: ...


class StandardFare(FareStrategy):
    base_fare = 5.0
    rate_per_km = 2.0

    def calculate(self, distance_km: float, surge_multiplier: float) -> float:
        raw = (self.base_fare + distance_km * self.rate_per_km) * surge_multiplier
        return round(raw, 2)


class PoolFare(FareStrategy):
    base_fare = 3.0
    rate_per_km = 1.5

    def calculate(self, distance_km: float, surge_multiplier: float) -> float:
        raw = (self.base_fare + distance_km * self.rate_per_km) * surge_multiplier
        return round(raw, 2)


class LuxuryFare(FareStrategy):
    """Distance-only pricing; a zero-length luxury ride is free."""

    rate_per_km = 0.50

    def calculate(self, distance_km: float, surge_multiplier: float) -> float:
        return round(distance_km * self.rate_per_km * surge_multiplier, 2)


FARE_STRATEGIES: dict[RideType, FareStrategy] = {
    RideType.STANDARD: StandardFare(),
    RideType.POOL: PoolFare(),
    RideType.LUXURY: LuxuryFare(),
}


def get_fare_strategy(ride_type: RideType) -> FareStrategy:
    return FARE_STRATEGIES[RideType(ride_type)]


def calculate_fare(
    ride_type: RideType, distance_km: float, surge_multiplier: float
) -> float:
    return get_fare_strategy(ride_type).calculate(distance_km, surge_multiplier)


# ── Surge ─────────────────────────────────────────────────────────────

HIGH_LOAD_THRESHOLD = 10
MEDIUM_LOAD_THRESHOLD = 5


def compute_surge(active_rides: int) -> float:
    """Load-based surge multiplier from the count of non-terminal rides."""
    if active_rides > HIGH_LOAD_THRESHOLD:
        return 2.0
    if active_rides > MEDIUM_LOAD_THRESHOLD:
        return 1.5
    return 1.0
