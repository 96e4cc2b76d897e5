"""
Nearest-Driver Matching
=======================

Linear scan over the drivers currently flagged available.  Drivers without a
known position are skipped.  Distance is great-circle (haversine) from the
driver's last reported location to the pickup point.

Matching is an auxiliary query: rides are accepted by drivers, the request
path never assigns a driver on its own.

Complexity
----------
Let D = available drivers.

* ``nearest_driver``:   O(D) -- one haversine per driver
* ``drivers_within``:   O(D)

Ties are broken by input order (first encountered wins), so callers should
pass drivers in registration order.
"""

from __future__ import annotations

from typing import Iterable, Optional

from .distance import distance_between
from .entities import Driver, Location


def _located(drivers: Iterable[Driver]) -> list[Driver]:
    return [d for d in drivers if d.available and d.location is not None]


def nearest_driver(
    drivers: Iterable[Driver], pickup: Location
) -> Optional[Driver]:
    """Return the available driver closest to *pickup*, or ``None``."""
    candidates = _located(drivers)
    if not candidates:
        return None
    # min() keeps the first of equal keys
    return min(candidates, key=lambda d: distance_between(d.location, pickup))


def drivers_within(
    drivers: Iterable[Driver], point: Location, radius_km: float
) -> list[Driver]:
    """Available drivers within *radius_km* of *point*, nearest first."""
    scored = [
        (distance_between(d.location, point), d) for d in _located(drivers)
    ]
    return [d for dist, d in sorted(scored, key=lambda s: s[0]) if dist <= radius_km]
