"""
Distance calculation using the Haversine formula.

Used for driver matching (driver position -> pickup point) and as the
offline stand-in for road distance when no routing provider is
configured.  Ride fares are priced from the routing provider's road
distance whenever one is available.

Complexity: O(1) per call.
"""

from __future__ import annotations

import math
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .entities import Location

EARTH_RADIUS_KM = 6_371.0


def haversine_km(
    lat1: float, lng1: float, lat2: float, lng2: float
) -> float:
    """Return the great-circle distance in **km** between two points."""
    lat1_r, lat2_r = math.radians(lat1), math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlng = math.radians(lng2 - lng1)

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1_r) * math.cos(lat2_r) * math.sin(dlng / 2) ** 2
    )
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def distance_between(origin: Location, destination: Location) -> float:
    return haversine_km(
        origin.latitude, origin.longitude,
        destination.latitude, destination.longitude,
    )
