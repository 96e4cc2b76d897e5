"""Unit tests for distance and nearest-driver matching."""

from riderapp.domain.distance import distance_between, haversine_km
from riderapp.domain.entities import Driver, Location
from riderapp.domain.matching import drivers_within, nearest_driver

PICKUP = Location(51.5080, -0.1281)


def make_driver(driver_id, lat=None, lng=None, available=True) -> Driver:
    location = Location(lat, lng) if lat is not None else None
    return Driver(
        id=driver_id,
        name=f"Driver {driver_id}",
        email=f"d{driver_id}@example.com",
        available=available,
        location=location,
    )


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(51.5, -0.12, 51.5, -0.12) == 0.0

    def test_known_distance(self):
        # Trafalgar Square -> Kings Cross ~2.5 km
        d = haversine_km(51.5080, -0.1281, 51.5308, -0.1238)
        assert 2.3 < d < 2.7

    def test_symmetric(self):
        d1 = haversine_km(51.0, -1.0, 52.0, 0.0)
        d2 = haversine_km(52.0, 0.0, 51.0, -1.0)
        assert abs(d1 - d2) < 1e-6

    def test_distance_between_locations(self):
        a, b = Location(51.0, -1.0), Location(52.0, 0.0)
        assert distance_between(a, b) == haversine_km(51.0, -1.0, 52.0, 0.0)


class TestNearestDriver:
    def test_picks_closest(self):
        far = make_driver(1, 51.55, -0.13)
        near = make_driver(2, 51.509, -0.128)
        assert nearest_driver([far, near], PICKUP).id == 2

    def test_skips_unavailable(self):
        busy = make_driver(1, 51.5081, -0.1281, available=False)
        free = make_driver(2, 51.52, -0.13)
        assert nearest_driver([busy, free], PICKUP).id == 2

    def test_skips_drivers_without_position(self):
        unknown = make_driver(1)
        known = make_driver(2, 51.6, -0.2)
        assert nearest_driver([unknown, known], PICKUP).id == 2

    def test_none_when_nobody_available(self):
        assert nearest_driver([make_driver(1, 51.5, -0.1, available=False)], PICKUP) is None
        assert nearest_driver([], PICKUP) is None

    def test_tie_goes_to_first(self):
        a = make_driver(1, 51.51, -0.1281)
        b = make_driver(2, 51.51, -0.1281)
        assert nearest_driver([a, b], PICKUP).id == 1


class TestDriversWithin:
    def test_radius_filter_and_order(self):
        drivers = [
            make_driver(1, 51.53, -0.1281),   # ~2.5 km
            make_driver(2, 51.509, -0.1281),  # ~0.1 km
            make_driver(3, 51.60, -0.1281),   # ~10 km
        ]
        assert [d.id for d in drivers_within(drivers, PICKUP, 5.0)] == [2, 1]

    def test_empty_when_none_in_range(self):
        assert drivers_within([make_driver(1, 52.5, -0.12)], PICKUP, 1.0) == []
