"""Unit tests for the ride lifecycle transition table."""

import pytest

from riderapp.domain.entities import Location
from riderapp.domain.enums import (
    ACTIVE_STATUSES,
    RIDE_TRANSITIONS,
    RideStatus,
    ensure_transition,
)
from riderapp.domain.exceptions import InvalidStateTransition


class TestRideStateMachine:
    # ── Valid transitions ─────────────────────────────────────────

    @pytest.mark.parametrize("current,target", [
        (RideStatus.REQUESTED, RideStatus.ACCEPTED),
        (RideStatus.REQUESTED, RideStatus.CANCELLED),
        (RideStatus.ACCEPTED, RideStatus.PICKED_UP),
        (RideStatus.ACCEPTED, RideStatus.CANCELLED),
        (RideStatus.PICKED_UP, RideStatus.COMPLETED),
    ])
    def test_allowed(self, current, target):
        ensure_transition(current, target)

    def test_accepts_stored_string_values(self):
        ensure_transition("PICKED_UP", RideStatus.COMPLETED)

    # ── Invalid transitions ───────────────────────────────────────

    def test_requested_cannot_skip_to_completed(self):
        with pytest.raises(InvalidStateTransition):
            ensure_transition(RideStatus.REQUESTED, RideStatus.COMPLETED)

    def test_requested_cannot_start(self):
        with pytest.raises(InvalidStateTransition):
            ensure_transition(RideStatus.REQUESTED, RideStatus.PICKED_UP)

    def test_picked_up_cannot_be_cancelled(self):
        with pytest.raises(InvalidStateTransition):
            ensure_transition(RideStatus.PICKED_UP, RideStatus.CANCELLED)

    @pytest.mark.parametrize("terminal", [RideStatus.COMPLETED, RideStatus.CANCELLED])
    @pytest.mark.parametrize("target", list(RideStatus))
    def test_terminal_states_are_final(self, terminal, target):
        assert RIDE_TRANSITIONS[terminal] == set()
        with pytest.raises(InvalidStateTransition):
            ensure_transition(terminal, target)

    def test_error_names_both_states(self):
        with pytest.raises(InvalidStateTransition, match="ACCEPTED to COMPLETED"):
            ensure_transition(RideStatus.ACCEPTED, RideStatus.COMPLETED)


class TestActiveRides:
    def test_active_statuses(self):
        assert ACTIVE_STATUSES == {
            RideStatus.REQUESTED, RideStatus.ACCEPTED, RideStatus.PICKED_UP,
        }


class TestLocation:
    def test_with_address_keeps_coordinates(self):
        loc = Location(51.5, -0.12, "geocoded", "SW1A 1AA")
        updated = loc.with_address("10 Downing St")
        assert (updated.latitude, updated.longitude) == (51.5, -0.12)
        assert updated.address == "10 Downing St"
        assert updated.postcode == "SW1A 1AA"

    def test_with_empty_address_is_unchanged(self):
        loc = Location(51.5, -0.12, "geocoded")
        assert loc.with_address(None) is loc
