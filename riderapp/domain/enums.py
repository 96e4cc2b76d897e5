"""Domain enumerations and state-transition rules."""

import enum

from .exceptions import InvalidStateTransition


class RideStatus(str, enum.Enum):
    REQUESTED = "REQUESTED"
    ACCEPTED = "ACCEPTED"
    PICKED_UP = "PICKED_UP"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


# State machine: maps current status -> set of valid next statuses
RIDE_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.REQUESTED: {RideStatus.ACCEPTED, RideStatus.CANCELLED},
    RideStatus.ACCEPTED: {RideStatus.PICKED_UP, RideStatus.CANCELLED},
    RideStatus.PICKED_UP: {RideStatus.COMPLETED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}

ACTIVE_STATUSES: frozenset[RideStatus] = frozenset(
    {RideStatus.REQUESTED, RideStatus.ACCEPTED, RideStatus.PICKED_UP}
)


def ensure_transition(current: RideStatus, new_status: RideStatus) -> None:
    """Raise ``InvalidStateTransition`` unless *current* -> *new_status* is legal."""
    current = RideStatus(current)
    if new_status not in RIDE_TRANSITIONS.get(current, set()):
        raise InvalidStateTransition(
            f"Cannot transition from {current.value} to {new_status.value}"
        )


class RideType(str, enum.Enum):
    STANDARD = "STANDARD"
    POOL = "POOL"
    LUXURY = "LUXURY"


class PaymentMethod(str, enum.Enum):
    WALLET = "WALLET"
    CREDIT_CARD = "CREDIT_CARD"


class PaymentStatus(str, enum.Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
