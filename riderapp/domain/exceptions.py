"""Exception hierarchy for ride management.

Every failure the lifecycle engine reports is a ``RideShareError``; the API
layer maps each family onto an HTTP status code.
"""


class RideShareError(Exception):
    """Base exception for all ride management errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


# ── Not found ─────────────────────────────────────────────────────────


class NotFoundError(RideShareError):
    """A referenced ride, user or payment does not exist."""


class RideNotFound(NotFoundError):
    pass


class DriverNotFound(NotFoundError):
    pass


class PassengerNotFound(NotFoundError):
    pass


class PaymentNotFound(NotFoundError):
    pass


# ── Lifecycle ─────────────────────────────────────────────────────────


class InvalidStateTransition(RideShareError):
    """Raised when a ride status change violates the state machine."""


class DriverNotAvailable(RideShareError):
    """Raised when a driver who is already busy tries to accept a ride."""


class UnauthorizedRideAccess(RideShareError):
    """Raised when a passenger acts on a ride that is not theirs."""


# ── Payment ───────────────────────────────────────────────────────────


class InsufficientFunds(RideShareError):
    """Wallet balance is below the amount to be debited."""


# ── External providers ────────────────────────────────────────────────


class ExternalProviderFailure(RideShareError):
    """A geocoding, routing or card-rail call failed or was rejected."""


class GeocodingError(ExternalProviderFailure):
    pass


class RoutingError(ExternalProviderFailure):
    pass


class CardRailError(ExternalProviderFailure):
    """Transport or HTTP failure talking to the card rail."""


class PaymentFailed(ExternalProviderFailure):
    """The card rail declined or could not process a charge or refund."""


# ── Validation / contention ───────────────────────────────────────────


class ValidationError(RideShareError):
    pass


class InvalidRating(ValidationError):
    pass


class InvalidAmount(ValidationError):
    pass


class LockTimeout(RideShareError):
    """A per-entity lock could not be acquired in time."""
