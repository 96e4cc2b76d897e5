"""
FastAPI application factory.

* Registers routes for rides, passengers / drivers and admin.
* Builds the lifecycle engine and its collaborators on startup and closes
  them (after draining pending notifications) on shutdown.
* Maps the domain exception hierarchy onto HTTP status codes.
* Applies rate-limiting middleware.
* Swagger / OpenAPI UI available at ``/docs``.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from riderapp.api.middleware import limiter
from riderapp.api.routes import admin, rides, users
from riderapp.config import settings
from riderapp.domain.exceptions import (
    DriverNotAvailable,
    ExternalProviderFailure,
    InsufficientFunds,
    InvalidStateTransition,
    LockTimeout,
    NotFoundError,
    RideShareError,
    UnauthorizedRideAccess,
    ValidationError,
)
from riderapp.infrastructure.database import async_session_factory, engine
from riderapp.services.container import build_container

logging.basicConfig(level=settings.log_level)

# Most specific first; the first matching class wins
ERROR_STATUS: list[tuple[type[RideShareError], int]] = [
    (NotFoundError, 404),
    (InvalidStateTransition, 409),
    (DriverNotAvailable, 409),
    (UnauthorizedRideAccess, 403),
    (InsufficientFunds, 402),
    (ValidationError, 422),
    (ExternalProviderFailure, 502),
    (LockTimeout, 503),
]


def status_for(exc: RideShareError) -> int:
    for exc_type, status in ERROR_STATUS:
        if isinstance(exc, exc_type):
            return status
    return 400


async def ride_share_error_handler(request: Request, exc: RideShareError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content={"detail": exc.message})


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service container on startup; close it on shutdown."""
    app.state.container = build_container(settings, async_session_factory)
    yield
    await app.state.container.aclose()
    await engine.dispose()


def create_app() -> FastAPI:
    app = FastAPI(
        title="Ride Management API",
        description=(
            "Ride-hailing lifecycle: request, accept, start, complete or "
            "cancel rides; per-type fares with load-based surge; wallet and "
            "card settlement; passenger and driver notifications."
        ),
        version="1.0.0",
        lifespan=lifespan,
    )

    # Rate limiter
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
    app.add_exception_handler(RideShareError, ride_share_error_handler)

    # Routers
    app.include_router(rides.router, prefix="/api/v1")
    app.include_router(users.passengers_router, prefix="/api/v1")
    app.include_router(users.drivers_router, prefix="/api/v1")
    app.include_router(admin.router, prefix="/api/v1")

    return app
