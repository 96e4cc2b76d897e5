"""
Shared test fixtures.

Uses an in-memory SQLite database (via aiosqlite) so tests run without
Docker / PostgreSQL / Redis.  A single connection is shared through
``StaticPool`` so every session sees the same database; each test gets a
fresh engine.

External providers (geocoding / routing, card rail, notification
transport) are replaced by in-process fakes that record what they were
asked to do.
"""

from typing import AsyncGenerator, Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from riderapp.domain.entities import Location
from riderapp.domain.exceptions import CardRailError, GeocodingError, RoutingError
from riderapp.domain.notifications import (
    DriverNotifier,
    Notification,
    NotificationTransport,
    PassengerNotifier,
    RideNotifier,
)
from riderapp.domain.protocols import CardCharge
from riderapp.infrastructure.database import Base
from riderapp.infrastructure.locks import LocalLockManager
from riderapp.services.accounts import AccountService
from riderapp.services.ride_management import RideManagementSystem

# Registers the ORM tables on Base.metadata
import riderapp.infrastructure.models  # noqa: F401


TEST_DB_URL = "sqlite+aiosqlite:///:memory:"

# Central London
TRAFALGAR = Location(51.5080, -0.1281, "Trafalgar Square")
KINGS_CROSS = Location(51.5308, -0.1238, "Kings Cross")


# ── Fakes ─────────────────────────────────────────────────────────────


class FakeGeoProvider:
    """Fixed road distance; postcodes resolved from a lookup table."""

    def __init__(self, distance_km: float = 10.0):
        self.distance_km = distance_km
        self.places: dict[str, Location] = {}
        self.fail_routing = False
        self.routed: list[tuple[Location, Location]] = []

    async def resolve(self, query: str) -> Location:
        if query not in self.places:
            raise GeocodingError(f"Could not geocode {query!r}: ZERO_RESULTS")
        return self.places[query]

    async def route_distance_km(self, origin: Location, destination: Location) -> float:
        if self.fail_routing:
            raise RoutingError("Distance lookup failed: OVER_QUERY_LIMIT")
        self.routed.append((origin, destination))
        return self.distance_km


class FakeCardRail:
    def __init__(self):
        self.charges: list[float] = []
        self.refunds: list[tuple[str, float]] = []
        self.charge_status = "succeeded"
        self.refund_status = "succeeded"
        self.unreachable = False

    async def charge(self, amount: float) -> CardCharge:
        if self.unreachable:
            raise CardRailError("Card rail unreachable: connection refused")
        self.charges.append(amount)
        return CardCharge(id=f"pi_{len(self.charges)}", status=self.charge_status)

    async def refund(self, transaction_id: str, amount: float) -> str:
        if self.unreachable:
            raise CardRailError("Card rail unreachable: connection refused")
        self.refunds.append((transaction_id, amount))
        return self.refund_status


class RecordingTransport(NotificationTransport):
    def __init__(self):
        self.sent: list[Notification] = []

    async def send(self, notification: Notification) -> None:
        self.sent.append(notification)

    def events(self, audience: Optional[str] = None) -> list[str]:
        return [n.event for n in self.sent if audience in (None, n.audience)]


# ── Fixtures ──────────────────────────────────────────────────────────


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Create tables on a fresh in-memory database, yield a session factory."""
    engine = create_async_engine(
        TEST_DB_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def geo() -> FakeGeoProvider:
    return FakeGeoProvider()


@pytest.fixture
def card_rail() -> FakeCardRail:
    return FakeCardRail()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def locks() -> LocalLockManager:
    return LocalLockManager(timeout_seconds=2.0)


@pytest_asyncio.fixture
async def ride_system(session_factory, geo, card_rail, locks, transport):
    notifier = RideNotifier([PassengerNotifier(transport), DriverNotifier(transport)])
    system = RideManagementSystem(session_factory, geo, card_rail, locks, notifier)
    yield system
    await system.notifier.drain()


@pytest.fixture
def accounts(session_factory, locks) -> AccountService:
    return AccountService(session_factory, locks)


@pytest_asyncio.fixture
async def passenger(accounts):
    return await accounts.register_passenger("Alice", "alice@example.com", 100.0)


@pytest_asyncio.fixture
async def driver(accounts):
    return await accounts.register_driver(
        "Bob", "bob@example.com", "LX21 ABC", "Sedan", Location(51.5090, -0.1270)
    )
