"""
Seed script -- populates the database with sample data for reviewers.

Run after migrations:
    python seed.py

Creates:
  - 6 sample passengers with funded wallets
  - 8 sample drivers (spread around central London)
  - 5 sample rides driven through the lifecycle engine
    (REQUESTED, ACCEPTED, PICKED_UP, COMPLETED + rated, CANCELLED)

External providers are replaced by their offline counterparts so the
script runs without API keys.
"""

import asyncio

from sqlalchemy import text

from riderapp.domain.entities import Location
from riderapp.domain.enums import PaymentMethod, RideType
from riderapp.infrastructure.card_rail import SimulatedCardRail
from riderapp.infrastructure.database import async_session_factory, engine
from riderapp.infrastructure.geocoding import OfflineGeoProvider
from riderapp.infrastructure.locks import LocalLockManager
from riderapp.services.accounts import AccountService
from riderapp.services.ride_management import RideManagementSystem

# Trafalgar Square (approx)
CENTRE_LAT, CENTRE_LNG = 51.5080, -0.1281


PASSENGERS = [
    {"name": "Oliver Smith", "email": "oliver@example.com", "wallet": 80.0},
    {"name": "Amelia Jones", "email": "amelia@example.com", "wallet": 120.0},
    {"name": "Harry Taylor", "email": "harry@example.com", "wallet": 45.0},
    {"name": "Isla Brown", "email": "isla@example.com", "wallet": 60.0},
    {"name": "Jack Wilson", "email": "jack@example.com", "wallet": 10.0},
    {"name": "Ava Davies", "email": "ava@example.com", "wallet": 200.0},
]

DRIVERS = [
    {"name": "Noah Evans", "vehicle": "LX21 ABC", "type": "Sedan", "lat": 51.5090, "lng": -0.1270},
    {"name": "Mia Thomas", "vehicle": "LX19 DEF", "type": "Sedan", "lat": 51.5070, "lng": -0.1300},
    {"name": "Leo Roberts", "vehicle": "LB70 GHI", "type": "Hatchback", "lat": 51.5110, "lng": -0.1200},
    {"name": "Ella Walker", "vehicle": "LD68 JKL", "type": "Executive", "lat": 51.5000, "lng": -0.1250},
    {"name": "George Wright", "vehicle": "LC20 MNO", "type": "MPV", "lat": 51.5150, "lng": -0.1420},
    {"name": "Lily Hughes", "vehicle": "LE71 PQR", "type": "Sedan", "lat": 51.5200, "lng": -0.1050},
    {"name": "Freddie Green", "vehicle": "LF22 STU", "type": "Executive", "lat": 51.4950, "lng": -0.1450},
    {"name": "Grace Hall", "vehicle": "LG18 VWX", "type": "Hatchback", "lat": 51.5300, "lng": -0.1230},
]

DESTINATIONS = {
    "Kings Cross": Location(51.5308, -0.1238, "Euston Rd, London N1C 4QP"),
    "Tower Bridge": Location(51.5055, -0.0754, "Tower Bridge Rd, London SE1 2UP"),
    "Paddington": Location(51.5154, -0.1755, "Praed St, London W2 1HQ"),
    "Canary Wharf": Location(51.5054, -0.0235, "Canada Square, London E14 5AB"),
    "Camden": Location(51.5390, -0.1426, "Camden High St, London NW1 8QP"),
}


async def seed():
    async with async_session_factory() as session:
        # Check if already seeded
        result = await session.execute(text("SELECT count(*) FROM passengers"))
        if result.scalar() > 0:
            print("Database already seeded. Skipping.")
            return

    locks = LocalLockManager()
    accounts = AccountService(async_session_factory, locks)
    system = RideManagementSystem(
        async_session_factory, OfflineGeoProvider(), SimulatedCardRail(), locks
    )

    # ── Passengers ────────────────────────────────────────────────────
    passengers = [
        await accounts.register_passenger(p["name"], p["email"], p["wallet"])
        for p in PASSENGERS
    ]
    print(f"  Created {len(passengers)} passengers")

    # ── Drivers ───────────────────────────────────────────────────────
    drivers = []
    for d in DRIVERS:
        email = d["name"].split()[0].lower() + "@drivers.example.com"
        drivers.append(await accounts.register_driver(
            d["name"], email, d["vehicle"], d["type"], Location(d["lat"], d["lng"])
        ))
    print(f"  Created {len(drivers)} drivers")

    # ── Rides ─────────────────────────────────────────────────────────
    centre = Location(CENTRE_LAT, CENTRE_LNG, "Trafalgar Square, London WC2N 5DN")

    # Waiting for a driver
    await system.request_ride(
        passengers[0].id, centre, DESTINATIONS["Kings Cross"], RideType.STANDARD
    )

    # Accepted by the nearest driver
    ride = await system.request_ride(
        passengers[1].id, centre, DESTINATIONS["Tower Bridge"], RideType.LUXURY,
        PaymentMethod.CREDIT_CARD,
    )
    nearest = await system.find_nearest_driver(centre)
    await system.accept_ride(ride.id, nearest.id)

    # On the way
    ride = await system.request_ride(
        passengers[2].id, centre, DESTINATIONS["Paddington"], RideType.POOL
    )
    await system.accept_ride(ride.id, drivers[2].id)
    await system.start_ride(ride.id)

    # Finished, paid from the wallet and rated
    ride = await system.request_ride(
        passengers[5].id, centre, DESTINATIONS["Canary Wharf"], RideType.STANDARD
    )
    await system.accept_ride(ride.id, drivers[3].id)
    await system.start_ride(ride.id)
    await system.complete_ride(ride.id)
    await system.rate_ride(ride.id, 5)

    # Cancelled by the passenger before anyone accepted
    ride = await system.request_ride(
        passengers[3].id, centre, DESTINATIONS["Camden"], RideType.STANDARD
    )
    await system.cancel_ride_by_passenger(ride.id, passengers[3].id)
    print("  Created 5 rides")

    await system.notifier.drain()
    print("\nSeed complete!")


async def main():
    print("Seeding database...")
    await seed()
    await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
