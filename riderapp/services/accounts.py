"""Passenger and driver records: registration, wallet top-ups, driver
position and availability.  Shares the lifecycle engine's lock manager so
wallet and driver changes serialize with ride transitions."""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from riderapp.domain.entities import Driver, Location, Passenger
from riderapp.domain.exceptions import (
    DriverNotAvailable,
    DriverNotFound,
    InvalidAmount,
    PassengerNotFound,
    ValidationError,
)
from riderapp.domain.protocols import LockManager
from riderapp.infrastructure.locks import driver_lock, wallet_lock
from riderapp.infrastructure.mappers import driver_to_entity, passenger_to_entity
from riderapp.infrastructure.models import DriverModel, PassengerModel
from riderapp.infrastructure.repositories import (
    DriverRepository,
    PassengerRepository,
    RideRepository,
)

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        locks: LockManager,
    ):
        self._session_factory = session_factory
        self.locks = locks

    # ── Passengers ────────────────────────────────────────────────────

    async def register_passenger(
        self, name: str, email: str, wallet_balance: float = 0.0
    ) -> Passenger:
        if wallet_balance < 0:
            raise InvalidAmount("Initial wallet balance cannot be negative")
        async with self._session_factory() as session:
            model = PassengerModel(name=name, email=email, wallet_balance=wallet_balance)
            try:
                await PassengerRepository(session).add(model)
                await session.commit()
            except IntegrityError:
                raise ValidationError(f"Email {email} is already registered") from None
            logger.info("Registered passenger %d", model.id)
            return passenger_to_entity(model)

    async def get_passenger(self, passenger_id: int) -> Passenger:
        async with self._session_factory() as session:
            model = await PassengerRepository(session).get_by_id(passenger_id)
            if model is None:
                raise PassengerNotFound(f"Passenger {passenger_id} not found")
            return passenger_to_entity(model)

    async def top_up_wallet(self, passenger_id: int, amount: float) -> Passenger:
        if amount <= 0:
            raise InvalidAmount(f"Top-up amount must be positive, got {amount}")
        async with self.locks.hold(wallet_lock(passenger_id)):
            async with self._session_factory() as session:
                passengers = PassengerRepository(session)
                model = await passengers.get_by_id(passenger_id)
                if model is None:
                    raise PassengerNotFound(f"Passenger {passenger_id} not found")
                await passengers.credit_wallet(passenger_id, amount)
                await session.commit()
                await session.refresh(model)
                return passenger_to_entity(model)

    # ── Drivers ───────────────────────────────────────────────────────

    async def register_driver(
        self,
        name: str,
        email: str,
        vehicle_number: Optional[str] = None,
        vehicle_type: Optional[str] = None,
        location: Optional[Location] = None,
    ) -> Driver:
        async with self._session_factory() as session:
            model = DriverModel(
                name=name,
                email=email,
                vehicle_number=vehicle_number,
                vehicle_type=vehicle_type,
                available=True,
                current_lat=location.latitude if location else None,
                current_lng=location.longitude if location else None,
            )
            try:
                await DriverRepository(session).add(model)
                await session.commit()
            except IntegrityError:
                raise ValidationError(f"Email {email} is already registered") from None
            logger.info("Registered driver %d", model.id)
            return driver_to_entity(model)

    async def get_driver(self, driver_id: int) -> Driver:
        async with self._session_factory() as session:
            return driver_to_entity(await self._load_driver(session, driver_id))

    async def update_driver_location(self, driver_id: int, location: Location) -> Driver:
        async with self.locks.hold(driver_lock(driver_id)):
            async with self._session_factory() as session:
                model = await self._load_driver(session, driver_id)
                model.current_lat = location.latitude
                model.current_lng = location.longitude
                await session.commit()
                return driver_to_entity(model)

    async def set_driver_availability(self, driver_id: int, available: bool) -> Driver:
        async with self.locks.hold(driver_lock(driver_id)):
            async with self._session_factory() as session:
                model = await self._load_driver(session, driver_id)
                if available and await RideRepository(session).driver_has_active_ride(driver_id):
                    raise DriverNotAvailable(
                        f"Driver {driver_id} is on an active ride and cannot go available"
                    )
                model.available = available
                await session.commit()
                return driver_to_entity(model)

    async def _load_driver(self, session: AsyncSession, driver_id: int) -> DriverModel:
        model = await DriverRepository(session).get_by_id(driver_id)
        if model is None:
            raise DriverNotFound(f"Driver {driver_id} not found")
        return model
