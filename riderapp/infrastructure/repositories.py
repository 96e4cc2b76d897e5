"""
Repository Pattern -- abstracts DB access so domain logic stays DB-agnostic.

Each repository receives an ``AsyncSession`` (unit-of-work) and exposes
domain-relevant queries only.  Nothing here commits: the caller owns the
transaction boundary.
"""

from __future__ import annotations

from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DriverModel, PassengerModel, PaymentModel, RideModel
from riderapp.domain.enums import ACTIVE_STATUSES, PaymentStatus, RideStatus


class RideRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, ride: RideModel) -> RideModel:
        self.session.add(ride)
        await self.session.flush()
        return ride

    async def get_by_id(self, ride_id: int) -> Optional[RideModel]:
        return await self.session.get(RideModel, ride_id)

    async def get_by_idempotency_key(self, key: str) -> Optional[RideModel]:
        result = await self.session.execute(
            select(RideModel).where(RideModel.idempotency_key == key)
        )
        return result.scalar_one_or_none()

    async def find_by_status(self, status: RideStatus) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.status == status)
            .order_by(RideModel.request_time, RideModel.id)
        )
        return list(result.scalars().all())

    async def find_active(self) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.status.in_(ACTIVE_STATUSES))
            .order_by(RideModel.request_time, RideModel.id)
        )
        return list(result.scalars().all())

    async def count_active(self) -> int:
        result = await self.session.execute(
            select(func.count())
            .select_from(RideModel)
            .where(RideModel.status.in_(ACTIVE_STATUSES))
        )
        return result.scalar() or 0

    async def driver_has_active_ride(self, driver_id: int) -> bool:
        result = await self.session.execute(
            select(RideModel.id)
            .where(RideModel.driver_id == driver_id)
            .where(RideModel.status.in_(ACTIVE_STATUSES))
            .limit(1)
        )
        return result.scalar_one_or_none() is not None

    async def find_by_passenger(self, passenger_id: int) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.passenger_id == passenger_id)
            .order_by(RideModel.request_time, RideModel.id)
        )
        return list(result.scalars().all())

    async def find_by_driver(self, driver_id: int) -> list[RideModel]:
        result = await self.session.execute(
            select(RideModel)
            .where(RideModel.driver_id == driver_id)
            .order_by(RideModel.request_time, RideModel.id)
        )
        return list(result.scalars().all())


class PaymentRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, payment: PaymentModel) -> PaymentModel:
        self.session.add(payment)
        await self.session.flush()
        return payment

    async def get_for_ride(
        self, ride_id: int, status: Optional[PaymentStatus] = None
    ) -> Optional[PaymentModel]:
        """Most recent payment for *ride_id*, optionally filtered by status."""
        query = select(PaymentModel).where(PaymentModel.ride_id == ride_id)
        if status is not None:
            query = query.where(PaymentModel.status == status)
        result = await self.session.execute(
            query.order_by(PaymentModel.id.desc()).limit(1)
        )
        return result.scalar_one_or_none()

    async def find_by_passenger(self, passenger_id: int) -> list[PaymentModel]:
        result = await self.session.execute(
            select(PaymentModel)
            .join(RideModel, PaymentModel.ride_id == RideModel.id)
            .where(RideModel.passenger_id == passenger_id)
            .order_by(PaymentModel.id)
        )
        return list(result.scalars().all())


class PassengerRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, passenger: PassengerModel) -> PassengerModel:
        self.session.add(passenger)
        await self.session.flush()
        return passenger

    async def get_by_id(self, passenger_id: int) -> Optional[PassengerModel]:
        return await self.session.get(PassengerModel, passenger_id)

    async def debit_wallet(self, passenger_id: int, amount: float) -> bool:
        """Conditional debit: succeeds only while balance >= amount."""
        result = await self.session.execute(
            update(PassengerModel)
            .where(
                PassengerModel.id == passenger_id,
                PassengerModel.wallet_balance >= amount,
            )
            .values(wallet_balance=PassengerModel.wallet_balance - amount)
        )
        return result.rowcount == 1

    async def credit_wallet(self, passenger_id: int, amount: float) -> None:
        await self.session.execute(
            update(PassengerModel)
            .where(PassengerModel.id == passenger_id)
            .values(wallet_balance=PassengerModel.wallet_balance + amount)
        )


class DriverRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def add(self, driver: DriverModel) -> DriverModel:
        self.session.add(driver)
        await self.session.flush()
        return driver

    async def get_by_id(self, driver_id: int) -> Optional[DriverModel]:
        return await self.session.get(DriverModel, driver_id)

    async def get_available(self) -> list[DriverModel]:
        """Available drivers in registration order."""
        result = await self.session.execute(
            select(DriverModel)
            .where(DriverModel.available.is_(True))
            .order_by(DriverModel.id)
        )
        return list(result.scalars().all())
