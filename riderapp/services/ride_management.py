"""
Ride Lifecycle Engine
=====================

State machine
-------------
  request  ->  REQUESTED
  accept   :   REQUESTED -> ACCEPTED      (driver assigned, driver busy)
  start    :   ACCEPTED  -> PICKED_UP     (pickup time)
  complete :   PICKED_UP -> COMPLETED     (dropoff time, re-price, settle,
                                           credit driver, driver free)
  cancel   :   REQUESTED | ACCEPTED -> CANCELLED   (driver free)
  rate     :   COMPLETED, once, 1..5      (driver running average)

Concurrency safety
------------------
* Every operation on an existing ride holds ``ride:<id>`` for its whole
  unit of work, so two operations on the same ride never interleave.
* Wallet movements additionally hold ``passenger:<id>``; driver mutations
  hold ``driver:<id>``.  Order is always ride -> passenger -> driver and
  the commit happens inside the innermost lock.
* Driver rows loaded before their lock was taken are refreshed once the
  lock is held.

Notifications are scheduled only after the commit; they cannot roll a
transition back.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from riderapp.domain.entities import Driver, Location, Payment, Ride
from riderapp.domain.enums import (
    PaymentMethod,
    PaymentStatus,
    RideStatus,
    RideType,
    ensure_transition,
)
from riderapp.domain.exceptions import (
    DriverNotAvailable,
    DriverNotFound,
    InsufficientFunds,
    InvalidAmount,
    InvalidRating,
    InvalidStateTransition,
    PassengerNotFound,
    PaymentFailed,
    PaymentNotFound,
    RideNotFound,
    UnauthorizedRideAccess,
)
from riderapp.domain.matching import drivers_within, nearest_driver
from riderapp.domain.notifications import RideNotifier, RideObserver
from riderapp.domain.payment import PaymentStrategy, create_payment_strategy
from riderapp.domain.pricing import calculate_fare, compute_surge
from riderapp.domain.protocols import CardRail, GeoProvider, LockManager
from riderapp.infrastructure.locks import driver_lock, ride_lock, wallet_lock
from riderapp.infrastructure.mappers import (
    driver_to_entity,
    payment_to_entity,
    ride_to_entity,
)
from riderapp.infrastructure.models import DriverModel, PaymentModel, RideModel
from riderapp.infrastructure.repositories import (
    DriverRepository,
    PassengerRepository,
    PaymentRepository,
    RideRepository,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RideManagementSystem:
    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        geo: GeoProvider,
        card_rail: CardRail,
        locks: LockManager,
        notifier: Optional[RideNotifier] = None,
    ):
        self._session_factory = session_factory
        self.geo = geo
        self.card_rail = card_rail
        self.locks = locks
        self.notifier = notifier or RideNotifier()

    # ── Observers ─────────────────────────────────────────────────────

    def add_observer(self, observer: RideObserver) -> None:
        self.notifier.add_observer(observer)

    def remove_observer(self, observer: RideObserver) -> None:
        self.notifier.remove_observer(observer)

    # ── Request ───────────────────────────────────────────────────────

    async def request_ride_with_postcode(
        self,
        passenger_id: int,
        pickup_postcode: str,
        dropoff_postcode: str,
        ride_type: RideType = RideType.STANDARD,
        payment_method: PaymentMethod = PaymentMethod.WALLET,
        pickup_address: Optional[str] = None,
        dropoff_address: Optional[str] = None,
        idempotency_key: Optional[str] = None,
    ) -> Ride:
        """Geocode both postcodes, keep caller-supplied street addresses."""
        pickup = (await self.geo.resolve(pickup_postcode)).with_address(pickup_address)
        dropoff = (await self.geo.resolve(dropoff_postcode)).with_address(dropoff_address)
        return await self.request_ride(
            passenger_id, pickup, dropoff, ride_type, payment_method, idempotency_key
        )

    async def request_ride(
        self,
        passenger_id: int,
        pickup: Location,
        dropoff: Location,
        ride_type: RideType = RideType.STANDARD,
        payment_method: PaymentMethod = PaymentMethod.WALLET,
        idempotency_key: Optional[str] = None,
    ) -> Ride:
        ride_type = RideType(ride_type)
        payment_method = PaymentMethod(payment_method)

        async with self._session_factory() as session:
            rides = RideRepository(session)

            # ── Idempotency guard ─────────────────────────────────────
            if idempotency_key:
                existing = await rides.get_by_idempotency_key(idempotency_key)
                if existing:
                    return self._replayed(existing, passenger_id)

            passenger = await PassengerRepository(session).get_by_id(passenger_id)
            if passenger is None:
                raise PassengerNotFound(f"Passenger {passenger_id} not found")

            # Provider failures propagate here, before anything is stored
            distance = await self.geo.route_distance_km(pickup, dropoff)
            surge = compute_surge(await rides.count_active())

            model = RideModel(
                passenger=passenger,
                driver=None,
                pickup_lat=pickup.latitude,
                pickup_lng=pickup.longitude,
                pickup_address=pickup.address,
                pickup_postcode=pickup.postcode,
                dropoff_lat=dropoff.latitude,
                dropoff_lng=dropoff.longitude,
                dropoff_address=dropoff.address,
                dropoff_postcode=dropoff.postcode,
                request_time=_utcnow(),
                status=RideStatus.REQUESTED,
                ride_type=ride_type,
                payment_method=payment_method,
                distance_km=distance,
                surge_multiplier=surge,
                fare=calculate_fare(ride_type, distance, surge),
                idempotency_key=idempotency_key,
            )
            try:
                await rides.add(model)
                await session.commit()
            except IntegrityError:
                # Lost a race on the idempotency key
                await session.rollback()
                if not idempotency_key:
                    raise
                existing = await rides.get_by_idempotency_key(idempotency_key)
                if existing is None:
                    raise
                return self._replayed(existing, passenger_id)
            ride = ride_to_entity(model)

        logger.info(
            "Ride %d requested: %s %.2f km x%.1f surge, fare %.2f",
            ride.id, ride.ride_type.value, distance, surge, ride.fare,
        )
        self.notifier.notify(ride)
        return ride

    # ── Transitions ───────────────────────────────────────────────────

    async def accept_ride(self, ride_id: int, driver_id: int) -> Ride:
        async with self.locks.hold(ride_lock(ride_id), driver_lock(driver_id)):
            async with self._session_factory() as session:
                model = await self._load_ride(session, ride_id)
                ensure_transition(model.status, RideStatus.ACCEPTED)

                driver = await DriverRepository(session).get_by_id(driver_id)
                if driver is None:
                    raise DriverNotFound(f"Driver {driver_id} not found")
                on_ride = await RideRepository(session).driver_has_active_ride(driver_id)
                if not driver.available or on_ride:
                    raise DriverNotAvailable(f"Driver {driver_id} is not available")

                model.driver = driver
                model.status = RideStatus.ACCEPTED
                driver.available = False
                await session.commit()
                ride = ride_to_entity(model)

        logger.info("Ride %d accepted by driver %d", ride_id, driver_id)
        self.notifier.notify(ride)
        return ride

    async def start_ride(self, ride_id: int) -> Ride:
        async with self.locks.hold(ride_lock(ride_id)):
            async with self._session_factory() as session:
                model = await self._load_ride(session, ride_id)
                ensure_transition(model.status, RideStatus.PICKED_UP)
                model.status = RideStatus.PICKED_UP
                model.pickup_time = _utcnow()
                await session.commit()
                ride = ride_to_entity(model)

        logger.info("Ride %d started", ride_id)
        self.notifier.notify(ride)
        return ride

    async def complete_ride(self, ride_id: int) -> Ride:
        async with self.locks.hold(ride_lock(ride_id)):
            async with self._session_factory() as session:
                model = await self._load_ride(session, ride_id)
                ensure_transition(model.status, RideStatus.COMPLETED)

                fare = calculate_fare(
                    model.ride_type, model.distance_km, model.surge_multiplier
                )
                method = PaymentMethod(model.payment_method)
                keys = [wallet_lock(model.passenger_id)]
                if model.driver_id is not None:
                    keys.append(driver_lock(model.driver_id))

                async with self.locks.hold(*keys):
                    strategy = self._payment_strategy(session, model.passenger_id, method)
                    if not await strategy.process_payment(fare):
                        await session.rollback()
                        await self._record_failed_payment(session, ride_id, fare, strategy)
                        if method is PaymentMethod.WALLET:
                            raise InsufficientFunds(
                                f"Insufficient wallet balance for fare {fare:.2f}"
                            )
                        raise PaymentFailed(f"Card payment of {fare:.2f} was declined")

                    try:
                        now = _utcnow()
                        await PaymentRepository(session).add(PaymentModel(
                            ride_id=ride_id,
                            amount=fare,
                            payment_type=method,
                            status=PaymentStatus.COMPLETED,
                            timestamp=now,
                            transaction_id=strategy.transaction_id,
                        ))
                        model.fare = fare
                        model.dropoff_time = now
                        model.status = RideStatus.COMPLETED

                        driver = await self._locked_driver(session, model)
                        if driver is not None:
                            driver.earnings += fare
                            driver.available = True
                        await session.commit()
                    except Exception:
                        await session.rollback()
                        await self._reverse_charge(ride_id, fare, strategy)
                        raise
                    ride = ride_to_entity(model)

        logger.info("Ride %d completed, %s payment of %.2f", ride_id, method.value, fare)
        self.notifier.notify(ride)
        return ride

    async def cancel_ride(self, ride_id: int) -> Ride:
        """Operator cancel: allowed while REQUESTED or ACCEPTED."""
        async with self.locks.hold(ride_lock(ride_id)):
            async with self._session_factory() as session:
                model = await self._load_ride(session, ride_id)
                ride = await self._cancel(session, model)

        self.notifier.notify(ride)
        return ride

    async def cancel_ride_by_passenger(self, ride_id: int, passenger_id: int) -> Ride:
        """Passenger cancel: own ride only, and only before a driver accepts."""
        async with self.locks.hold(ride_lock(ride_id)):
            async with self._session_factory() as session:
                model = await self._load_ride(session, ride_id)
                if model.passenger_id != passenger_id:
                    raise UnauthorizedRideAccess(
                        f"Ride {ride_id} does not belong to passenger {passenger_id}"
                    )
                if model.status != RideStatus.REQUESTED:
                    raise InvalidStateTransition(
                        f"Cannot cancel ride {ride_id}: it is already {RideStatus(model.status).value}"
                    )
                ride = await self._cancel(session, model)

        self.notifier.notify(ride)
        return ride

    async def rate_ride(self, ride_id: int, rating: int) -> Ride:
        if not 1 <= rating <= 5:
            raise InvalidRating(f"Rating must be between 1 and 5, got {rating}")

        async with self.locks.hold(ride_lock(ride_id)):
            async with self._session_factory() as session:
                model = await self._load_ride(session, ride_id)
                if model.status != RideStatus.COMPLETED:
                    raise InvalidStateTransition(
                        f"Cannot rate ride {ride_id}: it is {RideStatus(model.status).value}"
                    )
                if model.rating is not None:
                    raise InvalidStateTransition(f"Ride {ride_id} has already been rated")

                model.rating = rating
                if model.driver_id is None:
                    await session.commit()
                    return ride_to_entity(model)

                async with self.locks.hold(driver_lock(model.driver_id)):
                    driver = await self._locked_driver(session, model)
                    rated = driver.total_rides or 0
                    driver.rating = (driver.rating * rated + rating) / (rated + 1)
                    driver.total_rides = rated + 1
                    await session.commit()
                    ride = ride_to_entity(model)

        logger.info("Ride %d rated %d stars", ride_id, rating)
        return ride

    # ── Refunds ───────────────────────────────────────────────────────

    async def refund_ride(self, ride_id: int, amount: Optional[float] = None) -> Payment:
        """Refund (all or part of) a ride's completed payment, once."""
        async with self.locks.hold(ride_lock(ride_id)):
            async with self._session_factory() as session:
                model = await self._load_ride(session, ride_id)
                payments = PaymentRepository(session)
                payment = await payments.get_for_ride(ride_id, PaymentStatus.COMPLETED)
                if payment is None:
                    if await payments.get_for_ride(ride_id) is None:
                        raise PaymentNotFound(f"No payment recorded for ride {ride_id}")
                    raise InvalidStateTransition(
                        f"Payment for ride {ride_id} cannot be refunded"
                    )

                amount = payment.amount if amount is None else amount
                if amount <= 0 or amount > payment.amount:
                    raise InvalidAmount(
                        f"Refund amount must be in (0, {payment.amount:.2f}], got {amount}"
                    )

                method = PaymentMethod(payment.payment_type)
                async with self.locks.hold(wallet_lock(model.passenger_id)):
                    strategy = self._payment_strategy(
                        session, model.passenger_id, method, payment.transaction_id
                    )
                    if not await strategy.refund_payment(amount):
                        raise PaymentFailed(f"Refund for ride {ride_id} was declined")
                    payment.status = PaymentStatus.REFUNDED
                    await session.commit()
                    refunded = payment_to_entity(payment)

        logger.info("Ride %d refunded %.2f via %s", ride_id, amount, method.value)
        return refunded

    # ── Queries ───────────────────────────────────────────────────────

    async def get_ride(self, ride_id: int) -> Ride:
        async with self._session_factory() as session:
            return ride_to_entity(await self._load_ride(session, ride_id))

    async def get_active_rides(self) -> list[Ride]:
        """Rides that are not yet COMPLETED or CANCELLED."""
        async with self._session_factory() as session:
            return [ride_to_entity(r) for r in await RideRepository(session).find_active()]

    async def get_rides_by_status(self, status: RideStatus) -> list[Ride]:
        async with self._session_factory() as session:
            rides = await RideRepository(session).find_by_status(RideStatus(status))
            return [ride_to_entity(r) for r in rides]

    async def get_passenger_rides(self, passenger_id: int) -> list[Ride]:
        async with self._session_factory() as session:
            if await PassengerRepository(session).get_by_id(passenger_id) is None:
                raise PassengerNotFound(f"Passenger {passenger_id} not found")
            rides = await RideRepository(session).find_by_passenger(passenger_id)
            return [ride_to_entity(r) for r in rides]

    async def get_driver_rides(self, driver_id: int) -> list[Ride]:
        async with self._session_factory() as session:
            if await DriverRepository(session).get_by_id(driver_id) is None:
                raise DriverNotFound(f"Driver {driver_id} not found")
            rides = await RideRepository(session).find_by_driver(driver_id)
            return [ride_to_entity(r) for r in rides]

    async def get_ride_payment(self, ride_id: int) -> Payment:
        async with self._session_factory() as session:
            await self._load_ride(session, ride_id)
            payment = await PaymentRepository(session).get_for_ride(ride_id)
            if payment is None:
                raise PaymentNotFound(f"No payment recorded for ride {ride_id}")
            return payment_to_entity(payment)

    async def get_passenger_payments(self, passenger_id: int) -> list[Payment]:
        async with self._session_factory() as session:
            if await PassengerRepository(session).get_by_id(passenger_id) is None:
                raise PassengerNotFound(f"Passenger {passenger_id} not found")
            payments = await PaymentRepository(session).find_by_passenger(passenger_id)
            return [payment_to_entity(p) for p in payments]

    async def find_nearest_driver(self, pickup: Location) -> Optional[Driver]:
        return nearest_driver(await self._available_drivers(), pickup)

    async def find_nearby_drivers(self, point: Location, radius_km: float) -> list[Driver]:
        return drivers_within(await self._available_drivers(), point, radius_km)

    # ── Internals ─────────────────────────────────────────────────────

    async def _available_drivers(self) -> list[Driver]:
        async with self._session_factory() as session:
            drivers = await DriverRepository(session).get_available()
            return [driver_to_entity(d) for d in drivers]

    def _replayed(self, existing: RideModel, passenger_id: int) -> Ride:
        """A repeated idempotency key returns the ride only to its owner."""
        if existing.passenger_id != passenger_id:
            raise UnauthorizedRideAccess(
                f"Idempotency key {existing.idempotency_key!r} belongs to another passenger"
            )
        return ride_to_entity(existing)

    async def _load_ride(self, session: AsyncSession, ride_id: int) -> RideModel:
        model = await RideRepository(session).get_by_id(ride_id)
        if model is None:
            raise RideNotFound(f"Ride {ride_id} not found")
        return model

    async def _locked_driver(
        self, session: AsyncSession, model: RideModel
    ) -> Optional[DriverModel]:
        """The ride's driver, re-read now that its lock is held."""
        driver = model.driver
        if driver is not None:
            await session.refresh(driver)
        return driver

    async def _cancel(self, session: AsyncSession, model: RideModel) -> Ride:
        ensure_transition(model.status, RideStatus.CANCELLED)
        model.status = RideStatus.CANCELLED

        keys = [driver_lock(model.driver_id)] if model.driver_id is not None else []
        async with self.locks.hold(*keys):
            driver = await self._locked_driver(session, model)
            if driver is not None:
                driver.available = True
            await session.commit()

        logger.info("Ride %d cancelled", model.id)
        return ride_to_entity(model)

    def _payment_strategy(
        self,
        session: AsyncSession,
        passenger_id: int,
        method: PaymentMethod,
        transaction_id: Optional[str] = None,
    ) -> PaymentStrategy:
        return create_payment_strategy(
            method,
            passenger_id=passenger_id,
            ledger=PassengerRepository(session),
            card_rail=self.card_rail,
            transaction_id=transaction_id,
        )

    async def _reverse_charge(
        self, ride_id: int, amount: float, strategy: PaymentStrategy
    ) -> None:
        """Undo a captured card charge whose completion could not be stored.

        Wallet debits ride on the session and are undone by its rollback.
        """
        if strategy.method is not PaymentMethod.CREDIT_CARD:
            return
        if await strategy.refund_payment(amount):
            logger.warning(
                "Refunded card charge %s of %.2f: ride %d could not be completed",
                strategy.transaction_id, amount, ride_id,
            )
        else:
            logger.error(
                "Card charge %s of %.2f for ride %d was captured but not refunded",
                strategy.transaction_id, amount, ride_id,
            )

    async def _record_failed_payment(
        self,
        session: AsyncSession,
        ride_id: int,
        amount: float,
        strategy: PaymentStrategy,
    ) -> None:
        logger.warning(
            "Payment of %.2f for ride %d failed (%s)", amount, ride_id, strategy.method.value
        )
        await PaymentRepository(session).add(PaymentModel(
            ride_id=ride_id,
            amount=amount,
            payment_type=strategy.method,
            status=PaymentStatus.FAILED,
            timestamp=_utcnow(),
            transaction_id=strategy.transaction_id,
        ))
        await session.commit()
