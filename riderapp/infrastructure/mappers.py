"""ORM model -> domain entity conversion."""

from __future__ import annotations

from riderapp.domain.entities import Driver, Location, Passenger, Payment, Ride
from riderapp.domain.enums import PaymentMethod, PaymentStatus, RideStatus, RideType

from .models import DriverModel, PassengerModel, PaymentModel, RideModel


def ride_to_entity(model: RideModel) -> Ride:
    return Ride(
        id=model.id,
        passenger_id=model.passenger_id,
        driver_id=model.driver_id,
        passenger_name=model.passenger.name if model.passenger else None,
        driver_name=model.driver.name if model.driver else None,
        pickup=Location(
            model.pickup_lat, model.pickup_lng,
            model.pickup_address, model.pickup_postcode,
        ),
        dropoff=Location(
            model.dropoff_lat, model.dropoff_lng,
            model.dropoff_address, model.dropoff_postcode,
        ),
        status=RideStatus(model.status),
        ride_type=RideType(model.ride_type),
        payment_method=PaymentMethod(model.payment_method),
        request_time=model.request_time,
        pickup_time=model.pickup_time,
        dropoff_time=model.dropoff_time,
        fare=model.fare,
        distance_km=model.distance_km,
        surge_multiplier=model.surge_multiplier,
        rating=model.rating,
        idempotency_key=model.idempotency_key,
    )


def passenger_to_entity(model: PassengerModel) -> Passenger:
    return Passenger(
        id=model.id,
        name=model.name,
        email=model.email,
        wallet_balance=model.wallet_balance,
    )


def driver_to_entity(model: DriverModel) -> Driver:
    location = None
    if model.current_lat is not None and model.current_lng is not None:
        location = Location(model.current_lat, model.current_lng)
    return Driver(
        id=model.id,
        name=model.name,
        email=model.email,
        vehicle_number=model.vehicle_number,
        vehicle_type=model.vehicle_type,
        available=model.available,
        location=location,
        rating=model.rating,
        earnings=model.earnings,
        total_rides=model.total_rides,
    )


def payment_to_entity(model: PaymentModel) -> Payment:
    return Payment(
        id=model.id,
        ride_id=model.ride_id,
        amount=model.amount,
        payment_type=PaymentMethod(model.payment_type),
        status=PaymentStatus(model.status),
        timestamp=model.timestamp,
        transaction_id=model.transaction_id,
    )
