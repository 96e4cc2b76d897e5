"""
SQLAlchemy ORM models  (PostgreSQL).

Tables
------
* ``passengers`` -- riders and their wallet balance
* ``drivers``    -- drivers, availability, last position, earnings, rating
* ``rides``      -- one row per ride, never deleted
* ``payments``   -- append-only settlement records

Indexes
-------
* **B-Tree** on ``rides.status``, ``rides.passenger_id``, ``rides.driver_id``,
  ``rides.idempotency_key``, ``drivers.available`` and ``payments.ride_id``
  for the look-ups used by the lifecycle engine and API.
"""

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy.orm import relationship

from .database import Base
from riderapp.domain.enums import PaymentMethod, PaymentStatus, RideStatus, RideType


class PassengerModel(Base):
    __tablename__ = "passengers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    wallet_balance = Column(Float, default=0.0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("wallet_balance >= 0", name="wallet_nonneg"),
    )


class DriverModel(Base):
    __tablename__ = "drivers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), unique=True, nullable=False)
    vehicle_number = Column(String(20), nullable=True)
    vehicle_type = Column(String(40), nullable=True)
    available = Column(Boolean, default=True, nullable=False)

    # Last reported position; NULL until the driver app reports one
    current_lat = Column(Float, nullable=True)
    current_lng = Column(Float, nullable=True)

    rating = Column(Float, default=0.0, nullable=False)
    earnings = Column(Float, default=0.0, nullable=False)
    total_rides = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        Index("idx_drivers_available", "available"),
    )


class RideModel(Base):
    __tablename__ = "rides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    passenger_id = Column(Integer, ForeignKey("passengers.id"), nullable=False)
    driver_id = Column(Integer, ForeignKey("drivers.id"), nullable=True)

    pickup_lat = Column(Float, nullable=False)
    pickup_lng = Column(Float, nullable=False)
    pickup_address = Column(String(255), nullable=True)
    pickup_postcode = Column(String(20), nullable=True)
    dropoff_lat = Column(Float, nullable=False)
    dropoff_lng = Column(Float, nullable=False)
    dropoff_address = Column(String(255), nullable=True)
    dropoff_postcode = Column(String(20), nullable=True)

    request_time = Column(DateTime(timezone=True), nullable=False)
    pickup_time = Column(DateTime(timezone=True), nullable=True)
    dropoff_time = Column(DateTime(timezone=True), nullable=True)

    status = Column(Enum(RideStatus), default=RideStatus.REQUESTED, nullable=False)
    ride_type = Column(Enum(RideType), default=RideType.STANDARD, nullable=False)
    payment_method = Column(Enum(PaymentMethod), nullable=False)

    fare = Column(Float, nullable=False)
    distance_km = Column(Float, nullable=False)
    surge_multiplier = Column(Float, default=1.0, nullable=False)
    rating = Column(Integer, nullable=True)
    idempotency_key = Column(String(64), unique=True, nullable=True)

    passenger = relationship(PassengerModel, lazy="joined")
    driver = relationship(DriverModel, lazy="joined")

    __table_args__ = (
        Index("idx_rides_status", "status"),
        Index("idx_rides_passenger", "passenger_id"),
        Index("idx_rides_driver", "driver_id"),
        Index("idx_rides_idempotency", "idempotency_key"),
    )


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ride_id = Column(Integer, ForeignKey("rides.id"), nullable=False)
    amount = Column(Float, nullable=False)
    payment_type = Column(Enum(PaymentMethod), nullable=False)
    status = Column(Enum(PaymentStatus), default=PaymentStatus.PENDING, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    transaction_id = Column(String(64), nullable=True)

    __table_args__ = (
        Index("idx_payments_ride", "ride_id"),
    )
