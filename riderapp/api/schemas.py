"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from riderapp.domain.entities import Location
from riderapp.domain.enums import PaymentMethod, PaymentStatus, RideStatus, RideType


# ── Requests ──────────────────────────────────────────────────────────


class RideCreateRequest(BaseModel):
    passenger_id: int
    pickup_lat: float = Field(..., ge=-90, le=90)
    pickup_lng: float = Field(..., ge=-180, le=180)
    pickup_address: Optional[str] = Field(None, max_length=255)
    dropoff_lat: float = Field(..., ge=-90, le=90)
    dropoff_lng: float = Field(..., ge=-180, le=180)
    dropoff_address: Optional[str] = Field(None, max_length=255)
    ride_type: RideType = RideType.STANDARD
    payment_method: PaymentMethod = PaymentMethod.WALLET
    idempotency_key: Optional[str] = Field(
        None,
        max_length=64,
        description="Client-generated UUID to prevent double-booking on retries.",
    )

    def pickup(self) -> Location:
        return Location(self.pickup_lat, self.pickup_lng, self.pickup_address)

    def dropoff(self) -> Location:
        return Location(self.dropoff_lat, self.dropoff_lng, self.dropoff_address)


class PostcodeRideRequest(BaseModel):
    passenger_id: int
    pickup_postcode: str = Field(..., min_length=1, max_length=20)
    pickup_address: Optional[str] = Field(None, max_length=255)
    dropoff_postcode: str = Field(..., min_length=1, max_length=20)
    dropoff_address: Optional[str] = Field(None, max_length=255)
    ride_type: RideType = RideType.STANDARD
    payment_method: PaymentMethod = PaymentMethod.WALLET
    idempotency_key: Optional[str] = Field(None, max_length=64)


class RefundRequest(BaseModel):
    amount: Optional[float] = Field(None, gt=0, description="Defaults to the full fare.")


class PassengerCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    wallet_balance: float = Field(0.0, ge=0)


class DriverCreateRequest(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    vehicle_number: Optional[str] = Field(None, max_length=20)
    vehicle_type: Optional[str] = Field(None, max_length=40)
    current_lat: Optional[float] = Field(None, ge=-90, le=90)
    current_lng: Optional[float] = Field(None, ge=-180, le=180)


class TopUpRequest(BaseModel):
    amount: float = Field(..., gt=0)


class LocationUpdateRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class AvailabilityUpdateRequest(BaseModel):
    available: bool


# ── Responses ─────────────────────────────────────────────────────────


class LocationResponse(BaseModel):
    latitude: float
    longitude: float
    address: Optional[str] = None
    postcode: Optional[str] = None

    model_config = {"from_attributes": True}


class RideResponse(BaseModel):
    id: int
    passenger_id: int
    passenger_name: Optional[str] = None
    driver_id: Optional[int] = None
    driver_name: Optional[str] = None
    pickup: LocationResponse
    dropoff: LocationResponse
    status: RideStatus
    ride_type: RideType
    payment_method: PaymentMethod
    request_time: Optional[datetime] = None
    pickup_time: Optional[datetime] = None
    dropoff_time: Optional[datetime] = None
    fare: float
    distance_km: float
    surge_multiplier: float
    rating: Optional[int] = None

    model_config = {"from_attributes": True}


class PaymentResponse(BaseModel):
    id: int
    ride_id: int
    amount: float
    payment_type: PaymentMethod
    status: PaymentStatus
    timestamp: datetime
    transaction_id: Optional[str] = None

    model_config = {"from_attributes": True}


class PassengerResponse(BaseModel):
    id: int
    name: str
    email: str
    wallet_balance: float

    model_config = {"from_attributes": True}


class WalletResponse(BaseModel):
    passenger_id: int
    wallet_balance: float


class DriverResponse(BaseModel):
    id: int
    name: str
    email: str
    vehicle_number: Optional[str] = None
    vehicle_type: Optional[str] = None
    available: bool
    location: Optional[LocationResponse] = None
    rating: float
    earnings: float
    total_rides: int

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
