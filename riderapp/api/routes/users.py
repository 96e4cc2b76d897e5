"""
Passenger and driver endpoints
==============================

POST  /api/v1/passengers                        -- register a passenger
GET   /api/v1/passengers/{id}                   -- passenger profile
GET   /api/v1/passengers/{id}/wallet            -- wallet balance
POST  /api/v1/passengers/{id}/wallet/top-up     -- add funds
GET   /api/v1/passengers/{id}/payments          -- payment history

POST  /api/v1/drivers                           -- register a driver
GET   /api/v1/drivers/nearby?lat=&lng=&radius_km=
GET   /api/v1/drivers/nearest?lat=&lng=
GET   /api/v1/drivers/{id}                      -- driver profile
PATCH /api/v1/drivers/{id}/location             -- position update
PATCH /api/v1/drivers/{id}/availability         -- go online / offline
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request

from riderapp.api.dependencies import get_account_service, get_ride_system
from riderapp.api.middleware import limiter
from riderapp.api.schemas import (
    AvailabilityUpdateRequest,
    DriverCreateRequest,
    DriverResponse,
    LocationUpdateRequest,
    PassengerCreateRequest,
    PassengerResponse,
    PaymentResponse,
    TopUpRequest,
    WalletResponse,
)
from riderapp.config import settings
from riderapp.domain.entities import Location
from riderapp.services.accounts import AccountService
from riderapp.services.ride_management import RideManagementSystem

passengers_router = APIRouter(prefix="/passengers", tags=["passengers"])
drivers_router = APIRouter(prefix="/drivers", tags=["drivers"])

RATE = settings.rate_limit


# ── Passengers ────────────────────────────────────────────────────────


@passengers_router.post(
    "", status_code=201, response_model=PassengerResponse, summary="Register a passenger"
)
@limiter.limit(RATE)
async def register_passenger(
    request: Request,
    body: PassengerCreateRequest,
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.register_passenger(body.name, body.email, body.wallet_balance)


@passengers_router.get("/{passenger_id}", response_model=PassengerResponse)
@limiter.limit(RATE)
async def get_passenger(
    request: Request,
    passenger_id: int,
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.get_passenger(passenger_id)


@passengers_router.get("/{passenger_id}/wallet", response_model=WalletResponse)
@limiter.limit(RATE)
async def get_wallet(
    request: Request,
    passenger_id: int,
    accounts: AccountService = Depends(get_account_service),
):
    passenger = await accounts.get_passenger(passenger_id)
    return WalletResponse(passenger_id=passenger.id, wallet_balance=passenger.wallet_balance)


@passengers_router.post(
    "/{passenger_id}/wallet/top-up", response_model=WalletResponse, summary="Top up a wallet"
)
@limiter.limit(RATE)
async def top_up_wallet(
    request: Request,
    passenger_id: int,
    body: TopUpRequest,
    accounts: AccountService = Depends(get_account_service),
):
    passenger = await accounts.top_up_wallet(passenger_id, body.amount)
    return WalletResponse(passenger_id=passenger.id, wallet_balance=passenger.wallet_balance)


@passengers_router.get("/{passenger_id}/payments", response_model=list[PaymentResponse])
@limiter.limit(RATE)
async def get_passenger_payments(
    request: Request,
    passenger_id: int,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.get_passenger_payments(passenger_id)


# ── Drivers ───────────────────────────────────────────────────────────


@drivers_router.post(
    "", status_code=201, response_model=DriverResponse, summary="Register a driver"
)
@limiter.limit(RATE)
async def register_driver(
    request: Request,
    body: DriverCreateRequest,
    accounts: AccountService = Depends(get_account_service),
):
    location = None
    if body.current_lat is not None and body.current_lng is not None:
        location = Location(body.current_lat, body.current_lng)
    return await accounts.register_driver(
        body.name, body.email, body.vehicle_number, body.vehicle_type, location
    )


@drivers_router.get(
    "/nearby",
    response_model=list[DriverResponse],
    summary="Available drivers within a radius, nearest first",
)
@limiter.limit(RATE)
async def nearby_drivers(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(5.0, gt=0, le=50),
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.find_nearby_drivers(Location(lat, lng), radius_km)


@drivers_router.get(
    "/nearest",
    response_model=Optional[DriverResponse],
    summary="The closest available driver, or null",
)
@limiter.limit(RATE)
async def nearest_driver(
    request: Request,
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.find_nearest_driver(Location(lat, lng))


@drivers_router.get("/{driver_id}", response_model=DriverResponse)
@limiter.limit(RATE)
async def get_driver(
    request: Request,
    driver_id: int,
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.get_driver(driver_id)


@drivers_router.patch("/{driver_id}/location", response_model=DriverResponse)
@limiter.limit(RATE)
async def update_location(
    request: Request,
    driver_id: int,
    body: LocationUpdateRequest,
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.update_driver_location(driver_id, Location(body.lat, body.lng))


@drivers_router.patch("/{driver_id}/availability", response_model=DriverResponse)
@limiter.limit(RATE)
async def update_availability(
    request: Request,
    driver_id: int,
    body: AvailabilityUpdateRequest,
    accounts: AccountService = Depends(get_account_service),
):
    return await accounts.set_driver_availability(driver_id, body.available)
