"""
Ride endpoints
==============

POST  /api/v1/rides                                -- request a ride (coordinates)
POST  /api/v1/rides/request                        -- request a ride (postcodes)
GET   /api/v1/rides/active                         -- rides not yet completed / cancelled
GET   /api/v1/rides?status=                        -- rides in one status
GET   /api/v1/rides/passenger/{passenger_id}       -- a passenger's rides
GET   /api/v1/rides/driver/{driver_id}             -- a driver's rides
GET   /api/v1/rides/{ride_id}                      -- one ride
PATCH /api/v1/rides/{ride_id}/accept?driver_id=    -- driver accepts
PATCH /api/v1/rides/{ride_id}/start                -- passenger picked up
PATCH /api/v1/rides/{ride_id}/complete             -- drop off + settle payment
PATCH /api/v1/rides/{ride_id}/cancel               -- operator cancel
PATCH /api/v1/rides/{ride_id}/cancel-by-passenger?passenger_id=
POST  /api/v1/rides/{ride_id}/rate?rating=
POST  /api/v1/rides/{ride_id}/refund
GET   /api/v1/rides/{ride_id}/payment
"""

from typing import Optional

from fastapi import APIRouter, Body, Depends, Query, Request

from riderapp.api.dependencies import get_ride_system
from riderapp.api.middleware import limiter
from riderapp.api.schemas import (
    PaymentResponse,
    PostcodeRideRequest,
    RefundRequest,
    RideCreateRequest,
    RideResponse,
)
from riderapp.config import settings
from riderapp.domain.enums import RideStatus
from riderapp.services.ride_management import RideManagementSystem

router = APIRouter(prefix="/rides", tags=["rides"])

RATE = settings.rate_limit


@router.post(
    "",
    status_code=201,
    response_model=RideResponse,
    summary="Request a ride between two coordinates",
)
@limiter.limit(RATE)
async def create_ride(
    request: Request,
    body: RideCreateRequest,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.request_ride(
        body.passenger_id,
        body.pickup(),
        body.dropoff(),
        body.ride_type,
        body.payment_method,
        idempotency_key=body.idempotency_key,
    )


@router.post(
    "/request",
    status_code=201,
    response_model=RideResponse,
    summary="Request a ride between two postcodes",
    description="Both postcodes are geocoded; street addresses, when given, replace the geocoded ones.",
)
@limiter.limit(RATE)
async def request_ride_by_postcode(
    request: Request,
    body: PostcodeRideRequest,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.request_ride_with_postcode(
        body.passenger_id,
        body.pickup_postcode,
        body.dropoff_postcode,
        body.ride_type,
        body.payment_method,
        pickup_address=body.pickup_address,
        dropoff_address=body.dropoff_address,
        idempotency_key=body.idempotency_key,
    )


@router.get("/active", response_model=list[RideResponse], summary="List active rides")
@limiter.limit(RATE)
async def get_active_rides(
    request: Request,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.get_active_rides()


@router.get("", response_model=list[RideResponse], summary="List rides by status")
@limiter.limit(RATE)
async def get_rides_by_status(
    request: Request,
    status: RideStatus = Query(RideStatus.REQUESTED),
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.get_rides_by_status(status)


@router.get(
    "/passenger/{passenger_id}",
    response_model=list[RideResponse],
    summary="List a passenger's rides",
)
@limiter.limit(RATE)
async def get_passenger_rides(
    request: Request,
    passenger_id: int,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.get_passenger_rides(passenger_id)


@router.get(
    "/driver/{driver_id}",
    response_model=list[RideResponse],
    summary="List a driver's rides",
)
@limiter.limit(RATE)
async def get_driver_rides(
    request: Request,
    driver_id: int,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.get_driver_rides(driver_id)


@router.get("/{ride_id}", response_model=RideResponse, summary="Get one ride")
@limiter.limit(RATE)
async def get_ride(
    request: Request,
    ride_id: int,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.get_ride(ride_id)


@router.patch("/{ride_id}/accept", response_model=RideResponse, summary="Accept a ride")
@limiter.limit(RATE)
async def accept_ride(
    request: Request,
    ride_id: int,
    driver_id: int = Query(...),
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.accept_ride(ride_id, driver_id)


@router.patch("/{ride_id}/start", response_model=RideResponse, summary="Start a ride")
@limiter.limit(RATE)
async def start_ride(
    request: Request,
    ride_id: int,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.start_ride(ride_id)


@router.patch(
    "/{ride_id}/complete",
    response_model=RideResponse,
    summary="Complete a ride and settle payment",
    responses={402: {"description": "Wallet balance is below the fare."}},
)
@limiter.limit(RATE)
async def complete_ride(
    request: Request,
    ride_id: int,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.complete_ride(ride_id)


@router.patch(
    "/{ride_id}/cancel",
    response_model=RideResponse,
    summary="Cancel a ride",
    description="Transitions a REQUESTED or ACCEPTED ride to CANCELLED and frees its driver.",
)
@limiter.limit(RATE)
async def cancel_ride(
    request: Request,
    ride_id: int,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.cancel_ride(ride_id)


@router.patch(
    "/{ride_id}/cancel-by-passenger",
    response_model=RideResponse,
    summary="Cancel your own ride before it is accepted",
)
@limiter.limit(RATE)
async def cancel_ride_by_passenger(
    request: Request,
    ride_id: int,
    passenger_id: int = Query(...),
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.cancel_ride_by_passenger(ride_id, passenger_id)


@router.post("/{ride_id}/rate", response_model=RideResponse, summary="Rate a completed ride")
@limiter.limit(RATE)
async def rate_ride(
    request: Request,
    ride_id: int,
    rating: int = Query(..., ge=1, le=5),
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.rate_ride(ride_id, rating)


@router.post(
    "/{ride_id}/refund",
    response_model=PaymentResponse,
    summary="Refund a completed ride's payment",
)
@limiter.limit(RATE)
async def refund_ride(
    request: Request,
    ride_id: int,
    body: Optional[RefundRequest] = Body(None),
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.refund_ride(ride_id, body.amount if body else None)


@router.get("/{ride_id}/payment", response_model=PaymentResponse, summary="Get a ride's payment")
@limiter.limit(RATE)
async def get_ride_payment(
    request: Request,
    ride_id: int,
    system: RideManagementSystem = Depends(get_ride_system),
):
    return await system.get_ride_payment(ride_id)
