"""FastAPI dependency injection helpers."""

from fastapi import Request

from riderapp.services.accounts import AccountService
from riderapp.services.ride_management import RideManagementSystem


def get_ride_system(request: Request) -> RideManagementSystem:
    """The lifecycle engine built at startup (see ``app.lifespan``)."""
    return request.app.state.container.rides


def get_account_service(request: Request) -> AccountService:
    return request.app.state.container.accounts
