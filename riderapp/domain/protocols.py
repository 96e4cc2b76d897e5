"""Interfaces for the collaborators the lifecycle engine depends on."""

from __future__ import annotations

from contextlib import AbstractAsyncContextManager
from dataclasses import dataclass
from typing import Protocol, runtime_checkable

from .entities import Location


@runtime_checkable
class GeoProvider(Protocol):
    """
    Responsibilities:
      • Resolve a postcode or free-form address to coordinates.
      • Compute road distance between two points, in km.
    Both raise an ``ExternalProviderFailure`` subclass on failure.
    """

    async def resolve(self, query: str) -> Location: ...
    async def route_distance_km(self, origin: Location, destination: Location) -> float: ...


@dataclass(frozen=True)
class CardCharge:
    id: str
    status: str


@runtime_checkable
class CardRail(Protocol):
    """Authorize-and-capture card payments; raise ``CardRailError`` on failure."""

    async def charge(self, amount: float) -> CardCharge: ...
    async def refund(self, transaction_id: str, amount: float) -> str: ...


@runtime_checkable
class WalletLedger(Protocol):
    async def debit_wallet(self, passenger_id: int, amount: float) -> bool: ...
    async def credit_wallet(self, passenger_id: int, amount: float) -> None: ...


@runtime_checkable
class LockManager(Protocol):
    """Hold one or more named locks, acquired in the order given."""

    def hold(self, *keys: str) -> AbstractAsyncContextManager[None]: ...
