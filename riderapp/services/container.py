"""Wires the lifecycle engine and its collaborators from ``Settings``."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from riderapp.config import Settings
from riderapp.domain.notifications import (
    DriverNotifier,
    NotificationTransport,
    PassengerNotifier,
    RideNotifier,
)
from riderapp.infrastructure.card_rail import SimulatedCardRail, StripeCardRail
from riderapp.infrastructure.geocoding import GoogleMapsClient, OfflineGeoProvider
from riderapp.infrastructure.locks import LocalLockManager, RedisLockManager
from riderapp.infrastructure.notifications import LoggingTransport, RedisTransport
from riderapp.infrastructure.redis_client import create_redis
from riderapp.services.accounts import AccountService
from riderapp.services.ride_management import RideManagementSystem

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    rides: RideManagementSystem
    accounts: AccountService
    _closeables: list[Any] = field(default_factory=list)

    async def aclose(self) -> None:
        await self.rides.notifier.drain()
        for resource in self._closeables:
            await resource.aclose()


def build_container(
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> ServiceContainer:
    closeables: list[Any] = []
    redis = None
    if settings.lock_backend == "redis" or settings.notification_backend == "redis":
        redis = create_redis(settings.redis_url)
        closeables.append(redis)

    if settings.lock_backend == "redis":
        locks = RedisLockManager(
            redis, settings.lock_timeout_seconds, settings.lock_ttl_seconds
        )
    else:
        locks = LocalLockManager(settings.lock_timeout_seconds)

    if settings.google_maps_api_key:
        geo = GoogleMapsClient(
            settings.google_maps_api_key,
            settings.google_maps_base_url,
            settings.geo_timeout_seconds,
        )
    else:
        logger.warning("No Google Maps key configured; using haversine distances")
        geo = OfflineGeoProvider()
    closeables.append(geo)

    if settings.stripe_api_key:
        card_rail = StripeCardRail(
            settings.stripe_api_key,
            settings.stripe_base_url,
            settings.card_currency,
            settings.card_payment_method,
            settings.card_timeout_seconds,
        )
    else:
        logger.warning("No Stripe key configured; card payments are simulated")
        card_rail = SimulatedCardRail()
    closeables.append(card_rail)

    transport: NotificationTransport
    if settings.notification_backend == "redis":
        transport = RedisTransport(redis, settings.notification_channel)
    else:
        transport = LoggingTransport()
    notifier = RideNotifier([PassengerNotifier(transport), DriverNotifier(transport)])

    return ServiceContainer(
        rides=RideManagementSystem(session_factory, geo, card_rail, locks, notifier),
        accounts=AccountService(session_factory, locks),
        _closeables=closeables,
    )
