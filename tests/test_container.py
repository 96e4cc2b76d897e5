"""Tests for notification transports and service wiring."""

import json
import logging
from unittest.mock import AsyncMock

import pytest

from riderapp.config import Settings
from riderapp.domain.notifications import DriverNotifier, Notification, PassengerNotifier
from riderapp.infrastructure.card_rail import SimulatedCardRail, StripeCardRail
from riderapp.infrastructure.geocoding import GoogleMapsClient, OfflineGeoProvider
from riderapp.infrastructure.locks import LocalLockManager, RedisLockManager
from riderapp.infrastructure.notifications import LoggingTransport, RedisTransport
from riderapp.services.container import build_container

NOTIFICATION = Notification(
    audience="passenger",
    recipient_id=4,
    ride_id=9,
    event="ride_started",
    message="Your ride has started",
)


class TestTransports:
    @pytest.mark.asyncio
    async def test_logging_transport(self, caplog):
        with caplog.at_level(logging.INFO, logger="riderapp.infrastructure.notifications"):
            await LoggingTransport().send(NOTIFICATION)
        assert "Notification to passenger #4: Your ride has started" in caplog.text

    @pytest.mark.asyncio
    async def test_redis_transport_publishes_json(self):
        client = AsyncMock()
        await RedisTransport(client, "rides").send(NOTIFICATION)

        channel, payload = client.publish.await_args.args
        assert channel == "rides"
        assert json.loads(payload) == {
            "audience": "passenger",
            "recipient_id": 4,
            "ride_id": 9,
            "event": "ride_started",
            "message": "Your ride has started",
        }


class TestBuildContainer:
    @pytest.mark.asyncio
    async def test_offline_defaults(self, session_factory):
        container = build_container(Settings(_env_file=None), session_factory)
        rides = container.rides

        assert isinstance(rides.locks, LocalLockManager)
        assert isinstance(rides.geo, OfflineGeoProvider)
        assert isinstance(rides.card_rail, SimulatedCardRail)
        assert container.accounts.locks is rides.locks
        assert [type(o) for o in rides.notifier.observers] == [
            PassengerNotifier, DriverNotifier,
        ]
        transports = {type(o.transport) for o in rides.notifier.observers}
        assert transports == {LoggingTransport}
        await container.aclose()

    @pytest.mark.asyncio
    async def test_configured_providers(self, session_factory):
        settings = Settings(
            _env_file=None,
            google_maps_api_key="maps-key",
            stripe_api_key="sk_test",
            lock_backend="redis",
            notification_backend="redis",
        )
        container = build_container(settings, session_factory)
        rides = container.rides

        assert isinstance(rides.locks, RedisLockManager)
        assert isinstance(rides.geo, GoogleMapsClient)
        assert isinstance(rides.card_rail, StripeCardRail)
        assert isinstance(rides.notifier.observers[0].transport, RedisTransport)
        await container.aclose()
