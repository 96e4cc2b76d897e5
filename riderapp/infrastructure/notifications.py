"""Notification transports: log lines, or JSON on a Redis pub/sub channel."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict

import redis.asyncio as aioredis

from riderapp.domain.notifications import Notification, NotificationTransport

logger = logging.getLogger(__name__)


class LoggingTransport(NotificationTransport):
    async def send(self, notification: Notification) -> None:
        logger.info(
            "Notification to %s%s: %s",
            notification.audience,
            f" #{notification.recipient_id}" if notification.recipient_id else "",
            notification.message,
        )


class RedisTransport(NotificationTransport):
    def __init__(self, client: aioredis.Redis, channel: str = "ride-notifications"):
        self.redis = client
        self.channel = channel

    async def send(self, notification: Notification) -> None:
        await self.redis.publish(self.channel, json.dumps(asdict(notification)))
