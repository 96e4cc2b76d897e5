"""Redis client shared by the distributed ride/wallet/driver locks and the
notification publisher.  Only created when one of them is configured."""

from typing import Optional

import redis.asyncio as aioredis

from riderapp.config import settings


def create_redis(url: Optional[str] = None) -> aioredis.Redis:
    """Return a Redis client with its own connection pool."""
    return aioredis.Redis.from_url(url or settings.redis_url, decode_responses=True)
