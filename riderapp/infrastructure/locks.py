"""
Per-entity locks.

Every lifecycle operation holds ``ride:<id>``; wallet movements hold
``passenger:<id>`` and driver availability / earnings / rating changes hold
``driver:<id>``.  Callers always acquire in the order ride -> passenger ->
driver.

Two backends share the ``hold(*keys)`` interface:

* ``LocalLockManager`` -- one ``asyncio.Lock`` per key, for a single API
  process.  Locks are dropped once no holder or waiter is left.
* ``RedisLockManager`` -- ``DistributedLock`` per key for multi-process
  deployments.  ``DistributedLock`` uses SET NX EX for acquire and a Lua
  script for atomic check-and-delete on release.

Acquisition is bounded; a timeout raises ``LockTimeout``.
"""

from __future__ import annotations

import asyncio
import uuid
from collections import defaultdict
from contextlib import AsyncExitStack, asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis

from riderapp.domain.exceptions import LockTimeout


def ride_lock(ride_id: int) -> str:
    return f"ride:{ride_id}"


def wallet_lock(passenger_id: int) -> str:
    return f"passenger:{passenger_id}"


def driver_lock(driver_id: int) -> str:
    return f"driver:{driver_id}"


class LocalLockManager:
    def __init__(self, timeout_seconds: float = 10.0):
        self.timeout = timeout_seconds
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = defaultdict(int)

    @asynccontextmanager
    async def _hold_one(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] += 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
            except asyncio.TimeoutError:
                raise LockTimeout(f"Could not acquire lock: {key}") from None
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[key] -= 1
            if not self._users[key]:
                del self._users[key]
                self._locks.pop(key, None)

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for key in keys:
                await stack.enter_async_context(self._hold_one(key))
            yield


class DistributedLock:
    def __init__(
        self, client: aioredis.Redis, key: str, ttl_seconds: int = 30
    ):
        self.redis = client
        self.key = f"lock:{key}"
        self.ttl = ttl_seconds
        self.token = str(uuid.uuid4())

    async def acquire(self) -> bool:
        """Try to acquire once. Returns True on success."""
        return bool(
            await self.redis.set(self.key, self.token, nx=True, ex=self.ttl)
        )

    async def acquire_blocking(
        self, timeout: float, poll_interval: float = 0.05
    ) -> bool:
        """Retry ``acquire`` until it succeeds or *timeout* elapses."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            if await self.acquire():
                return True
            if loop.time() >= deadline:
                return False
            await asyncio.sleep(poll_interval)

    async def release(self) -> None:
        """Release only if we still own the lock (atomic via Lua)."""
        lua = """
        if redis.call("get", KEYS[1]) == ARGV[1] then
            return redis.call("del", KEYS[1])
        else
            return 0
        end
        """
        await self.redis.eval(lua, 1, self.key, self.token)


class RedisLockManager:
    def __init__(
        self,
        client: aioredis.Redis,
        timeout_seconds: float = 10.0,
        ttl_seconds: int = 30,
    ):
        self.redis = client
        self.timeout = timeout_seconds
        self.ttl = ttl_seconds

    @asynccontextmanager
    async def _hold_one(self, key: str) -> AsyncIterator[None]:
        lock = DistributedLock(self.redis, key, ttl_seconds=self.ttl)
        if not await lock.acquire_blocking(self.timeout):
            raise LockTimeout(f"Could not acquire lock: {lock.key}")
        try:
            yield
        finally:
            await lock.release()

    @asynccontextmanager
    async def hold(self, *keys: str) -> AsyncIterator[None]:
        async with AsyncExitStack() as stack:
            for key in keys:
                await stack.enter_async_context(self._hold_one(key))
            yield
