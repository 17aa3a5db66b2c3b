"""Per-(breeder, date) locks guarding the booking re-check-and-insert step.

With ``REDIS_URL`` configured the lock lives in redis so every API worker
shares it; otherwise an in-process ``asyncio.Lock`` registry is used, which
is enough for a single worker (and for tests).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date
from functools import lru_cache

import redis.asyncio as redis
from redis.exceptions import LockError

from src.core.config import settings
from src.core.exceptions import BookingTimeoutError

logger = logging.getLogger(__name__)

LOCK_PREFIX = "booking-lock"


def lock_key(breeder_id: str, day: date) -> str:
    return f"{LOCK_PREFIX}:{breeder_id}:{day.isoformat()}"


class BookingLockManager:
    """Hands out mutually exclusive sections keyed by breeder and calendar date."""

    def __init__(
        self,
        redis_client: redis.Redis | None = None,
        acquire_timeout: float | None = None,
        lease_seconds: float | None = None,
    ):
        self._redis = redis_client
        self.acquire_timeout = acquire_timeout if acquire_timeout is not None else settings.booking_lock_timeout_seconds
        # The lease must outlive a whole submission so a slow insert cannot lose the lock mid-way.
        self.lease_seconds = (
            lease_seconds
            if lease_seconds is not None
            else settings.booking_submit_timeout_seconds + self.acquire_timeout
        )
        self._local_locks: dict[str, asyncio.Lock] = {}
        self._local_users: dict[str, int] = {}

    @property
    def distributed(self) -> bool:
        return self._redis is not None

    @asynccontextmanager
    async def hold(self, breeder_id: str, day: date) -> AsyncIterator[None]:
        key = lock_key(breeder_id, day)
        if self._redis is not None:
            async with self._hold_redis(key):
                yield
        else:
            async with self._hold_local(key):
                yield

    @asynccontextmanager
    async def _hold_redis(self, key: str) -> AsyncIterator[None]:
        lock = self._redis.lock(key, timeout=self.lease_seconds, blocking_timeout=self.acquire_timeout)
        acquired = await lock.acquire()
        if not acquired:
            logger.warning("Timed out waiting for booking lock %s", key)
            raise BookingTimeoutError("Another booking for this date is in progress, please retry")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                logger.warning("Booking lock %s expired before release", key)

    @asynccontextmanager
    async def _hold_local(self, key: str) -> AsyncIterator[None]:
        lock = self._local_locks.setdefault(key, asyncio.Lock())
        self._local_users[key] = self._local_users.get(key, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=self.acquire_timeout)
            except asyncio.TimeoutError as exc:
                logger.warning("Timed out waiting for booking lock %s", key)
                raise BookingTimeoutError("Another booking for this date is in progress, please retry") from exc
            try:
                yield
            finally:
                lock.release()
        finally:
            self._local_users[key] -= 1
            if self._local_users[key] == 0:
                del self._local_users[key]
                self._local_locks.pop(key, None)


@lru_cache(1)
def get_lock_manager() -> BookingLockManager:
    """Return the process-wide lock manager (FastAPI dependency)."""
    if settings.redis_url:
        client = redis.from_url(settings.redis_url, encoding="utf-8", decode_responses=True)
        logger.info("Booking locks backed by redis at %s", settings.redis_url.split("@")[-1])
        return BookingLockManager(redis_client=client)
    logger.info("REDIS_URL not set, booking locks are process-local")
    return BookingLockManager()
