"""
modules/schedule/guard.py
---------------------------
Per-day mutation guard.  At most one reorder or CRUD mutation may be in
flight for a given (plan_id, date); a second one fails fast with
MutationInProgressError instead of queueing behind the first, which would
interleave writes computed from a stale order.

  LocalDayGuard   in-process set of held days (single worker)
  RedisDayGuard   SET NX EX lock in Redis, shared by all workers

Usage:
    async with guard.hold(plan_id, date):
        ...  # awaited repository writes
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import config
from db.redis_client import acquire_day_lock, release_day_lock
from modules.schedule.errors import MutationInProgressError

logger = logging.getLogger(__name__)


class LocalDayGuard:
    """Guard for one event loop; check-and-set needs no lock there."""

    def __init__(self) -> None:
        self._held: set[tuple[str, str]] = set()

    def is_held(self, plan_id: str, date: str) -> bool:
        return (plan_id, date) in self._held

    @asynccontextmanager
    async def hold(self, plan_id: str, date: str) -> AsyncIterator[None]:
        key = (plan_id, date)
        if key in self._held:
            raise MutationInProgressError(plan_id, date)
        self._held.add(key)
        try:
            yield
        finally:
            self._held.discard(key)


class RedisDayGuard:
    """
    Guard backed by the daylock:{plan_id}:{date} key.

    The TTL bounds how long a crashed worker can block a day.  Redis calls
    are synchronous and run in a worker thread.
    """

    def __init__(self, client=None, ttl: Optional[int] = None) -> None:
        self._client = client
        self._ttl = ttl or config.DAY_LOCK_TTL

    @asynccontextmanager
    async def hold(self, plan_id: str, date: str) -> AsyncIterator[None]:
        token = uuid.uuid4().hex
        acquired = await asyncio.to_thread(
            acquire_day_lock, plan_id, date, token, self._ttl, self._client,
        )
        if not acquired:
            raise MutationInProgressError(plan_id, date)
        try:
            yield
        finally:
            released = await asyncio.to_thread(
                release_day_lock, plan_id, date, token, self._client,
            )
            if not released:
                logger.warning(
                    "day lock %s/%s expired before release (ttl=%ss)",
                    plan_id, date, self._ttl,
                )


def build_guard(backend: Optional[str] = None):
    """Return the guard selected by config.DAY_GUARD_BACKEND."""
    backend = backend or config.DAY_GUARD_BACKEND
    if backend == "redis":
        return RedisDayGuard()
    if backend == "local":
        return LocalDayGuard()
    raise ValueError(f"Unknown DAY_GUARD_BACKEND {backend!r}")
