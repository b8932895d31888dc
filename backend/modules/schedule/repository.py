"""
modules/schedule/repository.py
--------------------------------
Repository contract consumed by the schedule engine, plus two backends.

  ScheduleRepository           async Protocol every backend satisfies
  InMemoryScheduleRepository   process-local dicts (dev, tests)
  PostgresScheduleRepository   psycopg2 functions in db/repositories/*,
                               run in worker threads via asyncio.to_thread

Every method is a suspension point; callers await each call before the
next dependent step.  Records are copied on the way in and out so a
caller mutating a returned entry never changes stored state.
"""

from __future__ import annotations

import asyncio
import uuid
from dataclasses import replace
from typing import Any, Callable, Iterable, Optional, Protocol, runtime_checkable

import psycopg2

import config
from db.connection import get_conn
from db.repositories import place_repo, schedule_repo
from modules.schedule.errors import NotFoundError, StorageUnavailableError
from schemas.schedule import NewScheduleEntry, Place, ScheduleEntry


@runtime_checkable
class ScheduleRepository(Protocol):

    async def list_schedules_by_plan(self, plan_id: str) -> list[ScheduleEntry]: ...

    async def get_schedule(self, entry_id: str) -> Optional[ScheduleEntry]: ...

    async def create_schedule(self, entry: NewScheduleEntry) -> ScheduleEntry: ...

    async def update_schedule(self, entry_id: str, fields: dict[str, Any]) -> ScheduleEntry: ...

    async def delete_schedule(self, entry_id: str) -> None: ...

    async def get_place(self, place_id: str) -> Optional[Place]: ...

    async def list_places(self, place_ids: Iterable[str]) -> list[Place]: ...


# ── In-memory backend ─────────────────────────────────────────────────────────

class InMemoryScheduleRepository:
    """
    Dict-backed repository.

    ``fail_on_update`` holds entry ids whose next update raises
    ConnectionError, simulating a dropped write.  ``update_calls`` records
    every (entry_id, fields) pair passed to update_schedule, successful or not.
    """

    def __init__(
        self,
        schedules: Iterable[ScheduleEntry] = (),
        places: Iterable[Place] = (),
        id_factory: Callable[[], str] = lambda: str(uuid.uuid4()),
    ) -> None:
        self._schedules: dict[str, ScheduleEntry] = {s.id: replace(s) for s in schedules}
        self._places: dict[str, Place] = {p.id: replace(p) for p in places}
        self._id_factory = id_factory
        self.fail_on_update: set[str] = set()
        self.update_calls: list[tuple[str, dict[str, Any]]] = []

    def add_place(self, place: Place) -> None:
        self._places[place.id] = replace(place)

    async def list_schedules_by_plan(self, plan_id: str) -> list[ScheduleEntry]:
        return [
            replace(s) for s in self._schedules.values() if s.plan_id == plan_id
        ]

    async def get_schedule(self, entry_id: str) -> Optional[ScheduleEntry]:
        entry = self._schedules.get(entry_id)
        return replace(entry) if entry else None

    async def create_schedule(self, entry: NewScheduleEntry) -> ScheduleEntry:
        created = ScheduleEntry.from_new(self._id_factory(), entry)
        self._schedules[created.id] = created
        return replace(created)

    async def update_schedule(self, entry_id: str, fields: dict[str, Any]) -> ScheduleEntry:
        self.update_calls.append((entry_id, dict(fields)))
        if entry_id in self.fail_on_update:
            self.fail_on_update.discard(entry_id)
            raise ConnectionError(f"simulated write failure for {entry_id}")
        current = self._schedules.get(entry_id)
        if current is None:
            raise NotFoundError(entry_id)
        updated = current.with_fields(**fields)
        self._schedules[entry_id] = updated
        return replace(updated)

    async def delete_schedule(self, entry_id: str) -> None:
        if self._schedules.pop(entry_id, None) is None:
            raise NotFoundError(entry_id)

    async def get_place(self, place_id: str) -> Optional[Place]:
        place = self._places.get(place_id)
        return replace(place) if place else None

    async def list_places(self, place_ids: Iterable[str]) -> list[Place]:
        return [
            replace(self._places[pid])
            for pid in dict.fromkeys(place_ids)
            if pid in self._places
        ]


# ── Postgres backend ──────────────────────────────────────────────────────────

class PostgresScheduleRepository:
    """
    Async adapter over the synchronous psycopg2 repository functions.

    Each call borrows one pooled connection inside a worker thread and
    commits when the function returns.  Connection-level failures surface
    as StorageUnavailableError; inside a reorder batch the coordinator
    wraps them in TransientWriteError along with the snapshot it loaded.
    """

    @staticmethod
    def _run_sync(fn, *args):
        try:
            with get_conn() as conn:
                return fn(conn, *args)
        except psycopg2.OperationalError as exc:
            raise StorageUnavailableError("database unavailable", cause=exc) from exc

    async def _run(self, fn, *args):
        return await asyncio.to_thread(self._run_sync, fn, *args)

    async def list_schedules_by_plan(self, plan_id: str) -> list[ScheduleEntry]:
        rows = await self._run(schedule_repo.list_schedules_by_plan, plan_id)
        return [ScheduleEntry.from_row(r) for r in rows]

    async def get_schedule(self, entry_id: str) -> Optional[ScheduleEntry]:
        row = await self._run(schedule_repo.get_schedule, entry_id)
        return ScheduleEntry.from_row(row) if row else None

    async def create_schedule(self, entry: NewScheduleEntry) -> ScheduleEntry:
        row = await self._run(schedule_repo.insert_schedule, vars(entry).copy())
        return ScheduleEntry.from_row(row)

    async def update_schedule(self, entry_id: str, fields: dict[str, Any]) -> ScheduleEntry:
        row = await self._run(schedule_repo.update_schedule, entry_id, dict(fields))
        if row is None:
            raise NotFoundError(entry_id)
        return ScheduleEntry.from_row(row)

    async def delete_schedule(self, entry_id: str) -> None:
        deleted = await self._run(schedule_repo.delete_schedule, entry_id)
        if not deleted:
            raise NotFoundError(entry_id)

    async def get_place(self, place_id: str) -> Optional[Place]:
        row = await self._run(place_repo.get_place, place_id)
        return Place.from_row(row) if row else None

    async def list_places(self, place_ids: Iterable[str]) -> list[Place]:
        rows = await self._run(place_repo.get_places_by_ids, list(dict.fromkeys(place_ids)))
        return [Place.from_row(r) for r in rows]


# ── Factory ───────────────────────────────────────────────────────────────────

_repository: Optional[ScheduleRepository] = None


def get_repository() -> ScheduleRepository:
    """Return the process-wide repository selected by config.STORAGE_BACKEND."""
    global _repository
    if _repository is None:
        if config.STORAGE_BACKEND == "postgres":
            _repository = PostgresScheduleRepository()
        elif config.STORAGE_BACKEND == "in_memory":
            _repository = InMemoryScheduleRepository()
        else:
            raise ValueError(f"Unknown STORAGE_BACKEND {config.STORAGE_BACKEND!r}")
    return _repository


def set_repository(repository: Optional[ScheduleRepository]) -> None:
    """Replace the process-wide repository (tests, app startup)."""
    global _repository
    _repository = repository
