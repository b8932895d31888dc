"""
modules/schedule/reorder.py
-----------------------------
ReorderCoordinator — the only writer of ScheduleEntry.order.

Turns a new visual sequence of visit ids for one plan day into the minimal
set of `order` writes:

  1. Load the day's persisted entries (the last known-good snapshot).
  2. Target order of each id = its index in the new sequence.  Day entries
     missing from the sequence keep their relative order after the named ones.
  3. Write only entries whose target differs from the stored order, one at a
     time, awaiting each write.
  4. The first failed write aborts the batch with TransientWriteError carrying
     the snapshot.  Nothing is retried and nothing is compensated; the caller
     rebuilds its view from the snapshot.

Any permutation is accepted, not only single-item moves.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional, Sequence

from modules.observability.logger import StructuredLogger
from modules.schedule.errors import TransientWriteError, ValidationError
from modules.schedule.guard import LocalDayGuard
from modules.schedule.repository import ScheduleRepository
from modules.schedule.timeline import TimelineItem, build_timeline, sort_entries
from schemas.schedule import ScheduleEntry

logger = logging.getLogger(__name__)


def plan_writes(
    entries: Sequence[ScheduleEntry],
    visit_ids: Sequence[str],
) -> list[tuple[str, int]]:
    """
    Return (entry_id, new_order) for every entry whose order must change.

    ``entries`` is the day's current state sorted by order.  Raises
    ValidationError for duplicate ids or ids that are not on this day.
    """
    by_id = {e.id: e for e in entries}
    errors: list[str] = []

    dupes = sorted(i for i, n in Counter(visit_ids).items() if n > 1)
    if dupes:
        errors.append(f"duplicate visit ids: {dupes}")
    unknown = [i for i in visit_ids if i not in by_id]
    if unknown:
        errors.append(f"visit ids not on this day: {unknown}")
    if errors:
        raise ValidationError(errors)

    named = set(visit_ids)
    sequence = list(visit_ids) + [e.id for e in entries if e.id not in named]
    return [
        (entry_id, index)
        for index, entry_id in enumerate(sequence)
        if by_id[entry_id].order != index
    ]


@dataclass
class ReorderOutcome:
    """What the caller renders after a reorder attempt."""
    committed: bool
    entries: list[ScheduleEntry] = field(default_factory=list)
    timeline: list[TimelineItem] = field(default_factory=list)
    error: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "committed": self.committed,
            "schedules": [e.to_dict() for e in self.entries],
            "timeline": [i.to_dict() for i in self.timeline],
            "error": self.error,
        }


class ReorderCoordinator:

    def __init__(
        self,
        repository: ScheduleRepository,
        guard=None,
        audit: Optional[StructuredLogger] = None,
    ) -> None:
        self._repo = repository
        self._guard = guard or LocalDayGuard()
        self._audit = audit

    async def load_day(self, plan_id: str, date: str) -> list[ScheduleEntry]:
        entries = await self._repo.list_schedules_by_plan(plan_id)
        return sort_entries(e for e in entries if e.date == date)

    async def reorder(
        self,
        plan_id: str,
        date: str,
        visit_ids_in_new_order: Sequence[str],
    ) -> list[ScheduleEntry]:
        """
        Persist a new visit order for one day.

        Returns the day's entries with their new order values, sorted.
        Raises ValidationError before any write, MutationInProgressError if
        the day is busy, TransientWriteError if a write fails.
        """
        async with self._guard.hold(plan_id, date):
            snapshot = await self.load_day(plan_id, date)
            writes = plan_writes(snapshot, visit_ids_in_new_order)
            committed = await self._commit(plan_id, date, snapshot, writes)
            self._log(plan_id, "reorder_committed", {
                "date": date,
                "order": [e.id for e in committed],
                "writes": len(writes),
            })
            return committed

    async def renumber(self, plan_id: str, date: str) -> list[ScheduleEntry]:
        """Close gaps in `order` left by deletes, keeping the current sequence."""
        async with self._guard.hold(plan_id, date):
            snapshot = await self.load_day(plan_id, date)
            writes = plan_writes(snapshot, [e.id for e in snapshot])
            committed = await self._commit(plan_id, date, snapshot, writes)
            self._log(plan_id, "day_renumbered", {"date": date, "writes": len(writes)})
            return committed

    async def reorder_and_rebuild(
        self,
        plan_id: str,
        date: str,
        visit_ids_in_new_order: Sequence[str],
    ) -> ReorderOutcome:
        """
        reorder(), then build the timeline the caller should show.

        On a failed write the timeline comes from the pre-reorder snapshot,
        never from the half-applied order.  A store that cannot even be
        read raises StorageUnavailableError: there is no snapshot to show.
        """
        try:
            entries = await self.reorder(plan_id, date, visit_ids_in_new_order)
        except TransientWriteError as exc:
            places = await self._repo.list_places(e.place_id for e in exc.snapshot)
            return ReorderOutcome(
                committed=False,
                entries=exc.snapshot,
                timeline=build_timeline(exc.snapshot, places),
                error=str(exc),
            )
        places = await self._repo.list_places(e.place_id for e in entries)
        return ReorderOutcome(
            committed=True,
            entries=entries,
            timeline=build_timeline(entries, places),
        )

    # ── internals ─────────────────────────────────────────────────────────

    async def _commit(
        self,
        plan_id: str,
        date: str,
        snapshot: list[ScheduleEntry],
        writes: list[tuple[str, int]],
    ) -> list[ScheduleEntry]:
        applied: list[str] = []
        for entry_id, new_order in writes:
            try:
                await self._repo.update_schedule(entry_id, {"order": new_order})
            except Exception as exc:
                logger.warning(
                    "order write failed for %s (plan=%s date=%s) after %d/%d writes: %s",
                    entry_id, plan_id, date, len(applied), len(writes), exc,
                )
                self._log(plan_id, "reorder_failed", {
                    "date": date,
                    "failed_entry": entry_id,
                    "applied": applied,
                    "error": str(exc),
                })
                raise TransientWriteError(
                    f"Could not save new order for entry '{entry_id}'; "
                    f"{len(applied)} of {len(writes)} writes went through",
                    snapshot=snapshot,
                    applied=applied,
                    cause=exc,
                ) from exc
            applied.append(entry_id)

        new_orders = dict(writes)
        return sort_entries(
            e.with_fields(order=new_orders[e.id]) if e.id in new_orders else e
            for e in snapshot
        )

    def _log(self, plan_id: str, event_type: str, payload: dict) -> None:
        if self._audit is not None:
            self._audit.log(plan_id, event_type, payload)
