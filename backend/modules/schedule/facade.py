"""
modules/schedule/facade.py
----------------------------
ScheduleFacade — translates add / edit / delete intents for a visit into
repository calls.

  create_visit  validate, then append at order = current day count
  update_visit  merge fields; start/end re-checked when either changes.
                `order` is not editable; a date change appends the visit
                to the end of the target day
  delete_visit  remove the row; siblings are NOT renumbered (gaps are
                tolerated until the next reorder or explicit renumber)

Times are stored in canonical "HH:MM" form whatever spacing or hour
padding the caller used.  Callers rebuild the day's timeline after every
mutation (day_view / day_timeline).
"""

from __future__ import annotations

from contextlib import AsyncExitStack
from datetime import date as date_type
from typing import Any, Optional

from modules.observability.logger import StructuredLogger
from modules.schedule.errors import NotFoundError, ValidationError
from modules.schedule.guard import LocalDayGuard
from modules.schedule.repository import ScheduleRepository
from modules.schedule.timeline import TimelineItem, build_timeline, group_by_date, sort_entries
from modules.tool_usage.time_tool import default_end_time, format_time, is_valid_hhmm
from modules.validation import validate_new_visit, validate_visit_update
from schemas.schedule import NewScheduleEntry, ScheduleDay, ScheduleEntry

_TIME_FIELDS = ("start_time", "end_time")


def _iso_date(value: Any) -> str:
    """Canonical "YYYY-MM-DD" for an already validated date."""
    if isinstance(value, date_type):
        return value.isoformat()
    return date_type.fromisoformat(str(value)).isoformat()


class ScheduleFacade:

    def __init__(
        self,
        repository: ScheduleRepository,
        guard=None,
        audit: Optional[StructuredLogger] = None,
    ) -> None:
        self._repo = repository
        self._guard = guard or LocalDayGuard()
        self._audit = audit

    # ── reads ─────────────────────────────────────────────────────────────

    async def list_day(self, plan_id: str, date: str) -> list[ScheduleEntry]:
        """Entries for one plan day, sorted by order."""
        entries = await self._repo.list_schedules_by_plan(plan_id)
        return sort_entries(e for e in entries if e.date == date)

    async def list_days(self, plan_id: str) -> list[ScheduleDay]:
        """Every day of the plan that has at least one entry."""
        return group_by_date(await self._repo.list_schedules_by_plan(plan_id))

    async def day_view(
        self, plan_id: str, date: str,
    ) -> tuple[list[ScheduleEntry], list[TimelineItem]]:
        """Entries and the timeline built from them, from a single read."""
        entries = await self.list_day(plan_id, date)
        places = await self._repo.list_places(e.place_id for e in entries)
        return entries, build_timeline(entries, places)

    async def day_timeline(self, plan_id: str, date: str) -> list[TimelineItem]:
        """Rebuild the visit/travel timeline for one day from storage."""
        _, timeline = await self.day_view(plan_id, date)
        return timeline

    # ── mutations ─────────────────────────────────────────────────────────

    async def create_visit(
        self,
        plan_id: str,
        date: str,
        place_id: str,
        start_time: str,
        end_time: Optional[str] = None,
        notes: Optional[str] = None,
    ) -> ScheduleEntry:
        """
        Append a visit to the end of the day.

        ``end_time`` defaults to start + DEFAULT_VISIT_MINUTES.  Raises
        ValidationError for an empty place id, unparseable times or
        end_time <= start_time.
        """
        if end_time is None and is_valid_hhmm(start_time):
            end_time = default_end_time(start_time)

        record = {
            "plan_id":    plan_id,
            "date":       date,
            "place_id":   place_id,
            "start_time": start_time,
            "end_time":   end_time,
        }
        result = validate_new_visit(record)
        if not result:
            raise ValidationError(result.errors)

        date = _iso_date(date)
        async with self._guard.hold(plan_id, date):
            day = await self.list_day(plan_id, date)
            created = await self._repo.create_schedule(NewScheduleEntry(
                plan_id=plan_id,
                date=date,
                place_id=place_id,
                start_time=format_time(start_time),
                end_time=format_time(end_time),
                order=len(day),
                notes=notes,
            ))

        self._log(plan_id, "visit_created", created.to_dict())
        return created

    async def update_visit(self, entry_id: str, fields: dict[str, Any]) -> ScheduleEntry:
        """
        Merge ``fields`` into an existing entry and return the stored result.

        Moving the visit to another date holds both days and places it
        last on the target day.  The day it leaves keeps a gap in `order`.
        """
        current = await self._repo.get_schedule(entry_id)
        if current is None:
            raise NotFoundError(entry_id)

        result = validate_visit_update(current.to_dict(), fields)
        if not result:
            raise ValidationError(result.errors)

        changes = {k: v for k, v in fields.items() if k != "id"}
        for key in _TIME_FIELDS:
            if key in changes:
                changes[key] = format_time(changes[key])

        if "date" in changes:
            changes["date"] = _iso_date(changes["date"])
        target_date = changes.get("date", current.date)
        days = sorted({current.date, target_date})

        async with AsyncExitStack() as stack:
            for day in days:
                await stack.enter_async_context(self._guard.hold(current.plan_id, day))
            if target_date != current.date:
                target_day = await self.list_day(current.plan_id, target_date)
                changes["order"] = len(target_day)
            updated = await self._repo.update_schedule(entry_id, changes)

        self._log(current.plan_id, "visit_updated", {"id": entry_id, "changes": changes})
        return updated

    async def delete_visit(self, entry_id: str) -> ScheduleEntry:
        """Remove an entry and return it. Sibling order values are left as they are."""
        current = await self._repo.get_schedule(entry_id)
        if current is None:
            raise NotFoundError(entry_id)

        async with self._guard.hold(current.plan_id, current.date):
            await self._repo.delete_schedule(entry_id)

        self._log(current.plan_id, "visit_deleted", {"id": entry_id, "date": current.date})
        return current

    def _log(self, plan_id: str, event_type: str, payload: dict) -> None:
        if self._audit is not None:
            self._audit.log(plan_id, event_type, payload)
