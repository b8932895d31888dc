"""
modules/schedule/timeline.py
------------------------------
Timeline builder — projects one day's schedule entries onto an ordered
sequence of visit rows with estimated travel rows between them.

Rules:
  - Entries are consumed in the order given; callers sort by `order` first
    (sort_entries).  Overlapping or identical times are not re-sorted.
  - An entry whose place cannot be resolved produces no row and is logged.
  - A travel row sits between two consecutive *resolved* visits only.  An
    unresolved entry breaks the chain; no travel row bridges across it.
  - Row keys are derived from entry ids (visit-<id>, travel-<from>-<to>), so
    identical input always yields identical output.

The timeline is rebuilt from scratch on every change and never patched.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from modules.tool_usage.distance_tool import estimate_travel_minutes
from modules.tool_usage.time_tool import total_duration
from schemas.schedule import Place, ScheduleDay, ScheduleEntry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class VisitItem:
    key: str
    entry: ScheduleEntry
    place: Place
    position: int

    type = "visit"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "type": self.type,
            "position": self.position,
            "schedule": self.entry.to_dict(),
            "place": self.place.to_dict(),
        }


@dataclass(frozen=True)
class TravelItem:
    key: str
    travel_minutes: int
    from_entry_id: str
    to_entry_id: str
    position: int

    type = "travel"

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "type": self.type,
            "position": self.position,
            "travel_minutes": self.travel_minutes,
            "from_entry_id": self.from_entry_id,
            "to_entry_id": self.to_entry_id,
        }


TimelineItem = Union[VisitItem, TravelItem]


def visit_key(entry_id: str) -> str:
    return f"visit-{entry_id}"


def travel_key(from_entry_id: str, to_entry_id: str) -> str:
    return f"travel-{from_entry_id}-{to_entry_id}"


def sort_entries(entries: Iterable[ScheduleEntry]) -> list[ScheduleEntry]:
    """Stable sort by `order`; ties keep their incoming sequence."""
    return sorted(entries, key=lambda e: e.order)


def build_timeline(
    entries: list[ScheduleEntry],
    places: Iterable[Place],
) -> list[TimelineItem]:
    """
    Build the visit/travel sequence for one day.

    Args:
        entries: schedule entries already sorted by `order`.
        places:  places to resolve `entry.place_id` against.

    Returns:
        VisitItem / TravelItem list; N resolved adjacent visits give N-1
        travel rows.
    """
    by_id = {p.id: p for p in places}
    items: list[TimelineItem] = []
    prev: Optional[VisitItem] = None

    for entry in entries:
        place = by_id.get(entry.place_id)
        if place is None:
            logger.warning(
                "schedule entry %s references unknown place %s; row skipped",
                entry.id, entry.place_id,
            )
            prev = None
            continue

        if prev is not None:
            items.append(TravelItem(
                key=travel_key(prev.entry.id, entry.id),
                travel_minutes=estimate_travel_minutes(
                    prev.place.latitude, prev.place.longitude,
                    place.latitude, place.longitude,
                ),
                from_entry_id=prev.entry.id,
                to_entry_id=entry.id,
                position=len(items),
            ))

        visit = VisitItem(
            key=visit_key(entry.id),
            entry=entry,
            place=place,
            position=len(items),
        )
        items.append(visit)
        prev = visit

    return items


def visit_ids(timeline: Iterable[TimelineItem]) -> list[str]:
    """Entry ids of the visit rows, in timeline order (the draggable set)."""
    return [item.entry.id for item in timeline if isinstance(item, VisitItem)]


def group_by_date(entries: Iterable[ScheduleEntry]) -> list[ScheduleDay]:
    """Group entries per date (dates ascending), each day sorted by order."""
    groups: dict[str, list[ScheduleEntry]] = {}
    for entry in entries:
        groups.setdefault(entry.date, []).append(entry)

    days: list[ScheduleDay] = []
    for day in sorted(groups):
        schedules = sort_entries(groups[day])
        days.append(ScheduleDay(
            date=day,
            schedules=schedules,
            total_duration=total_duration(schedules),
        ))
    return days
