"""
schemas/schedule.py
-------------------
Dataclass definitions for places and per-day schedule entries.

Field names mirror the storage columns one-to-one so records round-trip
through the repository without renaming:

  ScheduleEntry.date        ISO date string  "YYYY-MM-DD"
  ScheduleEntry.start_time  24h clock        "HH:MM"
  ScheduleEntry.end_time    24h clock        "HH:MM"
  ScheduleEntry.order       zero-based position within (plan_id, date)
  ScheduleEntry.eta         minutes, last computed travel estimate (optional)
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field, replace
from enum import Enum
from typing import Any, Optional


class PlaceCategory(str, Enum):
    ACCOMMODATION      = "accommodation"
    RESTAURANT         = "restaurant"
    TOURIST_ATTRACTION = "tourist_attraction"
    SHOPPING           = "shopping"
    ENTERTAINMENT      = "entertainment"
    TRANSPORT          = "transport"
    OTHER              = "other"

    @classmethod
    def coerce(cls, value: Any) -> "PlaceCategory":
        """Map a stored value to a category; unknown strings become OTHER."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass
class Place:
    """A bookmarked place. Owned by the place store; read-only here."""
    id: str
    name: str
    category: PlaceCategory = PlaceCategory.OTHER
    latitude: float = 0.0
    longitude: float = 0.0
    description: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    images: list[str] = field(default_factory=list)

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "Place":
        return cls(
            id=str(row["id"]),
            name=row.get("name") or "",
            category=PlaceCategory.coerce(row.get("category", "other")),
            latitude=float(row.get("latitude") or 0.0),
            longitude=float(row.get("longitude") or 0.0),
            description=row.get("description"),
            address=row.get("address"),
            phone=row.get("phone"),
            website=row.get("website"),
            images=list(row.get("images") or []),
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["category"] = self.category.value
        return d


@dataclass
class NewScheduleEntry:
    """A schedule entry before the repository assigns it an id."""
    plan_id: str
    date: str
    place_id: str
    start_time: str
    end_time: str
    order: int = 0
    notes: Optional[str] = None
    eta: Optional[int] = None


@dataclass
class ScheduleEntry:
    """One visit on one trip day."""
    id: str
    plan_id: str
    date: str
    place_id: str
    start_time: str
    end_time: str
    order: int = 0
    notes: Optional[str] = None
    eta: Optional[int] = None

    @classmethod
    def from_new(cls, entry_id: str, new: NewScheduleEntry) -> "ScheduleEntry":
        return cls(id=entry_id, **asdict(new))

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ScheduleEntry":
        return cls(
            id=str(row["id"]),
            plan_id=str(row["plan_id"]),
            date=str(row["date"]),
            place_id=str(row["place_id"]),
            start_time=str(row["start_time"]),
            end_time=str(row["end_time"]),
            order=int(row.get("order") or 0),
            notes=row.get("notes"),
            eta=row.get("eta"),
        )

    def with_fields(self, **fields: Any) -> "ScheduleEntry":
        """Return a copy with ``fields`` merged in. The id never changes."""
        fields.pop("id", None)
        return replace(self, **fields)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


# Fields a caller may change through update; everything else is fixed.
# `order` is written only by the reorder coordinator.
EDITABLE_FIELDS: frozenset[str] = frozenset({
    "date", "place_id", "start_time", "end_time", "notes", "eta",
})


@dataclass
class ScheduleDay:
    """All entries for one date, sorted by order, with their summed duration."""
    date: str
    schedules: list[ScheduleEntry] = field(default_factory=list)
    total_duration: int = 0  # minutes

    def to_dict(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "schedules": [s.to_dict() for s in self.schedules],
            "total_duration": self.total_duration,
        }
