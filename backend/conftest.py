"""
Shared fixtures: three places around Seoul and one plan day that visits
them in order a → b → c.
"""

from __future__ import annotations

import pytest

from modules.observability.logger import StructuredLogger
from modules.schedule import InMemoryScheduleRepository
from schemas.schedule import Place, PlaceCategory, ScheduleEntry

PLAN_ID = "plan-1"
DAY = "2025-05-01"


@pytest.fixture
def places() -> list[Place]:
    return [
        Place(id="P1", name="Gyeongbokgung", category=PlaceCategory.TOURIST_ATTRACTION,
              latitude=37.50, longitude=127.00),
        Place(id="P2", name="Gwangjang Market", category=PlaceCategory.RESTAURANT,
              latitude=37.55, longitude=127.05),
        Place(id="P3", name="Hotel Yeouido", category=PlaceCategory.ACCOMMODATION,
              latitude=37.40, longitude=126.90),
    ]


@pytest.fixture
def entries() -> list[ScheduleEntry]:
    return [
        ScheduleEntry(id="a", plan_id=PLAN_ID, date=DAY, place_id="P1",
                      start_time="09:00", end_time="10:00", order=0),
        ScheduleEntry(id="b", plan_id=PLAN_ID, date=DAY, place_id="P2",
                      start_time="11:00", end_time="12:00", order=1),
        ScheduleEntry(id="c", plan_id=PLAN_ID, date=DAY, place_id="P3",
                      start_time="14:00", end_time="15:00", order=2),
    ]


@pytest.fixture
def repo(entries, places) -> InMemoryScheduleRepository:
    counter = iter(range(1, 10_000))
    return InMemoryScheduleRepository(
        schedules=entries,
        places=places,
        id_factory=lambda: f"new-{next(counter)}",
    )


@pytest.fixture
def audit(tmp_path) -> StructuredLogger:
    logger = StructuredLogger(tmp_path / "audit")
    yield logger
    logger.close()
