"""Timeline builder: visit/travel projection of one plan day."""

from __future__ import annotations

import logging

import pytest

from modules.schedule.timeline import (
    TravelItem,
    VisitItem,
    build_timeline,
    group_by_date,
    sort_entries,
    visit_ids,
)
from modules.tool_usage.distance_tool import estimate_travel_minutes
from schemas.schedule import Place, ScheduleEntry


def test_three_visits_give_five_rows_in_order(entries, places):
    timeline = build_timeline(entries, places)

    assert [item.type for item in timeline] == [
        "visit", "travel", "visit", "travel", "visit",
    ]
    assert [item.key for item in timeline] == [
        "visit-a", "travel-a-b", "visit-b", "travel-b-c", "visit-c",
    ]
    assert [item.place.id for item in timeline if isinstance(item, VisitItem)] == [
        "P1", "P2", "P3",
    ]
    assert [item.position for item in timeline] == [0, 1, 2, 3, 4]


def test_travel_minutes_follow_the_haversine_estimate(entries, places):
    timeline = build_timeline(entries, places)
    p = {pl.id: pl for pl in places}

    first, second = [item for item in timeline if isinstance(item, TravelItem)]
    assert first.travel_minutes == estimate_travel_minutes(
        p["P1"].latitude, p["P1"].longitude, p["P2"].latitude, p["P2"].longitude,
    )
    assert second.travel_minutes == estimate_travel_minutes(
        p["P2"].latitude, p["P2"].longitude, p["P3"].latitude, p["P3"].longitude,
    )
    assert first.travel_minutes > 0 and second.travel_minutes > 0
    assert (first.from_entry_id, first.to_entry_id) == ("a", "b")


def test_build_is_idempotent(entries, places):
    assert build_timeline(entries, places) == build_timeline(entries, places)


@pytest.mark.parametrize("n", [0, 1, 2, 5])
def test_n_visits_give_n_minus_one_travel_rows(n):
    places = [Place(id=f"P{i}", name=f"Place {i}", latitude=37.5 + i / 100, longitude=127.0)
              for i in range(n)]
    entries = [ScheduleEntry(id=f"e{i}", plan_id="p", date="2025-05-01", place_id=f"P{i}",
                             start_time="09:00", end_time="10:00", order=i)
               for i in range(n)]

    timeline = build_timeline(entries, places)

    assert sum(isinstance(i, VisitItem) for i in timeline) == n
    assert sum(isinstance(i, TravelItem) for i in timeline) == max(0, n - 1)


def test_unresolved_place_is_skipped_without_bridging(entries, places, caplog):
    entries[1].place_id = "missing"

    with caplog.at_level(logging.WARNING, logger="modules.schedule.timeline"):
        timeline = build_timeline(entries, places)

    assert [item.key for item in timeline] == ["visit-a", "visit-c"]
    assert "missing" in caplog.text


def test_unresolved_last_entry_keeps_earlier_gap(entries, places):
    entries[2].place_id = "missing"
    timeline = build_timeline(entries, places)
    assert [item.key for item in timeline] == ["visit-a", "travel-a-b", "visit-b"]


def test_input_sequence_is_not_resorted(entries, places):
    # same start time and inverted order values: rows follow the list as given
    entries[2].start_time = "09:00"
    reordered = [entries[2], entries[0], entries[1]]
    timeline = build_timeline(reordered, places)
    assert visit_ids(timeline) == ["c", "a", "b"]


def test_sort_entries_is_stable_by_order(entries):
    entries[0].order, entries[1].order, entries[2].order = 3, 1, 1
    assert [e.id for e in sort_entries(entries)] == ["b", "c", "a"]


def test_group_by_date_sorts_days_and_totals(entries):
    other_day = ScheduleEntry(id="d", plan_id="plan-1", date="2025-04-30", place_id="P1",
                              start_time="10:00", end_time="12:30", order=0)
    days = group_by_date([entries[2], other_day, entries[0], entries[1]])

    assert [d.date for d in days] == ["2025-04-30", "2025-05-01"]
    assert days[0].total_duration == 150
    assert [s.id for s in days[1].schedules] == ["a", "b", "c"]
    assert days[1].total_duration == 180


def test_to_dict_shapes(entries, places):
    visit, travel = build_timeline(entries, places)[:2]
    assert visit.to_dict()["schedule"]["id"] == "a"
    assert visit.to_dict()["place"]["category"] == "tourist_attraction"
    assert travel.to_dict()["type"] == "travel"
