"""HTTP layer: routes, status codes and response shapes."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import config
from api.routes import schedule as schedule_routes
from api.server import app
from modules.schedule import (
    MutationInProgressError,
    NotFoundError,
    ScheduleError,
    TransientWriteError,
    StorageUnavailableError,
    ValidationError,
    set_repository,
)

PLAN_ID = "plan-1"
DAY = "2025-05-01"
BASE = f"/v1/plans/{PLAN_ID}/days/{DAY}"


@pytest.fixture
def client(repo, tmp_path, monkeypatch):
    monkeypatch.setattr(config, "AUDIT_LOG_DIR", str(tmp_path / "audit"))
    monkeypatch.setattr(config, "DAY_GUARD_BACKEND", "local")
    set_repository(repo)
    schedule_routes.reset_services()
    with TestClient(app) as c:
        yield c
    schedule_routes.reset_services()
    set_repository(None)


def _keys(body: dict) -> list[str]:
    return [row["key"] for row in body["timeline"]]


def test_health(client):
    resp = client.get("/v1/health")
    assert resp.status_code == 200
    assert resp.json()["service"] == "tripline-backend"


def test_timeline(client):
    body = client.get(f"{BASE}/timeline").json()
    assert body["total_duration"] == 180
    assert _keys(body) == ["visit-a", "travel-a-b", "visit-b", "travel-b-c", "visit-c"]
    assert body["timeline"][1]["travel_minutes"] > 0


def test_list_days(client):
    body = client.get(f"/v1/plans/{PLAN_ID}/days").json()
    assert [d["date"] for d in body["days"]] == [DAY]
    assert body["days"][0]["total_duration"] == 180


def test_create_visit(client):
    resp = client.post(f"{BASE}/visits", json={"place_id": "P2", "start_time": "16:00"})
    assert resp.status_code == 201
    body = resp.json()
    assert body["schedule"]["order"] == 3
    assert body["schedule"]["end_time"] == "17:00"
    assert _keys(body)[-1] == f"visit-{body['schedule']['id']}"


def test_create_visit_rejects_inverted_times(client):
    resp = client.post(
        f"{BASE}/visits",
        json={"place_id": "P2", "start_time": "16:00", "end_time": "15:00"},
    )
    assert resp.status_code == 422
    assert any("later than" in e for e in resp.json()["detail"])


def test_update_visit(client):
    resp = client.patch("/v1/visits/b", json={"notes": "cash only"})
    assert resp.status_code == 200
    assert resp.json()["schedule"]["notes"] == "cash only"


@pytest.mark.parametrize("entry_id,payload,status", [
    ("zzz", {"notes": "x"}, 404),
    ("b", {"end_time": "10:00"}, 422),
    ("b", {"plan_id": "other"}, 422),
])
def test_update_visit_errors(client, entry_id, payload, status):
    assert client.patch(f"/v1/visits/{entry_id}", json=payload).status_code == status


def test_delete_then_renumber(client):
    body = client.delete("/v1/visits/b").json()
    assert body["deleted"] == "b"
    assert _keys(body) == ["visit-a", "travel-a-c", "visit-c"]
    assert client.delete("/v1/visits/b").status_code == 404

    body = client.post(f"{BASE}/renumber").json()
    assert [(s["id"], s["order"]) for s in body["schedules"]] == [("a", 0), ("c", 1)]


def test_reorder(client):
    body = client.post(f"{BASE}/reorder", json={"visit_ids": ["b", "a", "c"]}).json()
    assert body["committed"] is True
    assert [s["id"] for s in body["schedules"]] == ["b", "a", "c"]
    assert _keys(body)[0] == "visit-b"


def test_reorder_with_unknown_id(client):
    resp = client.post(f"{BASE}/reorder", json={"visit_ids": ["a", "nope"]})
    assert resp.status_code == 422


def test_failed_reorder_returns_snapshot_timeline(client, repo):
    repo.fail_on_update.add("a")
    resp = client.post(f"{BASE}/reorder", json={"visit_ids": ["c", "a", "b"]})

    assert resp.status_code == 503
    detail = resp.json()["detail"]
    assert detail["committed"] is False
    assert _keys(detail) == ["visit-a", "travel-a-b", "visit-b", "travel-b-c", "visit-c"]
    assert detail["error"]


def test_move(client):
    body = client.post(f"{BASE}/move", json={"active_key": "visit-c", "over_key": "visit-a"}).json()
    assert body["changed"] is True
    assert [s["id"] for s in body["schedules"]] == ["c", "a", "b"]


@pytest.mark.parametrize("active,over", [
    ("visit-a", "visit-a"),
    ("travel-a-b", "visit-c"),
    ("visit-a", None),
])
def test_move_noop(client, repo, active, over):
    body = client.post(f"{BASE}/move", json={"active_key": active, "over_key": over}).json()
    assert body["changed"] is False
    assert repo.update_calls == []
    assert len(body["timeline"]) == 5


def test_busy_day_returns_409(client):
    facade, _ = schedule_routes.get_services()
    facade._guard._held.add((PLAN_ID, DAY))
    resp = client.post(f"{BASE}/reorder", json={"visit_ids": ["b", "a", "c"]})
    assert resp.status_code == 409


@pytest.mark.parametrize("exc,status", [
    (ValidationError(["bad"]), 422),
    (NotFoundError("x"), 404),
    (MutationInProgressError(PLAN_ID, DAY), 409),
    (TransientWriteError("down"), 503),
    (StorageUnavailableError("down"), 503),
    (ScheduleError("other"), 500),
])
def test_error_mapping(exc, status):
    assert schedule_routes._http_error(exc).status_code == status


def test_timeline_reads_storage_once(client, repo):
    calls = []
    original = repo.list_schedules_by_plan

    async def counting(plan_id):
        calls.append(plan_id)
        return await original(plan_id)

    repo.list_schedules_by_plan = counting
    body = client.get(f"{BASE}/timeline").json()

    assert calls == [PLAN_ID]
    assert body["total_duration"] == 180


def test_unreadable_store_returns_plain_503(client, repo):
    async def unavailable(plan_id):
        raise StorageUnavailableError("database unavailable")

    repo.list_schedules_by_plan = unavailable

    resp = client.post(f"{BASE}/reorder", json={"visit_ids": ["b", "a", "c"]})
    assert resp.status_code == 503
    assert resp.json()["detail"] == "database unavailable"
    assert client.get(f"{BASE}/timeline").status_code == 503


def test_date_move_lands_last_on_new_day(client):
    client.post(f"/v1/plans/{PLAN_ID}/days/2025-05-02/visits",
                json={"place_id": "P1", "start_time": "10:00"})
    body = client.patch("/v1/visits/a", json={"date": "2025-05-02"}).json()

    assert body["schedule"]["order"] == 1
    assert _keys(body)[-1] == "visit-a"


def test_created_times_are_normalised(client):
    body = client.post(f"{BASE}/visits", json={"place_id": "P2", "start_time": " 9:05 "}).json()
    assert (body["schedule"]["start_time"], body["schedule"]["end_time"]) == ("09:05", "10:05")
