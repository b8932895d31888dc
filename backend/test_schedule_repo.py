"""psycopg2 repository functions and the async Postgres adapter (no live DB)."""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from unittest.mock import MagicMock

import psycopg2
import pytest

from db import connection
from db.repositories import place_repo, schedule_repo
from modules.schedule import NotFoundError, PostgresScheduleRepository, StorageUnavailableError
from schemas.schedule import NewScheduleEntry

COLUMNS = ["id", "plan_id", "date", "place_id", "start_time", "end_time", "order", "notes", "eta"]
ROW = ("a", "plan-1", "2025-05-01", "P1", "09:00", "10:00", 0, None, None)


def _conn(fetchone=None, fetchall=(), rowcount=0):
    cur = MagicMock()
    cur.description = [(c,) for c in COLUMNS]
    cur.fetchone.return_value = fetchone
    cur.fetchall.return_value = list(fetchall)
    cur.rowcount = rowcount
    conn = MagicMock()
    conn.cursor.return_value.__enter__.return_value = cur
    return conn, cur


# ── schedule_repo ─────────────────────────────────────────────────────────────

def test_get_schedule_maps_columns():
    conn, cur = _conn(fetchone=ROW)
    row = schedule_repo.get_schedule(conn, "a")
    assert row["order"] == 0 and row["place_id"] == "P1"
    assert cur.execute.call_args.args[1] == ("a",)


def test_get_schedule_missing():
    conn, _ = _conn(fetchone=None)
    assert schedule_repo.get_schedule(conn, "zzz") is None


def test_list_orders_by_date_then_order():
    conn, cur = _conn(fetchall=[ROW])
    rows = schedule_repo.list_schedules_by_plan(conn, "plan-1")
    assert [r["id"] for r in rows] == ["a"]
    sql = cur.execute.call_args.args[0]
    assert 'ORDER BY date ASC, "order" ASC' in sql


def test_insert_fills_optional_columns():
    conn, cur = _conn(fetchone=ROW)
    schedule_repo.insert_schedule(conn, {
        "plan_id": "plan-1", "date": "2025-05-01", "place_id": "P1",
        "start_time": "09:00", "end_time": "10:00", "order": 0,
    })
    params = cur.execute.call_args.args[1]
    assert params["notes"] is None and params["eta"] is None


def test_update_quotes_order_and_binds_id_last():
    conn, cur = _conn(fetchone=ROW)
    schedule_repo.update_schedule(conn, "a", {"order": 2, "notes": "x"})
    sql, params = cur.execute.call_args.args
    assert '"order" = %s' in sql
    assert "updated_at = NOW()" in sql
    assert params == ["x", 2, "a"]


def test_update_rejects_unknown_column():
    conn, cur = _conn()
    with pytest.raises(KeyError):
        schedule_repo.update_schedule(conn, "a", {"plan_id": "other"})
    cur.execute.assert_not_called()


def test_update_missing_row_returns_none():
    conn, _ = _conn(fetchone=None)
    assert schedule_repo.update_schedule(conn, "zzz", {"notes": "x"}) is None


def test_delete_reports_rowcount():
    conn, _ = _conn(rowcount=1)
    assert schedule_repo.delete_schedule(conn, "a") is True
    conn, _ = _conn(rowcount=0)
    assert schedule_repo.delete_schedule(conn, "a") is False


def test_places_by_ids_skips_query_when_empty():
    conn, cur = _conn()
    assert place_repo.get_places_by_ids(conn, []) == []
    cur.execute.assert_not_called()


# ── PostgresScheduleRepository ────────────────────────────────────────────────

@pytest.fixture
def fake_conn(monkeypatch):
    conn = MagicMock()

    @contextmanager
    def _get_conn():
        yield conn

    monkeypatch.setattr("modules.schedule.repository.get_conn", _get_conn)
    return conn


def _row(**overrides):
    return {**dict(zip(COLUMNS, ROW)), **overrides}


def test_adapter_update_returns_entry(fake_conn, monkeypatch):
    calls = []

    def _update(conn, entry_id, fields):
        calls.append((conn, entry_id, fields))
        return _row(order=2)

    monkeypatch.setattr(schedule_repo, "update_schedule", _update)

    entry = asyncio.run(PostgresScheduleRepository().update_schedule("a", {"order": 2}))

    assert entry.order == 2
    assert calls == [(fake_conn, "a", {"order": 2})]


def test_adapter_update_missing_row(fake_conn, monkeypatch):
    monkeypatch.setattr(schedule_repo, "update_schedule", lambda conn, i, f: None)
    with pytest.raises(NotFoundError):
        asyncio.run(PostgresScheduleRepository().update_schedule("zzz", {"order": 2}))


def test_adapter_delete_missing_row(fake_conn, monkeypatch):
    monkeypatch.setattr(schedule_repo, "delete_schedule", lambda conn, i: False)
    with pytest.raises(NotFoundError):
        asyncio.run(PostgresScheduleRepository().delete_schedule("zzz"))


def test_adapter_create_passes_all_fields(fake_conn, monkeypatch):
    seen = {}

    def _insert(conn, data):
        seen.update(data)
        return _row(id="generated", order=3)

    monkeypatch.setattr(schedule_repo, "insert_schedule", _insert)
    created = asyncio.run(PostgresScheduleRepository().create_schedule(NewScheduleEntry(
        plan_id="plan-1", date="2025-05-01", place_id="P1",
        start_time="09:00", end_time="10:00", order=3,
    )))

    assert created.id == "generated"
    assert seen["order"] == 3 and seen["notes"] is None


def test_adapter_wraps_operational_error(fake_conn, monkeypatch):
    def _boom(conn, entry_id, fields):
        raise psycopg2.OperationalError("server closed the connection")

    monkeypatch.setattr(schedule_repo, "update_schedule", _boom)
    with pytest.raises(StorageUnavailableError) as exc_info:
        asyncio.run(PostgresScheduleRepository().update_schedule("a", {"order": 1}))
    assert isinstance(exc_info.value.cause, psycopg2.OperationalError)


def test_adapter_list_places_dedupes_ids(fake_conn, monkeypatch):
    seen = []

    def _by_ids(conn, ids):
        seen.append(ids)
        return [{"id": "P1", "name": "Gyeongbokgung", "category": "museum",
                 "latitude": 37.5, "longitude": 127.0}]

    monkeypatch.setattr(place_repo, "get_places_by_ids", _by_ids)
    places = asyncio.run(PostgresScheduleRepository().list_places(["P1", "P2", "P1"]))

    assert seen == [["P1", "P2"]]
    assert places[0].category.value == "other"


def test_adapter_read_failure_is_storage_unavailable(fake_conn, monkeypatch):
    def _boom(conn, plan_id):
        raise psycopg2.OperationalError("could not connect to server")

    monkeypatch.setattr(schedule_repo, "list_schedules_by_plan", _boom)
    with pytest.raises(StorageUnavailableError):
        asyncio.run(PostgresScheduleRepository().list_schedules_by_plan("plan-1"))


# ── db.connection ─────────────────────────────────────────────────────────────

@pytest.fixture
def fake_pool(monkeypatch):
    pool = MagicMock()
    pool.closed = False
    factory = MagicMock(return_value=pool)
    monkeypatch.setattr(connection, "_pool", None)
    monkeypatch.setattr(connection.psycopg2.pool, "ThreadedConnectionPool", factory)
    return pool, factory


def test_pool_is_built_once(fake_pool):
    pool, factory = fake_pool
    assert connection.get_pool() is pool
    assert connection.get_pool() is pool
    factory.assert_called_once()


def test_get_conn_commits_and_returns_connection(fake_pool):
    pool, _ = fake_pool
    with connection.get_conn() as conn:
        assert conn is pool.getconn.return_value
    conn.commit.assert_called_once()
    pool.putconn.assert_called_once_with(conn)


def test_get_conn_rolls_back_on_error(fake_pool):
    pool, _ = fake_pool
    with pytest.raises(RuntimeError):
        with connection.get_conn():
            raise RuntimeError("boom")
    conn = pool.getconn.return_value
    conn.rollback.assert_called_once()
    conn.commit.assert_not_called()
    pool.putconn.assert_called_once_with(conn)


def test_close_pool(fake_pool):
    pool, _ = fake_pool
    connection.get_pool()
    connection.close_pool()
    pool.closeall.assert_called_once()
    assert connection._pool is None
