"""
db/repositories/schedule_repo.py
----------------------------------
CRUD operations for the `schedules` table.

Source: db/schema.sql Table schedules

All functions accept a psycopg2 connection object.
Commit/rollback is managed by the caller via db.connection.get_conn().

Column names match ScheduleEntry field names exactly; "order" is quoted
because it is a reserved word.
"""

from __future__ import annotations

from typing import Any

# field name → SQL column expression; the only columns an UPDATE may touch
_UPDATABLE_COLUMNS: dict[str, str] = {
    "date":       "date",
    "place_id":   "place_id",
    "start_time": "start_time",
    "end_time":   "end_time",
    "notes":      "notes",
    "eta":        "eta",
    "order":      '"order"',
}

_SELECT_COLUMNS = """
    id, plan_id, date, place_id, start_time, end_time,
    "order", notes, eta
"""


def _row_to_dict(cur, row) -> dict:
    cols = [d[0] for d in cur.description]
    return dict(zip(cols, row))


def insert_schedule(conn, data: dict[str, Any]) -> dict:
    """
    Insert a schedules row and return it as a dict (id assigned by Postgres).

    Required keys: plan_id, date, place_id, start_time, end_time, order
    Optional keys: notes, eta
    """
    row = {"notes": None, "eta": None, **data}
    sql = f"""
        INSERT INTO schedules
            (plan_id, date, place_id, start_time, end_time, "order", notes, eta)
        VALUES
            (%(plan_id)s, %(date)s, %(place_id)s, %(start_time)s,
             %(end_time)s, %(order)s, %(notes)s, %(eta)s)
        RETURNING {_SELECT_COLUMNS}
    """
    with conn.cursor() as cur:
        cur.execute(sql, row)
        return _row_to_dict(cur, cur.fetchone())


def get_schedule(conn, entry_id: str) -> dict | None:
    """Return a single schedules row by id, or None if not found."""
    sql = f"SELECT {_SELECT_COLUMNS} FROM schedules WHERE id = %s"
    with conn.cursor() as cur:
        cur.execute(sql, (entry_id,))
        row = cur.fetchone()
        if row is None:
            return None
        return _row_to_dict(cur, row)


def list_schedules_by_plan(conn, plan_id: str) -> list[dict]:
    """Return all schedules rows for a plan, ordered by date then order."""
    sql = f"""
        SELECT {_SELECT_COLUMNS}
        FROM schedules
        WHERE plan_id = %s
        ORDER BY date ASC, "order" ASC
    """
    with conn.cursor() as cur:
        cur.execute(sql, (plan_id,))
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, row)) for row in cur.fetchall()]


def update_schedule(conn, entry_id: str, fields: dict[str, Any]) -> dict | None:
    """
    Update the given fields of one row and return the updated row.

    Returns None when no row has ``entry_id``.  Keys outside the updatable
    column set raise KeyError before any SQL is sent.
    """
    unknown = set(fields) - set(_UPDATABLE_COLUMNS)
    if unknown:
        raise KeyError(f"Not updatable on schedules: {sorted(unknown)}")
    if not fields:
        return get_schedule(conn, entry_id)

    keys = sorted(fields)
    assignments = ", ".join(f"{_UPDATABLE_COLUMNS[k]} = %s" for k in keys)
    sql = f"""
        UPDATE schedules
        SET {assignments}, updated_at = NOW()
        WHERE id = %s
        RETURNING {_SELECT_COLUMNS}
    """
    params = [fields[k] for k in keys] + [entry_id]
    with conn.cursor() as cur:
        cur.execute(sql, params)
        row = cur.fetchone()
        if row is None:
            return None
        return _row_to_dict(cur, row)


def delete_schedule(conn, entry_id: str) -> bool:
    """Delete one row. Returns False when nothing matched."""
    sql = "DELETE FROM schedules WHERE id = %s"
    with conn.cursor() as cur:
        cur.execute(sql, (entry_id,))
        return cur.rowcount > 0
