"""
db/repositories/place_repo.py
-------------------------------
Read access to the `places` table plus an upsert used by seeding scripts.

All functions accept a psycopg2 connection object.
Commit/rollback is managed by the caller via db.connection.get_conn().
"""

from __future__ import annotations

from typing import Any

_SELECT_COLUMNS = """
    id, name, category, latitude, longitude,
    description, address, phone, website, images
"""


def get_place(conn, place_id: str) -> dict | None:
    """Return a single place row by id, or None if not found."""
    sql = f"SELECT {_SELECT_COLUMNS} FROM places WHERE id = %s"
    with conn.cursor() as cur:
        cur.execute(sql, (place_id,))
        row = cur.fetchone()
        if row is None:
            return None
        cols = [d[0] for d in cur.description]
        return dict(zip(cols, row))


def get_places_by_ids(conn, place_ids: list[str]) -> list[dict]:
    """Batch lookup; ids without a row are simply absent from the result."""
    if not place_ids:
        return []
    sql = f"SELECT {_SELECT_COLUMNS} FROM places WHERE id = ANY(%s)"
    with conn.cursor() as cur:
        cur.execute(sql, (list(place_ids),))
        cols = [d[0] for d in cur.description]
        return [dict(zip(cols, row)) for row in cur.fetchall()]


def upsert_place(conn, place: dict[str, Any]) -> str:
    """
    Insert or update a place row keyed by id. Returns the id.

    Required: id, name, latitude, longitude.
    """
    _defaults: dict[str, Any] = {
        "category":    "other",
        "description": None,
        "address":     None,
        "phone":       None,
        "website":     None,
        "images":      [],
    }
    row = {**_defaults, **place}
    sql = """
        INSERT INTO places (
            id, name, category, latitude, longitude,
            description, address, phone, website, images
        ) VALUES (
            %(id)s, %(name)s, %(category)s, %(latitude)s, %(longitude)s,
            %(description)s, %(address)s, %(phone)s, %(website)s, %(images)s
        )
        ON CONFLICT (id) DO UPDATE SET
            name        = EXCLUDED.name,
            category    = EXCLUDED.category,
            latitude    = EXCLUDED.latitude,
            longitude   = EXCLUDED.longitude,
            description = EXCLUDED.description,
            address     = EXCLUDED.address,
            phone       = EXCLUDED.phone,
            website     = EXCLUDED.website,
            images      = EXCLUDED.images
        RETURNING id
    """
    with conn.cursor() as cur:
        cur.execute(sql, row)
        return str(cur.fetchone()[0])
