"""
db/
----
Database access layer for the Tripline schedule backend.

Storage architecture:
  PostgreSQL (psycopg2) — persistent backing store
    tables: places, schedules
    schema: db/schema.sql
    apply:  python scripts/run_migrations.py

  Redis (redis-py) — volatile coordination
    daylock:{plan_id}:{date}   TTL = DAY_LOCK_TTL (30 s)

Public exports (import from here for convenience):
    from db import get_conn, get_redis
    from db.repositories import schedule_repo, place_repo
"""

from db.connection import get_conn, close_pool
from db.redis_client import get_redis

__all__ = ["get_conn", "close_pool", "get_redis"]
