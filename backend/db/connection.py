"""
db/connection.py
-----------------
Pooled psycopg2 connections for PostgresScheduleRepository.

    with get_conn() as conn:
        rows = schedule_repo.list_schedules_by_plan(conn, plan_id)

Repository calls run in asyncio.to_thread workers, so the pool is a
ThreadedConnectionPool and is created under a lock on first use.
Pool size and credentials come from the POSTGRES_* keys in config.py.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator

import psycopg2
import psycopg2.pool

import config

_pool: psycopg2.pool.ThreadedConnectionPool | None = None
_pool_lock = threading.Lock()


def get_pool() -> psycopg2.pool.ThreadedConnectionPool:
    global _pool
    with _pool_lock:
        if _pool is None or _pool.closed:
            _pool = psycopg2.pool.ThreadedConnectionPool(
                minconn=config.POSTGRES_MIN_CONN,
                maxconn=config.POSTGRES_MAX_CONN,
                host=config.POSTGRES_HOST,
                port=config.POSTGRES_PORT,
                dbname=config.POSTGRES_DB,
                user=config.POSTGRES_USER,
                password=config.POSTGRES_PASSWORD,
            )
        return _pool


@contextmanager
def get_conn() -> Iterator:
    """
    Borrow one connection for a unit of work.

    Commits when the block exits cleanly and rolls back when it raises;
    the connection goes back to the pool either way.
    """
    pool = get_pool()
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)


def close_pool() -> None:
    """Close every pooled connection (application shutdown)."""
    global _pool
    with _pool_lock:
        if _pool is not None and not _pool.closed:
            _pool.closeall()
        _pool = None
