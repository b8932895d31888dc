#!/usr/bin/env python
"""
scripts/run_migrations.py
--------------------------
Applies db/schema.sql (or another DDL file) to the configured Postgres
database in a single transaction.

Usage:
    python scripts/run_migrations.py [--dry-run] [--file path/to/schema.sql]

Exit codes:
    0   schema applied (or dry-run completed)
    1   connection failed or a statement errored; nothing was committed

Environment variables: POSTGRES_HOST, POSTGRES_PORT, POSTGRES_DB,
POSTGRES_USER, POSTGRES_PASSWORD (same vars used by db/connection.py).

Every statement in db/schema.sql uses IF NOT EXISTS, so re-running is safe.
"""

from __future__ import annotations

import argparse
import pathlib
import re
import sys

# Add the backend directory to sys.path so that config is importable
_BACKEND_DIR = pathlib.Path(__file__).resolve().parent.parent
if str(_BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(_BACKEND_DIR))

import psycopg2  # noqa: E402
import config  # noqa: E402

SCHEMA_FILE = _BACKEND_DIR / "db" / "schema.sql"

_BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_LINE_COMMENT = re.compile(r"--[^\n]*")


def load_statements(path: pathlib.Path = SCHEMA_FILE) -> list[str]:
    """
    Read a DDL file and split it into executable statements.

    Comments are stripped first so a ';' inside one cannot split a
    statement.  The schema has no function bodies, so splitting on ';'
    is enough.
    """
    path = pathlib.Path(path)
    if not path.exists():
        raise FileNotFoundError(f"SQL file not found: {path}")
    sql = path.read_text(encoding="utf-8")
    sql = _LINE_COMMENT.sub("", _BLOCK_COMMENT.sub("", sql))
    return [s.strip() for s in sql.split(";") if s.strip()]


def _connect():
    return psycopg2.connect(
        host=config.POSTGRES_HOST,
        port=config.POSTGRES_PORT,
        dbname=config.POSTGRES_DB,
        user=config.POSTGRES_USER,
        password=config.POSTGRES_PASSWORD,
    )


def run(path: pathlib.Path = SCHEMA_FILE, dry_run: bool = False) -> int:
    """Apply every statement in ``path``. Returns the statement count."""
    statements = load_statements(path)

    print(f"[migrations] file      : {path}")
    print(f"[migrations] statements: {len(statements)}")
    print(f"[migrations] target    : {config.POSTGRES_DB} @ "
          f"{config.POSTGRES_HOST}:{config.POSTGRES_PORT}")

    if dry_run:
        for i, stmt in enumerate(statements, 1):
            print(f"  [{i:02d}] {' '.join(stmt.split())[:80]}")
        print("[migrations] DRY-RUN, nothing applied.")
        return len(statements)

    conn = _connect()
    try:
        with conn.cursor() as cur:
            for i, stmt in enumerate(statements, 1):
                try:
                    cur.execute(stmt)
                except psycopg2.Error as exc:
                    print(f"  [✗] statement {i}: {exc.pgerror or exc}")
                    raise
                print(f"  [✓] {' '.join(stmt.split())[:60]}")
        conn.commit()
    except Exception:
        conn.rollback()
        print("[migrations] rolled back.")
        raise
    finally:
        conn.close()

    print(f"[migrations] applied {len(statements)} statements.")
    return len(statements)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Apply the Postgres schema.")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Print statements without executing them.",
    )
    parser.add_argument(
        "--file", type=pathlib.Path, default=SCHEMA_FILE,
        help="DDL file to apply (default: db/schema.sql).",
    )
    args = parser.parse_args()
    try:
        run(args.file, dry_run=args.dry_run)
    except Exception as exc:
        print(f"[migrations] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
