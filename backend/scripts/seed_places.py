"""
scripts/seed_places.py
-----------------------
Load bookmarked places from a JSON file into the `places` table.

The input is a JSON array of objects with at least
id, name, latitude, longitude (category defaults to "other").
Every record is validated before any write; invalid records are reported
and skipped.

Usage:
    cd backend
    python scripts/seed_places.py data/places.json
    python scripts/seed_places.py data/places.json --dry-run

Options:
    --dry-run  Validate and print a summary but do NOT write to Postgres
"""

from __future__ import annotations

import argparse
import json
import os
import sys

# ── Make sure backend root is on path ─────────────────────────────────────────
_SCRIPT_DIR  = os.path.dirname(os.path.abspath(__file__))
_BACKEND_DIR = os.path.dirname(_SCRIPT_DIR)
if _BACKEND_DIR not in sys.path:
    sys.path.insert(0, _BACKEND_DIR)

# ── Imports (after path fix) ───────────────────────────────────────────────────
from db.connection import get_conn  # noqa: E402  (must come after sys.path fix)
from db.repositories import place_repo  # noqa: E402
from modules.validation import validate_place  # noqa: E402
from schemas.schedule import PlaceCategory  # noqa: E402


def load_records(path: str) -> list[dict]:
    with open(path, encoding="utf-8") as fh:
        data = json.load(fh)
    if not isinstance(data, list):
        raise ValueError(f"{path}: expected a JSON array of place objects")
    return data


def split_valid(records: list[dict]) -> tuple[list[dict], list[tuple[dict, list[str]]]]:
    """Partition records into (valid, [(rejected, reasons), ...])."""
    valid: list[dict] = []
    rejected: list[tuple[dict, list[str]]] = []
    for record in records:
        result = validate_place(record)
        if result:
            valid.append({
                **record,
                "category": PlaceCategory.coerce(record.get("category", "other")).value,
            })
        else:
            rejected.append((record, result.errors))
    return valid, rejected


def seed(path: str, dry_run: bool = False) -> int:
    """Validate and upsert; returns the number of rows written."""
    records = load_records(path)
    valid, rejected = split_valid(records)

    print(f"[seed] file     : {path}")
    print(f"[seed] records  : {len(records)}  valid={len(valid)}  rejected={len(rejected)}")
    for record, errors in rejected:
        print(f"  [✗] {record.get('id', '?')}: {'; '.join(errors)}")

    if dry_run:
        print("[seed] DRY-RUN — nothing written.")
        return 0

    with get_conn() as conn:
        for record in valid:
            place_repo.upsert_place(conn, record)
    print(f"[seed] Done — {len(valid)} places upserted.")
    return len(valid)


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the places table from JSON.")
    parser.add_argument("path", help="JSON file with an array of places")
    parser.add_argument(
        "--dry-run", action="store_true",
        help="Validate only; do not write to the database.",
    )
    args = parser.parse_args()
    try:
        seed(args.path, dry_run=args.dry_run)
    except Exception as exc:
        print(f"[seed] ERROR: {exc}", file=sys.stderr)
        sys.exit(1)
