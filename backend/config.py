"""
config.py
---------
Central configuration for the Tripline schedule backend.
All secrets loaded from environment variables — never hard-coded.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the backend directory (if it exists) so env vars in that file
# are picked up by os.getenv() below.  Won't override vars already set in the shell.
_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=False)

# ── Storage backend ───────────────────────────────────────────────────────────
# "in_memory" keeps schedules in a process-local dict (dev / tests);
# "postgres" uses the psycopg2 pool in db/connection.py.
STORAGE_BACKEND: str = os.getenv("STORAGE_BACKEND", "in_memory")

# ── Timeline heuristics ───────────────────────────────────────────────────────
# Straight-line travel estimate: haversine km / speed. Not a routing result.
AVERAGE_TRAVEL_SPEED_KMH: float = float(os.getenv("AVERAGE_TRAVEL_SPEED_KMH", "30.0"))
EARTH_RADIUS_KM: float = 6371.0

# New visits without an explicit end time last this long (minutes)
DEFAULT_VISIT_MINUTES: int = int(os.getenv("DEFAULT_VISIT_MINUTES", "60"))

# ── Per-day mutation guard ────────────────────────────────────────────────────
# "local": in-process guard (single worker)
# "redis": SET NX EX lock shared across workers
DAY_GUARD_BACKEND: str = os.getenv("DAY_GUARD_BACKEND", "local")
DAY_LOCK_TTL: int = int(os.getenv("DAY_LOCK_TTL", "30"))  # seconds

# ── Audit log ─────────────────────────────────────────────────────────────────
# JSONL files, one per plan id
AUDIT_LOG_DIR: str = os.getenv(
    "AUDIT_LOG_DIR", str(Path(__file__).resolve().parent / "logs")
)

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# ── HTTP ──────────────────────────────────────────────────────────────────────
CORS_ALLOW_ORIGINS: list[str] = [
    o.strip() for o in os.getenv("CORS_ALLOW_ORIGINS", "*").split(",") if o.strip()
]

# ── PostgreSQL ────────────────────────────────────────────────────────────────
# Schema defined in db/schema.sql
# Apply with: python scripts/run_migrations.py
POSTGRES_HOST: str     = os.getenv("POSTGRES_HOST",     "localhost")
POSTGRES_PORT: int     = int(os.getenv("POSTGRES_PORT", "5432"))
POSTGRES_DB: str       = os.getenv("POSTGRES_DB",       "tripline")
POSTGRES_USER: str     = os.getenv("POSTGRES_USER",     "tripline_user")
POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "tripline_pass")
POSTGRES_MIN_CONN: int = int(os.getenv("POSTGRES_MIN_CONN", "1"))
POSTGRES_MAX_CONN: int = int(os.getenv("POSTGRES_MAX_CONN", "10"))

# ── Redis ─────────────────────────────────────────────────────────────────────
REDIS_HOST: str        = os.getenv("REDIS_HOST",     "localhost")
REDIS_PORT: int        = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int          = int(os.getenv("REDIS_DB",   "0"))
REDIS_PASSWORD: str    = os.getenv("REDIS_PASSWORD", "")
