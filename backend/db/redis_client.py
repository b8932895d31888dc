"""
db/redis_client.py
-------------------
redis-py client — singleton plus helpers for the per-day mutation lock.

Key schema:

  daylock:{plan_id}:{date}
       Type : String (random owner token)
       TTL  : DAY_LOCK_TTL (default 30 s); a crashed worker cannot hold
              a day forever
       Set  : SET NX EX on acquire; compare-and-delete on release

Environment variables (set in config.py):
    REDIS_HOST        default: localhost
    REDIS_PORT        default: 6379
    REDIS_DB          default: 0
    REDIS_PASSWORD    default: ""  (empty = no auth)
    DAY_LOCK_TTL      default: 30
"""

from __future__ import annotations

from typing import Any, Optional

import redis

import config

# Module-level singleton; initialised lazily on first call to get_redis()
_client: redis.Redis | None = None

# Delete the key only if it still holds our token.
_RELEASE_SCRIPT = """
if redis.call("GET", KEYS[1]) == ARGV[1] then
    return redis.call("DEL", KEYS[1])
end
return 0
"""


def get_redis() -> redis.Redis:
    """Return the singleton Redis client, creating it on first call."""
    global _client
    if _client is None:
        kwargs: dict[str, Any] = {
            "host":             config.REDIS_HOST,
            "port":             config.REDIS_PORT,
            "db":               config.REDIS_DB,
            "decode_responses": True,   # return str, not bytes
        }
        if config.REDIS_PASSWORD:
            kwargs["password"] = config.REDIS_PASSWORD
        _client = redis.Redis(**kwargs)
    return _client


# ── Day lock ───────────────────────────────────────────────────────────────────

def day_lock_key(plan_id: str, date: str) -> str:
    return f"daylock:{plan_id}:{date}"


def acquire_day_lock(
    plan_id: str,
    date: str,
    token: str,
    ttl: Optional[int] = None,
    client: Optional[redis.Redis] = None,
) -> bool:
    """Try to take the day lock. Returns False if another owner holds it."""
    r = client or get_redis()
    return bool(r.set(
        day_lock_key(plan_id, date),
        token,
        nx=True,
        ex=ttl or config.DAY_LOCK_TTL,
    ))


def release_day_lock(
    plan_id: str,
    date: str,
    token: str,
    client: Optional[redis.Redis] = None,
) -> bool:
    """Release the day lock if ``token`` still owns it."""
    r = client or get_redis()
    return bool(r.eval(_RELEASE_SCRIPT, 1, day_lock_key(plan_id, date), token))
