"""
modules/tool_usage/time_tool.py
---------------------------------
Same-day clock arithmetic on "HH:MM" strings.

All times are wall-clock values on one calendar day; no timezone handling.
calculate_duration() reports end - start honestly (possibly negative) so
callers can detect malformed ranges; only unparseable strings raise.
"""

from __future__ import annotations

import re
from typing import Iterable

import config

_HHMM_RE = re.compile(r"^\s*([01]?\d|2[0-3]):([0-5]\d)\s*$")

_MINUTES_PER_DAY = 24 * 60


def parse_hhmm(value: str) -> int:
    """Return minutes since midnight for "HH:MM". Raises ValueError otherwise."""
    if not isinstance(value, str):
        raise ValueError(f"time must be a 'HH:MM' string (got {value!r})")
    m = _HHMM_RE.match(value)
    if not m:
        raise ValueError(f"time must be 'HH:MM' in 24h clock (got {value!r})")
    return int(m.group(1)) * 60 + int(m.group(2))


def is_valid_hhmm(value: object) -> bool:
    return isinstance(value, str) and _HHMM_RE.match(value) is not None


def _min_to_hhmm(minutes: int) -> str:
    minutes %= _MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def format_time(value: str) -> str:
    """Normalise "9:05" → "09:05". Unparseable input is returned unchanged."""
    try:
        return _min_to_hhmm(parse_hhmm(value))
    except ValueError:
        return value


def calculate_duration(start: str, end: str) -> int:
    """Minutes from ``start`` to ``end`` on the same day (may be negative)."""
    return parse_hhmm(end) - parse_hhmm(start)


def add_minutes(start: str, minutes: int) -> str:
    """``start`` + ``minutes`` as "HH:MM", wrapping past midnight."""
    return _min_to_hhmm(parse_hhmm(start) + int(minutes))


def default_end_time(start: str) -> str:
    """End time used when a new visit is created without one."""
    return add_minutes(start, config.DEFAULT_VISIT_MINUTES)


def total_duration(entries: Iterable) -> int:
    """
    Sum of visit durations for schedule entries.

    Negative or unparseable ranges count as zero so one bad row cannot
    drag a day total below the real figure.
    """
    total = 0
    for entry in entries:
        try:
            total += max(0, calculate_duration(entry.start_time, entry.end_time))
        except ValueError:
            continue
    return total


class TimeTool:
    """Object wrapper for callers that prefer injecting a tool instance."""

    def duration(self, start: str, end: str) -> int:
        return calculate_duration(start, end)

    def add(self, start: str, minutes: int) -> str:
        return add_minutes(start, minutes)

    def total(self, entries: Iterable) -> int:
        return total_duration(entries)
