"""
modules/validation/schedule_validator.py
------------------------------------------
Data-quality guards applied before any schedule entry or place record
is written to storage.

  Schedule entry (create):
    ✓ Non-empty plan_id and place_id
    ✓ date is an ISO-8601 calendar date (YYYY-MM-DD)
    ✓ start_time / end_time parse as HH:MM (24h)
    ✓ end_time strictly later than start_time on the same day

  Schedule entry (update):
    ✓ Only editable fields are present
    ✓ Any changed field passes the same checks as on create
    ✓ order is never editable here (reorder owns it)

  Place:
    ✓ Non-empty id and name
    ✓ Latitude in [-90, 90], longitude in [-180, 180]

Usage:
    from modules.validation import validate_new_visit

    result = validate_new_visit(record)
    if not result:
        raise ValidationError(result.errors)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from modules.tool_usage.time_tool import is_valid_hhmm, parse_hhmm
from schemas.schedule import EDITABLE_FIELDS


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of a single validation run.

    Attributes:
        valid:  True iff there are zero errors.
        errors: Human-readable list of failure reasons.
        record: The input record dict (for logging purposes).
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    record: dict = field(default_factory=dict, repr=False)

    def __bool__(self) -> bool:
        return self.valid


# ── Field checks ───────────────────────────────────────────────────────────────

def _check_required(record: dict[str, Any], key: str, errors: list[str]) -> None:
    value = record.get(key)
    if value is None or not str(value).strip():
        errors.append(f"{key} must not be empty")


def _check_date(value: Any, errors: list[str]) -> None:
    if isinstance(value, date):
        return
    try:
        date.fromisoformat(str(value))
    except ValueError:
        errors.append(f"date={value!r} is not a valid ISO-8601 date (YYYY-MM-DD)")


def _check_time_range(start: Any, end: Any, errors: list[str]) -> None:
    ok = True
    if not is_valid_hhmm(start):
        errors.append(f"start_time={start!r} must be HH:MM (24h)")
        ok = False
    if not is_valid_hhmm(end):
        errors.append(f"end_time={end!r} must be HH:MM (24h)")
        ok = False
    if ok and parse_hhmm(end) <= parse_hhmm(start):
        errors.append(
            f"end_time={end} must be later than start_time={start}"
        )


# ── Schedule entry validation ──────────────────────────────────────────────────

def validate_new_visit(record: dict[str, Any]) -> ValidationResult:
    """
    Validate a schedule entry before it is created.

    Required keys: plan_id, date, place_id, start_time, end_time
    """
    errors: list[str] = []

    _check_required(record, "plan_id", errors)
    _check_required(record, "place_id", errors)

    if record.get("date") is None or not str(record.get("date")).strip():
        errors.append("date must not be empty")
    else:
        _check_date(record["date"], errors)

    _check_time_range(record.get("start_time"), record.get("end_time"), errors)

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=record)


def validate_visit_update(
    current: dict[str, Any],
    changes: dict[str, Any],
) -> ValidationResult:
    """
    Validate a partial update against the entry's current values.

    The start/end ordering is re-checked only when either time changes,
    using the merged values so a lone end_time edit is compared with the
    stored start_time.
    """
    errors: list[str] = []

    unknown = sorted(set(changes) - EDITABLE_FIELDS - {"id"})
    if unknown:
        errors.append(f"fields not editable: {unknown}")

    if "place_id" in changes:
        _check_required(changes, "place_id", errors)

    if "date" in changes:
        _check_date(changes["date"], errors)

    if "start_time" in changes or "end_time" in changes:
        _check_time_range(
            changes.get("start_time", current.get("start_time")),
            changes.get("end_time", current.get("end_time")),
            errors,
        )

    if "eta" in changes and changes["eta"] is not None:
        eta = changes["eta"]
        if isinstance(eta, bool) or not isinstance(eta, int) or eta < 0:
            errors.append(f"eta={eta!r} must be a non-negative integer or null")

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=changes)


# ── Place validation ───────────────────────────────────────────────────────────

def validate_place(record: dict[str, Any]) -> ValidationResult:
    """Validate a place record before it is stored."""
    errors: list[str] = []

    _check_required(record, "id", errors)
    _check_required(record, "name", errors)

    lat = record.get("latitude")
    lon = record.get("longitude")
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError):
        errors.append(
            f"latitude/longitude must be numeric (got lat={lat!r}, lon={lon!r})"
        )
    else:
        if not (-90.0 <= lat_f <= 90.0):
            errors.append(f"latitude={lat_f} is outside valid range [-90, 90]")
        if not (-180.0 <= lon_f <= 180.0):
            errors.append(f"longitude={lon_f} is outside valid range [-180, 180]")

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=record)
