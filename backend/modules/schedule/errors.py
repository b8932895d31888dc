"""
modules/schedule/errors.py
----------------------------
Typed failures raised by the façade, the reorder coordinator and the
repositories. The HTTP layer maps each class to one status code.

  ValidationError          → 422  bad input, nothing written
  NotFoundError            → 404  entry vanished; caller should refresh
  MutationInProgressError  → 409  another mutation holds the day
  TransientWriteError      → 503  reorder batch aborted mid-way
  StorageUnavailableError  → 503  backing store unreachable; nothing to rebuild from
"""

from __future__ import annotations

from typing import Optional


class ScheduleError(Exception):
    """Base class for all schedule-engine errors."""


class ValidationError(ScheduleError):
    """Malformed or ordering-violating input. No write was issued."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "invalid input")


class NotFoundError(ScheduleError):
    """An update or delete referenced a schedule entry that does not exist."""

    def __init__(self, entry_id: str) -> None:
        self.entry_id = entry_id
        super().__init__(f"Schedule entry '{entry_id}' not found")


class MutationInProgressError(ScheduleError):
    """A reorder or CRUD mutation is already in flight for this plan day."""

    def __init__(self, plan_id: str, date: str) -> None:
        self.plan_id = plan_id
        self.date = date
        super().__init__(
            f"Another change to plan '{plan_id}' on {date} is still being saved"
        )


class TransientWriteError(ScheduleError):
    """
    A write failed part-way through a batch.

    ``snapshot`` holds the entries as they were before the batch started;
    callers rebuild their view from it. ``applied`` lists the entry ids
    whose writes had already gone through when the batch stopped.
    """

    def __init__(
        self,
        message: str,
        snapshot: Optional[list] = None,
        applied: Optional[list[str]] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        self.snapshot = list(snapshot or [])
        self.applied = list(applied or [])
        self.cause = cause
        super().__init__(message)


class StorageUnavailableError(ScheduleError):
    """
    The backing store could not be reached for a read or a single write.

    Unlike TransientWriteError there is no snapshot: the failure happened
    before any known-good state was loaded.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)
