"""
api/routes/schedule.py
------------------------
Schedule endpoints for one plan.

  GET    /v1/plans/{plan_id}/days                       grouped days + totals
  GET    /v1/plans/{plan_id}/days/{date}/timeline       visit/travel rows
  POST   /v1/plans/{plan_id}/days/{date}/visits         add a visit
  PATCH  /v1/visits/{entry_id}                          edit a visit
  DELETE /v1/visits/{entry_id}                          remove a visit
  POST   /v1/plans/{plan_id}/days/{date}/reorder        persist a new order
  POST   /v1/plans/{plan_id}/days/{date}/move           drag gesture → reorder
  POST   /v1/plans/{plan_id}/days/{date}/renumber       close order gaps

Travel minutes in every timeline are straight-line estimates, not routes.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, ConfigDict, Field

from modules.observability.logger import StructuredLogger
from modules.schedule import (
    MutationInProgressError,
    NotFoundError,
    ReorderCoordinator,
    ScheduleError,
    ScheduleFacade,
    StorageUnavailableError,
    TransientWriteError,
    ValidationError,
    build_guard,
    get_repository,
    resolve_drag,
)
from modules.schedule.reorder import ReorderOutcome
from modules.tool_usage.time_tool import total_duration

router = APIRouter()

# ── Service wiring ─────────────────────────────────────────────────────────────
# Façade and coordinator share one guard so CRUD and reorder on the same
# day exclude each other.
_services: dict[str, object] = {}


def get_services() -> tuple[ScheduleFacade, ReorderCoordinator]:
    if not _services:
        repo = get_repository()
        guard = build_guard()
        audit = StructuredLogger()
        _services["facade"] = ScheduleFacade(repo, guard, audit)
        _services["coordinator"] = ReorderCoordinator(repo, guard, audit)
    return _services["facade"], _services["coordinator"]  # type: ignore[return-value]


def reset_services() -> None:
    """Drop cached services so the next request rebuilds them from config."""
    _services.clear()


# ── Request schemas ────────────────────────────────────────────────────────────

class CreateVisitRequest(BaseModel):
    place_id: str
    start_time: str = Field(..., description="HH:MM, 24h")
    end_time: Optional[str] = Field(None, description="HH:MM; defaults to start + 60 min")
    notes: Optional[str] = None


class UpdateVisitRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    date: Optional[str] = None
    place_id: Optional[str] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    notes: Optional[str] = None
    eta: Optional[int] = None


class ReorderRequest(BaseModel):
    visit_ids: list[str]


class MoveRequest(BaseModel):
    active_key: str
    over_key: Optional[str] = None


# ── Helpers ────────────────────────────────────────────────────────────────────

def _http_error(exc: ScheduleError) -> HTTPException:
    if isinstance(exc, ValidationError):
        return HTTPException(status_code=422, detail=exc.errors)
    if isinstance(exc, NotFoundError):
        return HTTPException(status_code=404, detail=str(exc))
    if isinstance(exc, MutationInProgressError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, (TransientWriteError, StorageUnavailableError)):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def _ser_outcome(outcome: ReorderOutcome) -> dict:
    if not outcome.committed:
        # Caller renders the rebuilt pre-reorder timeline from the body.
        raise HTTPException(status_code=503, detail=outcome.to_dict())
    return outcome.to_dict()


# ── Endpoints ──────────────────────────────────────────────────────────────────

@router.get("/plans/{plan_id}/days", summary="List scheduled days with totals")
async def list_days(plan_id: str) -> dict:
    facade, _ = get_services()
    try:
        days = await facade.list_days(plan_id)
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    return {"plan_id": plan_id, "days": [d.to_dict() for d in days]}


@router.get("/plans/{plan_id}/days/{date}/timeline", summary="Timeline for one day")
async def get_timeline(plan_id: str, date: str) -> dict:
    facade, _ = get_services()
    try:
        entries, timeline = await facade.day_view(plan_id, date)
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    return {
        "plan_id": plan_id,
        "date": date,
        "total_duration": total_duration(entries),
        "timeline": [item.to_dict() for item in timeline],
    }


@router.post("/plans/{plan_id}/days/{date}/visits", status_code=201, summary="Add a visit")
async def create_visit(plan_id: str, date: str, req: CreateVisitRequest) -> dict:
    facade, _ = get_services()
    try:
        created = await facade.create_visit(
            plan_id, date, req.place_id, req.start_time, req.end_time, req.notes,
        )
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    timeline = await facade.day_timeline(plan_id, created.date)
    return {
        "schedule": created.to_dict(),
        "timeline": [item.to_dict() for item in timeline],
    }


@router.patch("/visits/{entry_id}", summary="Edit a visit")
async def update_visit(entry_id: str, req: UpdateVisitRequest) -> dict:
    facade, _ = get_services()
    try:
        updated = await facade.update_visit(entry_id, req.model_dump(exclude_unset=True))
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    timeline = await facade.day_timeline(updated.plan_id, updated.date)
    return {
        "schedule": updated.to_dict(),
        "timeline": [item.to_dict() for item in timeline],
    }


@router.delete("/visits/{entry_id}", summary="Remove a visit")
async def delete_visit(entry_id: str) -> dict:
    facade, _ = get_services()
    try:
        deleted = await facade.delete_visit(entry_id)
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    timeline = await facade.day_timeline(deleted.plan_id, deleted.date)
    return {
        "deleted": entry_id,
        "timeline": [item.to_dict() for item in timeline],
    }


@router.post("/plans/{plan_id}/days/{date}/reorder", summary="Persist a new visit order")
async def reorder(plan_id: str, date: str, req: ReorderRequest) -> dict:
    _, coordinator = get_services()
    try:
        outcome = await coordinator.reorder_and_rebuild(plan_id, date, req.visit_ids)
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    return _ser_outcome(outcome)


@router.post("/plans/{plan_id}/days/{date}/move", summary="Apply a drag gesture")
async def move(plan_id: str, date: str, req: MoveRequest) -> dict:
    """
    Drop row ``active_key`` onto row ``over_key``.  Gestures on travel rows,
    unknown keys or drops onto the same row leave the order untouched.
    """
    facade, coordinator = get_services()
    try:
        entries, timeline = await facade.day_view(plan_id, date)
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    new_ids = resolve_drag(timeline, req.active_key, req.over_key)
    if new_ids is None:
        return {
            "committed": False,
            "changed": False,
            "schedules": [e.to_dict() for e in entries],
            "timeline": [item.to_dict() for item in timeline],
            "error": None,
        }
    try:
        outcome = await coordinator.reorder_and_rebuild(plan_id, date, new_ids)
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    return {**_ser_outcome(outcome), "changed": True}


@router.post("/plans/{plan_id}/days/{date}/renumber", summary="Close gaps in order")
async def renumber(plan_id: str, date: str) -> dict:
    _, coordinator = get_services()
    try:
        entries = await coordinator.renumber(plan_id, date)
    except ScheduleError as exc:
        raise _http_error(exc) from exc
    return {"schedules": [e.to_dict() for e in entries]}
