"""modules/schedule — day timeline, drag reordering and visit CRUD."""

from modules.schedule.errors import (
    ScheduleError,
    ValidationError,
    NotFoundError,
    TransientWriteError,
    MutationInProgressError,
    StorageUnavailableError,
)
from modules.schedule.timeline import (
    VisitItem,
    TravelItem,
    TimelineItem,
    build_timeline,
    sort_entries,
    group_by_date,
    visit_ids,
)
from modules.schedule.drag import move_item, resolve_drag
from modules.schedule.repository import (
    ScheduleRepository,
    InMemoryScheduleRepository,
    PostgresScheduleRepository,
    get_repository,
    set_repository,
)
from modules.schedule.guard import LocalDayGuard, RedisDayGuard, build_guard
from modules.schedule.reorder import ReorderCoordinator, ReorderOutcome, plan_writes
from modules.schedule.facade import ScheduleFacade

__all__ = [
    "ScheduleError",
    "ValidationError",
    "NotFoundError",
    "TransientWriteError",
    "MutationInProgressError",
    "StorageUnavailableError",
    "VisitItem",
    "TravelItem",
    "TimelineItem",
    "build_timeline",
    "sort_entries",
    "group_by_date",
    "visit_ids",
    "move_item",
    "resolve_drag",
    "ScheduleRepository",
    "InMemoryScheduleRepository",
    "PostgresScheduleRepository",
    "get_repository",
    "set_repository",
    "LocalDayGuard",
    "RedisDayGuard",
    "build_guard",
    "ReorderCoordinator",
    "ReorderOutcome",
    "plan_writes",
    "ScheduleFacade",
]
