"""
modules/schedule/drag.py
--------------------------
Drag interaction adapter — turns a sortable-list gesture into a new
visit-id order without touching any UI toolkit.

Only visit rows are draggable.  Travel rows have no identity that
survives a rebuild, so gestures that start or end on one are ignored.
"""

from __future__ import annotations

from typing import Optional, Sequence, TypeVar

from modules.schedule.timeline import TimelineItem, VisitItem

T = TypeVar("T")


def move_item(items: Sequence[T], old_index: int, new_index: int) -> list[T]:
    """
    Return a copy of ``items`` with the element at ``old_index`` moved to
    ``new_index`` (remove-then-insert; everything else keeps its relative
    order).  Raises IndexError for out-of-range indices.
    """
    n = len(items)
    if not (0 <= old_index < n):
        raise IndexError(f"old_index {old_index} out of range for {n} items")
    if not (0 <= new_index < n):
        raise IndexError(f"new_index {new_index} out of range for {n} items")

    result = list(items)
    moved = result.pop(old_index)
    result.insert(new_index, moved)
    return result


def resolve_drag(
    timeline: Sequence[TimelineItem],
    active_key: str,
    over_key: Optional[str],
) -> Optional[list[str]]:
    """
    Map a drop of row ``active_key`` onto row ``over_key`` to the new
    visit-id order.

    Returns None when nothing should change: dropped on itself, dropped
    outside the list, or either key is unknown or a travel row.
    """
    if over_key is None or active_key == over_key:
        return None

    visits = [item for item in timeline if isinstance(item, VisitItem)]
    keys = [v.key for v in visits]
    if active_key not in keys or over_key not in keys:
        return None

    ids = [v.entry.id for v in visits]
    return move_item(ids, keys.index(active_key), keys.index(over_key))
