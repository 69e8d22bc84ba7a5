"""Sequence reindexing for tasks within an objective and objectives within a project.

Moving one sibling to a new 1-based position shifts every sibling between the
old and new position by one, so the group stays a dense 1..N permutation.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING

from symposium.core.constants import SequenceKind
from symposium.core.utils import InvalidPositionError, NotFoundError

if TYPE_CHECKING:
    from symposium.storage.interface import Store

logger = logging.getLogger(__name__)


def reorder(items: Iterable[Mapping], item_id: int, new_position: int) -> dict[int, int]:
    """Compute the sequence orders of a sibling group after moving one item.

    Args:
        items: Every sibling in the group, each with 'id' and 'sequence_order'.
        item_id: The item being moved.
        new_position: Target 1-based position, 1 <= new_position <= N.

    Returns:
        Mapping of item id -> new sequence_order for every item in the group.

    Current positions are the ranks of the items by (sequence_order, id), so a
    group that arrives with gaps still comes back as exactly 1..N.
    """
    ordered = sorted(items, key=lambda it: (it["sequence_order"], it["id"]))
    count = len(ordered)

    if isinstance(new_position, bool) or not isinstance(new_position, int):
        raise InvalidPositionError(f"position must be an integer, got {new_position!r}")
    if not 1 <= new_position <= count:
        raise InvalidPositionError(f"position {new_position} is outside 1..{count}")

    positions = {it["id"]: rank for rank, it in enumerate(ordered, start=1)}
    if item_id not in positions:
        raise NotFoundError(f"item {item_id} is not a member of this group")

    old_position = positions[item_id]
    result: dict[int, int] = {}
    for sibling_id, pos in positions.items():
        if sibling_id == item_id:
            result[sibling_id] = new_position
        elif new_position > old_position and old_position < pos <= new_position:
            result[sibling_id] = pos - 1
        elif new_position < old_position and new_position <= pos < old_position:
            result[sibling_id] = pos + 1
        else:
            result[sibling_id] = pos
    return result


class SequenceManager:
    """Applies reorder() to stored tasks and objectives, one atomic write per move."""

    def __init__(self, store: Store):
        self.store = store

    def reorder_task(self, user_id: int, task_id: int, new_position: int) -> dict:
        """Move a task within its objective. Returns the task with its new order."""
        task = self.store.get_task(user_id, task_id)
        if task is None:
            raise NotFoundError(f"Task {task_id} not found")
        self._move(SequenceKind.TASK, task["objective_id"], task_id, new_position)
        return self.store.get_task(user_id, task_id)

    def reorder_objective(self, user_id: int, objective_id: int, new_position: int) -> dict:
        """Move an objective within its project. Returns the objective with its new order."""
        objective = self.store.get_objective(user_id, objective_id)
        if objective is None:
            raise NotFoundError(f"Objective {objective_id} not found")
        self._move(SequenceKind.OBJECTIVE, objective["project_id"], objective_id, new_position)
        return self.store.get_objective(user_id, objective_id)

    def _move(self, kind: str, parent_id: int, item_id: int, new_position: int) -> None:
        siblings = self.store.list_sequence_group(kind, parent_id)
        current = {s["id"]: s["sequence_order"] for s in siblings}
        orders = reorder(siblings, item_id, new_position)

        changed = {sid: order for sid, order in orders.items() if current.get(sid) != order}
        if not changed:
            return

        self.store.apply_sequence_orders(kind, parent_id, changed)
        logger.info(
            "Moved %s #%d to position %d (%d siblings renumbered)",
            kind, item_id, new_position, len(changed),
        )
