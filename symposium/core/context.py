"""Context gathering: objective lineage plus knowledge base, as an immutable snapshot.

The snapshot is everything the prompt composer needs. Ownership is checked
here; it is the only access-control boundary inside the chat pipeline.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from symposium.core.utils import NotFoundError, normalize_tag_ids

if TYPE_CHECKING:
    from symposium.storage.interface import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Heading:
    """Title and optional description of a project or objective."""
    title: str
    description: str = ""


@dataclass(frozen=True)
class TaskEntry:
    position: int  # 1-based rank within the objective
    title: str
    description: str
    completed: bool


@dataclass(frozen=True)
class HistoryEntry:
    role: str  # "user" | "assistant"
    content: str


@dataclass(frozen=True)
class CardEntry:
    title: str
    content: str


@dataclass(frozen=True)
class Context:
    """Snapshot of everything that goes into one system prompt."""
    project: Heading
    objective: Heading
    tasks: tuple[TaskEntry, ...] = ()
    messages: tuple[HistoryEntry, ...] = ()
    cards: tuple[CardEntry, ...] = ()
    user_message: str = ""


def card_is_included(card: dict, active_tag_ids: Iterable[int]) -> bool:
    """Visible cards always count; hidden ones only when they carry an active tag."""
    if not card.get("is_hidden"):
        return True
    return bool(set(card.get("tag_ids") or ()) & set(active_tag_ids))


class ContextGatherer:
    """Reads project/objective/tasks/messages/cards for one chat request."""

    def __init__(self, store: Store):
        self.store = store

    def resolve_objective(self, user_id: int, objective_id: int) -> dict:
        """Return the objective row joined with its project, or raise NotFoundError."""
        objective = self.store.get_objective(user_id, objective_id)
        if objective is None:
            raise NotFoundError(f"Objective {objective_id} not found")
        return objective

    def gather(
        self,
        user_id: int,
        objective_id: int,
        active_tag_ids: Iterable[int] = (),
        user_message: str = "",
        exclude_message_ids: Iterable[int] = (),
    ) -> Context:
        """Build the context snapshot for a chat request.

        Args:
            user_id: Caller; must own the objective.
            objective_id: Objective whose transcript and tasks are used.
            active_tag_ids: Tags that force-include otherwise hidden cards.
            user_message: The message being answered.
            exclude_message_ids: Messages to leave out of the history.
        """
        active = normalize_tag_ids(active_tag_ids)
        objective = self.resolve_objective(user_id, objective_id)

        task_rows = sorted(
            self.store.list_tasks(objective_id),
            key=lambda r: (r["sequence_order"], r["id"]),
        )
        tasks = tuple(
            TaskEntry(
                position=i,
                title=r["title"],
                description=r.get("description") or "",
                completed=bool(r.get("is_completed")),
            )
            for i, r in enumerate(task_rows, start=1)
        )

        excluded = set(exclude_message_ids)
        message_rows = sorted(
            self.store.list_messages(objective_id, include_hidden=False),
            key=lambda r: (r["created_at"], r["id"]),
        )
        messages = tuple(
            HistoryEntry(role=r["role"], content=r["content"])
            for r in message_rows
            if not r.get("is_hidden") and r["id"] not in excluded
        )

        cards = tuple(
            CardEntry(title=r["title"], content=r["content"])
            for r in self._select_cards(user_id, active)
        )

        logger.debug(
            "Gathered context for objective #%d: %d tasks, %d messages, %d cards",
            objective_id, len(tasks), len(messages), len(cards),
        )
        return Context(
            project=Heading(
                title=objective["project_title"],
                description=objective.get("project_description") or "",
            ),
            objective=Heading(
                title=objective["title"],
                description=objective.get("description") or "",
            ),
            tasks=tasks,
            messages=messages,
            cards=cards,
            user_message=user_message,
        )

    def _select_cards(self, user_id: int, active: tuple[int, ...]) -> list[dict]:
        """Apply the inclusion rule, dedupe by id, most recently updated first."""
        seen: set[int] = set()
        selected = []
        for card in self.store.list_candidate_cards(user_id, active):
            if card["id"] in seen or not card_is_included(card, active):
                continue
            seen.add(card["id"])
            selected.append(card)
        # Stable sort keeps storage order among equal timestamps.
        selected.sort(key=lambda c: c["updated_at"], reverse=True)
        return selected
