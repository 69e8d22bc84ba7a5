"""Storage accessor ABC. The pipeline reads and writes only through these methods."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from symposium.llm.interface import ProjectPlan


class Store(ABC):
    """Ownership-scoped access to projects, objectives, tasks, messages and cards.

    Rows are plain dicts. Lookups taking a user_id return None when the row
    exists but belongs to someone else.
    """

    # -- Users --

    @abstractmethod
    def get_user_by_token(self, api_token: str) -> dict | None:
        """Return {id, email} for an API token, or None."""

    @abstractmethod
    def get_credential(self, user_id: int) -> str | None:
        """Return the user's completion-service API key, or None if not configured."""

    # -- Objectives and tasks --

    @abstractmethod
    def get_objective(self, user_id: int, objective_id: int) -> dict | None:
        """Objective joined with its project.

        Keys: id, project_id, title, description, sequence_order,
        project_title, project_description.
        """

    @abstractmethod
    def get_task(self, user_id: int, task_id: int) -> dict | None:
        """Keys: id, objective_id, title, description, sequence_order, is_completed."""

    @abstractmethod
    def list_tasks(self, objective_id: int) -> list[dict]:
        """All tasks of an objective, ordered by sequence_order."""

    @abstractmethod
    def list_sequence_group(self, kind: str, parent_id: int) -> list[dict]:
        """Siblings of a sequence group as {id, sequence_order}.

        kind is SequenceKind.TASK (parent = objective) or
        SequenceKind.OBJECTIVE (parent = project).
        """

    @abstractmethod
    def apply_sequence_orders(self, kind: str, parent_id: int, orders: dict[int, int]) -> None:
        """Write new sequence_order values for several siblings atomically.

        Readers must never observe a partially applied renumbering.
        """

    # -- Messages --

    @abstractmethod
    def list_messages(self, objective_id: int, include_hidden: bool = False) -> list[dict]:
        """Messages of an objective, oldest first.

        Keys: id, objective_id, role, content, is_hidden, model_used, created_at.
        """

    @abstractmethod
    def add_message(
        self,
        objective_id: int,
        role: str,
        content: str,
        model_used: str | None = None,
    ) -> dict:
        """Append a message and return the stored row."""

    @abstractmethod
    def get_message(self, user_id: int, message_id: int) -> dict | None:
        """A message, if its objective belongs to user_id."""

    @abstractmethod
    def set_message_hidden(self, message_id: int, hidden: bool) -> dict:
        """Set is_hidden and return the updated row."""

    @abstractmethod
    def delete_message(self, message_id: int) -> bool:
        """Permanently remove a message. Returns False if it was already gone."""

    # -- Knowledge base --

    @abstractmethod
    def list_candidate_cards(self, user_id: int, active_tag_ids: tuple[int, ...]) -> list[dict]:
        """Cards that may enter a prompt: visible ones plus hidden ones carrying an active tag.

        Keys: id, title, content, is_hidden, tag_ids, updated_at. Callers
        re-check the inclusion rule and deduplicate.
        """

    @abstractmethod
    def create_card(self, user_id: int, title: str, content: str, is_hidden: bool = True) -> dict:
        """Create a content card and return the stored row."""

    # -- Planning --

    @abstractmethod
    def create_project_from_plan(self, user_id: int, plan: ProjectPlan) -> dict:
        """Persist a generated project with its objectives and tasks in one transaction.

        Returns the project row {id, title, description, created_at}.
        """
