"""PostgreSQL implementation of the Store accessor contract."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from symposium.core.constants import SequenceKind
from symposium.storage.database import Database, StorageError
from symposium.storage.interface import Store

if TYPE_CHECKING:
    from symposium.llm.interface import ProjectPlan

logger = logging.getLogger(__name__)

# kind -> (table, parent column)
_SEQUENCE_TABLES = {
    SequenceKind.TASK: ("tasks", "objective_id"),
    SequenceKind.OBJECTIVE: ("objectives", "project_id"),
}

_MESSAGE_COLUMNS = "id, objective_id, role, content, is_hidden, model_used, created_at"


def _sequence_table(kind: str) -> tuple[str, str]:
    try:
        return _SEQUENCE_TABLES[kind]
    except KeyError:
        raise ValueError(f"Invalid sequence kind: {kind}. Must be one of: {list(_SEQUENCE_TABLES)}") from None


class PostgresStore(Store):
    """Store backed by the pooled Database."""

    def __init__(self, db: Database):
        self.db = db

    # -- Users --

    def get_user_by_token(self, api_token: str) -> dict | None:
        return self.db.execute_one(
            "SELECT id, email FROM users WHERE api_token = %s", (api_token,),
        )

    def get_credential(self, user_id: int) -> str | None:
        row = self.db.execute_one(
            "SELECT openrouter_api_key FROM users WHERE id = %s", (user_id,),
        )
        if not row or not row["openrouter_api_key"]:
            return None
        return row["openrouter_api_key"]

    # -- Objectives and tasks --

    def get_objective(self, user_id: int, objective_id: int) -> dict | None:
        return self.db.execute_one(
            """
            SELECT o.id, o.project_id, o.title, o.description, o.sequence_order,
                   p.title AS project_title, p.description AS project_description
            FROM objectives o
            JOIN projects p ON o.project_id = p.id
            WHERE o.id = %s AND p.user_id = %s
            """,
            (objective_id, user_id),
        )

    def get_task(self, user_id: int, task_id: int) -> dict | None:
        return self.db.execute_one(
            """
            SELECT t.id, t.objective_id, t.title, t.description,
                   t.sequence_order, t.is_completed
            FROM tasks t
            JOIN objectives o ON t.objective_id = o.id
            JOIN projects p ON o.project_id = p.id
            WHERE t.id = %s AND p.user_id = %s
            """,
            (task_id, user_id),
        )

    def list_tasks(self, objective_id: int) -> list[dict]:
        return self.db.execute(
            """
            SELECT id, objective_id, title, description, sequence_order, is_completed
            FROM tasks
            WHERE objective_id = %s
            ORDER BY sequence_order ASC, id ASC
            """,
            (objective_id,),
        )

    def list_sequence_group(self, kind: str, parent_id: int) -> list[dict]:
        table, parent_col = _sequence_table(kind)
        return self.db.execute(
            f"SELECT id, sequence_order FROM {table} WHERE {parent_col} = %s "
            f"ORDER BY sequence_order ASC, id ASC",
            (parent_id,),
        )

    def apply_sequence_orders(self, kind: str, parent_id: int, orders: dict[int, int]) -> None:
        """One UPDATE statement in one transaction; the unique constraint is deferred."""
        if not orders:
            return
        table, parent_col = _sequence_table(kind)
        ids = list(orders.keys())
        values = [orders[i] for i in ids]

        with self.db.transaction():
            updated = self.db.execute(
                f"""
                UPDATE {table} AS t
                SET sequence_order = v.sequence_order, updated_at = NOW()
                FROM unnest(%s::int[], %s::int[]) AS v(id, sequence_order)
                WHERE t.id = v.id AND t.{parent_col} = %s
                RETURNING t.id
                """,
                (ids, values, parent_id),
            )
            if len(updated) != len(ids):
                raise StorageError(
                    f"{table} renumbering touched {len(updated)} of {len(ids)} rows; "
                    f"group {parent_id} changed concurrently"
                )

    # -- Messages --

    def list_messages(self, objective_id: int, include_hidden: bool = False) -> list[dict]:
        hidden_filter = "" if include_hidden else " AND is_hidden = FALSE"
        return self.db.execute(
            f"""
            SELECT {_MESSAGE_COLUMNS}
            FROM messages
            WHERE objective_id = %s{hidden_filter}
            ORDER BY created_at ASC, id ASC
            """,
            (objective_id,),
        )

    def add_message(
        self,
        objective_id: int,
        role: str,
        content: str,
        model_used: str | None = None,
    ) -> dict:
        with self.db.transaction():
            row = self.db.execute_one(
                f"""
                INSERT INTO messages (objective_id, role, content, model_used)
                VALUES (%s, %s, %s, %s)
                RETURNING {_MESSAGE_COLUMNS}
                """,
                (objective_id, role, content, model_used),
            )
        logger.info("Stored %s message #%d for objective #%d", role, row["id"], objective_id)
        return row

    def get_message(self, user_id: int, message_id: int) -> dict | None:
        return self.db.execute_one(
            """
            SELECT m.id, m.objective_id, m.role, m.content, m.is_hidden,
                   m.model_used, m.created_at
            FROM messages m
            JOIN objectives o ON m.objective_id = o.id
            JOIN projects p ON o.project_id = p.id
            WHERE m.id = %s AND p.user_id = %s
            """,
            (message_id, user_id),
        )

    def set_message_hidden(self, message_id: int, hidden: bool) -> dict:
        with self.db.transaction():
            row = self.db.execute_one(
                f"""
                UPDATE messages SET is_hidden = %s WHERE id = %s
                RETURNING {_MESSAGE_COLUMNS}
                """,
                (hidden, message_id),
            )
        return row

    def delete_message(self, message_id: int) -> bool:
        with self.db.transaction():
            row = self.db.execute_one(
                "DELETE FROM messages WHERE id = %s RETURNING id", (message_id,),
            )
        return row is not None

    # -- Knowledge base --

    def list_candidate_cards(self, user_id: int, active_tag_ids: tuple[int, ...]) -> list[dict]:
        return self.db.execute(
            """
            SELECT cc.id, cc.title, cc.content, cc.is_hidden, cc.updated_at,
                   COALESCE(
                       array_agg(cct.tag_id) FILTER (WHERE cct.tag_id IS NOT NULL),
                       '{}'
                   ) AS tag_ids
            FROM content_cards cc
            LEFT JOIN content_card_tags cct ON cct.content_card_id = cc.id
            WHERE cc.user_id = %s
            GROUP BY cc.id
            HAVING cc.is_hidden = FALSE
                OR COALESCE(bool_or(cct.tag_id = ANY(%s::int[])), FALSE)
            ORDER BY cc.updated_at DESC, cc.id ASC
            """,
            (user_id, list(active_tag_ids)),
        )

    def create_card(self, user_id: int, title: str, content: str, is_hidden: bool = True) -> dict:
        with self.db.transaction():
            row = self.db.execute_one(
                """
                INSERT INTO content_cards (user_id, title, content, is_hidden)
                VALUES (%s, %s, %s, %s)
                RETURNING id, title, content, is_hidden, created_at, updated_at
                """,
                (user_id, title, content, is_hidden),
            )
        return row

    # -- Planning --

    def create_project_from_plan(self, user_id: int, plan: ProjectPlan) -> dict:
        with self.db.transaction():
            project = self.db.execute_one(
                """
                INSERT INTO projects (user_id, title, description)
                VALUES (%s, %s, %s)
                RETURNING id, title, description, created_at, updated_at
                """,
                (user_id, plan.title, plan.description or None),
            )
            for obj_order, objective in enumerate(plan.objectives, start=1):
                obj_row = self.db.execute_one(
                    """
                    INSERT INTO objectives (project_id, title, description, sequence_order)
                    VALUES (%s, %s, %s, %s)
                    RETURNING id
                    """,
                    (project["id"], objective.title, objective.description or None, obj_order),
                )
                for task_order, task in enumerate(objective.tasks, start=1):
                    self.db.execute(
                        """
                        INSERT INTO tasks (objective_id, title, description, sequence_order)
                        VALUES (%s, %s, %s, %s)
                        """,
                        (obj_row["id"], task.title, task.description or None, task_order),
                    )
        return project
