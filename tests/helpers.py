"""Shared test helpers for Symposium tests."""

from datetime import datetime, timedelta, timezone

from symposium.core.constants import SequenceKind
from symposium.llm.interface import (
    CompletionClient, CompletionError, CompletionResult, PlannedObjective, PlannedTask,
    ProjectPlan, TokenUsage,
)
from symposium.storage.interface import Store

_EPOCH = datetime(2024, 1, 1, tzinfo=timezone.utc)


class InMemoryStore(Store):
    """Dict-backed Store with seeding helpers. Ownership follows project.user_id."""

    def __init__(self):
        self.users: dict[int, dict] = {}
        self.projects: dict[int, dict] = {}
        self.objectives: dict[int, dict] = {}
        self.tasks: dict[int, dict] = {}
        self.messages: dict[int, dict] = {}
        self.cards: dict[int, dict] = {}
        self.sequence_writes: list[tuple[str, int, dict]] = []
        self._ids = 0
        self._ticks = 0

    def _next_id(self) -> int:
        self._ids += 1
        return self._ids

    def _now(self) -> datetime:
        self._ticks += 1
        return _EPOCH + timedelta(seconds=self._ticks)

    # -- Seeding --

    def seed_user(self, token: str = "token-1", credential: str | None = "sk-or-test") -> int:
        uid = self._next_id()
        self.users[uid] = {
            "id": uid, "email": f"user{uid}@example.com",
            "api_token": token, "openrouter_api_key": credential,
        }
        return uid

    def seed_project(self, user_id: int, title: str = "Launch", description: str = "") -> int:
        pid = self._next_id()
        self.projects[pid] = {"id": pid, "user_id": user_id, "title": title, "description": description}
        return pid

    def seed_objective(self, project_id: int, title: str = "Plan", description: str = "",
                       sequence_order: int | None = None) -> int:
        oid = self._next_id()
        if sequence_order is None:
            sequence_order = sum(1 for o in self.objectives.values() if o["project_id"] == project_id) + 1
        self.objectives[oid] = {
            "id": oid, "project_id": project_id, "title": title,
            "description": description, "sequence_order": sequence_order,
        }
        return oid

    def seed_task(self, objective_id: int, title: str, description: str = "",
                  sequence_order: int | None = None, is_completed: bool = False) -> int:
        tid = self._next_id()
        if sequence_order is None:
            sequence_order = sum(1 for t in self.tasks.values() if t["objective_id"] == objective_id) + 1
        self.tasks[tid] = {
            "id": tid, "objective_id": objective_id, "title": title, "description": description,
            "sequence_order": sequence_order, "is_completed": is_completed,
        }
        return tid

    def seed_message(self, objective_id: int, role: str, content: str, is_hidden: bool = False) -> int:
        row = self.add_message(objective_id, role, content)
        row["is_hidden"] = is_hidden
        return row["id"]

    def seed_card(self, user_id: int, title: str, content: str, is_hidden: bool = False,
                  tag_ids: tuple[int, ...] = ()) -> int:
        cid = self._next_id()
        self.cards[cid] = {
            "id": cid, "user_id": user_id, "title": title, "content": content,
            "is_hidden": is_hidden, "tag_ids": list(tag_ids), "updated_at": self._now(),
        }
        return cid

    def _owner_of_objective(self, objective_id: int) -> int | None:
        obj = self.objectives.get(objective_id)
        if obj is None:
            return None
        return self.projects[obj["project_id"]]["user_id"]

    # -- Store --

    def get_user_by_token(self, api_token):
        for user in self.users.values():
            if user["api_token"] == api_token:
                return {"id": user["id"], "email": user["email"]}
        return None

    def get_credential(self, user_id):
        user = self.users.get(user_id)
        return user["openrouter_api_key"] if user else None

    def get_objective(self, user_id, objective_id):
        if self._owner_of_objective(objective_id) != user_id:
            return None
        obj = self.objectives[objective_id]
        project = self.projects[obj["project_id"]]
        return {
            **obj,
            "project_title": project["title"],
            "project_description": project["description"],
        }

    def get_task(self, user_id, task_id):
        task = self.tasks.get(task_id)
        if task is None or self._owner_of_objective(task["objective_id"]) != user_id:
            return None
        return dict(task)

    def list_tasks(self, objective_id):
        rows = [dict(t) for t in self.tasks.values() if t["objective_id"] == objective_id]
        return sorted(rows, key=lambda r: (r["sequence_order"], r["id"]))

    def list_sequence_group(self, kind, parent_id):
        if kind == SequenceKind.TASK:
            rows = [t for t in self.tasks.values() if t["objective_id"] == parent_id]
        else:
            rows = [o for o in self.objectives.values() if o["project_id"] == parent_id]
        return [{"id": r["id"], "sequence_order": r["sequence_order"]} for r in rows]

    def apply_sequence_orders(self, kind, parent_id, orders):
        table = self.tasks if kind == SequenceKind.TASK else self.objectives
        self.sequence_writes.append((kind, parent_id, dict(orders)))
        for item_id, order in orders.items():
            table[item_id]["sequence_order"] = order

    def list_messages(self, objective_id, include_hidden=False):
        rows = [
            dict(m) for m in self.messages.values()
            if m["objective_id"] == objective_id and (include_hidden or not m["is_hidden"])
        ]
        return sorted(rows, key=lambda r: (r["created_at"], r["id"]))

    def add_message(self, objective_id, role, content, model_used=None):
        mid = self._next_id()
        row = {
            "id": mid, "objective_id": objective_id, "role": role, "content": content,
            "is_hidden": False, "model_used": model_used, "created_at": self._now(),
        }
        self.messages[mid] = row
        return row

    def get_message(self, user_id, message_id):
        msg = self.messages.get(message_id)
        if msg is None or self._owner_of_objective(msg["objective_id"]) != user_id:
            return None
        return dict(msg)

    def set_message_hidden(self, message_id, hidden):
        self.messages[message_id]["is_hidden"] = hidden
        return dict(self.messages[message_id])

    def delete_message(self, message_id):
        return self.messages.pop(message_id, None) is not None

    def list_candidate_cards(self, user_id, active_tag_ids):
        active = set(active_tag_ids)
        rows = [
            dict(c) for c in self.cards.values()
            if c["user_id"] == user_id and (not c["is_hidden"] or active & set(c["tag_ids"]))
        ]
        return sorted(rows, key=lambda r: r["updated_at"], reverse=True)

    def create_card(self, user_id, title, content, is_hidden=True):
        cid = self.seed_card(user_id, title, content, is_hidden=is_hidden)
        return dict(self.cards[cid])

    def create_project_from_plan(self, user_id, plan):
        pid = self.seed_project(user_id, plan.title, plan.description)
        for objective in plan.objectives:
            oid = self.seed_objective(pid, objective.title, objective.description)
            for task in objective.tasks:
                self.seed_task(oid, task.title, task.description)
        return dict(self.projects[pid])


class StubCompletionClient(CompletionClient):
    """Returns a canned reply and records every call."""

    def __init__(self, response: str = "Hello!", plan: ProjectPlan | None = None):
        self._response = response
        self._plan = plan or SAMPLE_PLAN
        self.calls: list[dict] = []

    def complete(self, credential, model_id, system_prompt, user_message):
        self.calls.append({
            "credential": credential, "model_id": model_id,
            "system_prompt": system_prompt, "user_message": user_message,
        })
        return CompletionResult(
            content=self._response,
            model=model_id,
            usage=TokenUsage(prompt_tokens=10, completion_tokens=2, total_tokens=12),
        )

    def plan_structure(self, credential, model_id, description):
        self.calls.append({"credential": credential, "model_id": model_id, "description": description})
        return self._plan

    def list_models(self, credential):
        return [{"id": "m1", "name": "Model One"}]

    def get_credits(self, credential):
        return {"credits": 4.5, "usage": 0.5}


class ExplodingCompletionClient(CompletionClient):
    """Always raises CompletionError."""

    def __init__(self, message: str = "OpenRouter API error: 503 - Service Unavailable", status_code: int = 503):
        self._message = message
        self._status_code = status_code

    def complete(self, credential, model_id, system_prompt, user_message):
        raise CompletionError(self._message, status_code=self._status_code)

    def plan_structure(self, credential, model_id, description):
        raise CompletionError("invalid structure")


SAMPLE_PLAN = ProjectPlan(
    title="Garden Shed",
    description="Build a small shed",
    objectives=[
        PlannedObjective(
            title="Design",
            tasks=[PlannedTask("Measure site"), PlannedTask("Draw plans", "Scale 1:20")],
        ),
        PlannedObjective(title="Build", tasks=[PlannedTask("Pour foundation")]),
    ],
)
