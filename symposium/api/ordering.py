"""Drag-and-drop reordering of tasks within an objective and objectives within a project."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from symposium.api.utils import current_user_dependency
from symposium.core.services import Services


class ReorderBody(BaseModel):
    newOrder: int


def register_routes(router: APIRouter, svc: Services, **kw):
    current_user = current_user_dependency(svc)
    sequencer = svc.sequencer

    @router.put("/tasks/{task_id}/reorder")
    def api_reorder_task(task_id: int, body: ReorderBody, user: dict = Depends(current_user)):
        return sequencer.reorder_task(user["id"], task_id, body.newOrder)

    @router.put("/objectives/{objective_id}/reorder")
    def api_reorder_objective(
        objective_id: int, body: ReorderBody, user: dict = Depends(current_user),
    ):
        return sequencer.reorder_objective(user["id"], objective_id, body.newOrder)
