"""Project generation from a freeform description."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from symposium.api.utils import current_user_dependency
from symposium.core.services import Services


class GenerateProjectBody(BaseModel):
    description: str
    model: str | None = None


def register_routes(router: APIRouter, svc: Services, **kw):
    current_user = current_user_dependency(svc)
    plan_model = svc.config.completion.plan_model

    @router.post("/projects/generate", status_code=201)
    def api_generate_project(body: GenerateProjectBody, user: dict = Depends(current_user)):
        return svc.planner.generate(
            user["id"],
            body.description,
            model_id=body.model or plan_model,
            credential=svc.store.get_credential(user["id"]),
        )
