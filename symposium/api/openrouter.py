"""Vendor catalogue: models and remaining credits for the caller's API key."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from symposium.api.utils import current_user_dependency, require_credential
from symposium.core.services import Services


def register_routes(router: APIRouter, svc: Services, **kw):
    current_user = current_user_dependency(svc)
    client = svc.completion

    @router.get("/openrouter/models")
    def api_list_models(user: dict = Depends(current_user)):
        credential = require_credential(svc, user["id"])
        return {"models": client.list_models(credential)}

    @router.get("/openrouter/credits")
    def api_get_credits(user: dict = Depends(current_user)):
        return client.get_credits(require_credential(svc, user["id"]))
