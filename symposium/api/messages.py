"""Message endpoints — visibility toggle, save to knowledge base, delete."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from symposium.api.utils import current_user_dependency
from symposium.core.services import Services


class ToCardBody(BaseModel):
    title: str


def register_routes(router: APIRouter, svc: Services, **kw):
    current_user = current_user_dependency(svc)
    mgr = svc.message_manager

    @router.put("/messages/{message_id}/hide")
    def api_toggle_hidden(message_id: int, user: dict = Depends(current_user)):
        return mgr.toggle_hidden(user["id"], message_id)

    @router.post("/messages/{message_id}/to-card", status_code=201)
    def api_message_to_card(message_id: int, body: ToCardBody, user: dict = Depends(current_user)):
        return mgr.to_card(user["id"], message_id, body.title)

    @router.delete("/messages/{message_id}")
    def api_delete_message(message_id: int, user: dict = Depends(current_user)):
        return mgr.delete(user["id"], message_id)
