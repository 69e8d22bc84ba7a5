"""Objective chat endpoints: send a turn, read the transcript."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import AliasChoices, BaseModel, Field

from symposium.api.utils import current_user_dependency
from symposium.core.services import Services


class SendMessageBody(BaseModel):
    content: str
    # The web client sends selectedTags.
    activeTagIds: list[int] = Field(
        default_factory=list, validation_alias=AliasChoices("activeTagIds", "selectedTags"),
    )
    model: str | None = None


def register_routes(router: APIRouter, svc: Services, **kw):
    current_user = current_user_dependency(svc)
    default_model = svc.config.completion.default_model

    @router.post("/objectives/{objective_id}/messages", status_code=201)
    def api_send_message(
        objective_id: int,
        body: SendMessageBody,
        user: dict = Depends(current_user),
    ):
        turn = svc.turns.send_turn(
            user["id"],
            objective_id,
            body.content,
            active_tag_ids=body.activeTagIds,
            model_id=body.model or default_model,
            credential=svc.store.get_credential(user["id"]),
        )
        return turn.to_dict()

    @router.get("/objectives/{objective_id}/messages")
    def api_list_messages(objective_id: int, user: dict = Depends(current_user)):
        messages = svc.message_manager.transcript(user["id"], objective_id)
        return {"objective_id": objective_id, "messages": messages}
