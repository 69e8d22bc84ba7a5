"""Message management: transcript listing, visibility, conversion to content cards, delete."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from symposium.core.constants import MAX_TITLE_LENGTH
from symposium.core.utils import NotFoundError, require_text

if TYPE_CHECKING:
    from symposium.storage.interface import Store

logger = logging.getLogger(__name__)


class MessageManager:
    """Ownership-scoped operations on stored chat messages."""

    def __init__(self, store: Store):
        self.store = store

    def transcript(self, user_id: int, objective_id: int) -> list[dict]:
        """Every message of an objective, hidden ones included, oldest first."""
        if self.store.get_objective(user_id, objective_id) is None:
            raise NotFoundError(f"Objective {objective_id} not found")
        return self.store.list_messages(objective_id, include_hidden=True)

    def toggle_hidden(self, user_id: int, message_id: int) -> dict:
        """Flip is_hidden. Hidden messages stay stored but leave future prompts."""
        message = self._owned(user_id, message_id)
        updated = self.store.set_message_hidden(message_id, not message["is_hidden"])
        logger.info("Message #%d is_hidden=%s", message_id, updated["is_hidden"])
        return updated

    def to_card(self, user_id: int, message_id: int, title: str) -> dict:
        """Copy a message into a new content card. The card starts hidden."""
        card_title = require_text(title, "Card title", MAX_TITLE_LENGTH)
        message = self._owned(user_id, message_id)
        card = self.store.create_card(user_id, card_title, message["content"], is_hidden=True)
        logger.info("Message #%d saved as card #%d", message_id, card["id"])
        return card

    def delete(self, user_id: int, message_id: int) -> dict:
        """Permanently delete a message. Use toggle_hidden to keep it on record."""
        self._owned(user_id, message_id)
        self.store.delete_message(message_id)
        logger.info("Deleted message #%d", message_id)
        return {"deleted": True, "id": message_id}

    def _owned(self, user_id: int, message_id: int) -> dict:
        message = self.store.get_message(user_id, message_id)
        if message is None:
            raise NotFoundError(f"Message {message_id} not found")
        return message
