"""Conversation turns: persist the user's message, answer it, persist the answer.

A turn is gather -> compose -> complete -> persist, strictly in that order.
The user message is written before anything can fail on the completion side.
Any failure while producing the reply, short of a storage failure, becomes an
assistant message explaining it, so a turn never ends without a reply once a
credential is configured.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from symposium.core.constants import COMPLETION_FAILURE_TEMPLATE, MAX_MESSAGE_SIZE, MessageRole
from symposium.core.prompt import compose
from symposium.core.utils import normalize_tag_ids, require_text
from symposium.llm.interface import CompletionError, CompletionOutcome, Failure, Success
from symposium.storage.database import StorageError

if TYPE_CHECKING:
    from symposium.core.context import ContextGatherer
    from symposium.llm.interface import CompletionClient
    from symposium.storage.interface import Store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ConversationTurn:
    """One user message and the assistant reply, if one was generated."""
    user_message: dict
    assistant_message: dict | None = None

    def to_dict(self) -> dict:
        return {"userMessage": self.user_message, "assistantMessage": self.assistant_message}


class TurnPersister:
    """Orchestrates one chat request against an objective."""

    def __init__(self, store: Store, gatherer: ContextGatherer, client: CompletionClient):
        self.store = store
        self.gatherer = gatherer
        self.client = client

    def send_turn(
        self,
        user_id: int,
        objective_id: int,
        message_text: str,
        active_tag_ids: Iterable[int] = (),
        model_id: str = "",
        credential: str | None = None,
    ) -> ConversationTurn:
        """Store the user's message and, with a credential, the assistant's reply.

        Raises:
            ValidationError: blank message or malformed tag selection. Nothing is written.
            NotFoundError: objective missing or not owned by user_id. Nothing is written.
        """
        text = require_text(message_text, "Message content", MAX_MESSAGE_SIZE)
        active = normalize_tag_ids(active_tag_ids)
        self.gatherer.resolve_objective(user_id, objective_id)

        user_message = self.store.add_message(objective_id, MessageRole.USER, text)

        if not credential:
            logger.info("No completion credential for user #%d; stored user message only", user_id)
            return ConversationTurn(user_message=user_message)

        outcome = self._generate(user_id, objective_id, text, active, model_id, credential, user_message["id"])

        match outcome:
            case Success(result=result):
                assistant_message = self.store.add_message(
                    objective_id, MessageRole.ASSISTANT, result.content, model_used=result.model,
                )
            case Failure(reason=reason):
                assistant_message = self.store.add_message(
                    objective_id,
                    MessageRole.ASSISTANT,
                    COMPLETION_FAILURE_TEMPLATE.format(reason=reason),
                    model_used=model_id,
                )

        return ConversationTurn(user_message=user_message, assistant_message=assistant_message)

    def _generate(
        self,
        user_id: int,
        objective_id: int,
        text: str,
        active_tag_ids: tuple[int, ...],
        model_id: str,
        credential: str,
        current_message_id: int,
    ) -> CompletionOutcome:
        try:
            # The new question is the explicit current message, not part of the history.
            context = self.gatherer.gather(
                user_id,
                objective_id,
                active_tag_ids,
                user_message=text,
                exclude_message_ids=(current_message_id,),
            )
            system_prompt = compose(context)
            result = self.client.complete(credential, model_id, system_prompt, text)
        except StorageError:
            raise
        except CompletionError as e:
            logger.warning(
                "Completion failed for objective #%d (model %s): %s",
                objective_id, model_id, e, exc_info=True,
            )
            return Failure(reason=e.message, status_code=e.status_code)
        except Exception as e:
            logger.warning(
                "Reply generation failed for objective #%d (model %s)",
                objective_id, model_id, exc_info=True,
            )
            return Failure(reason=str(e) or "Unknown error")

        if result.usage:
            logger.info(
                "Completion for objective #%d used %d tokens (%d prompt, %d completion)",
                objective_id, result.usage.total_tokens,
                result.usage.prompt_tokens, result.usage.completion_tokens,
            )
        return Success(result=result)
