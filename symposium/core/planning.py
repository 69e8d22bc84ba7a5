"""Project generation: a freeform description turned into project, objectives and tasks."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from symposium.core.constants import MAX_PROJECT_DESCRIPTION
from symposium.core.utils import ValidationError, require_text

if TYPE_CHECKING:
    from symposium.llm.interface import CompletionClient
    from symposium.storage.interface import Store

logger = logging.getLogger(__name__)


class ProjectPlanner:
    """Asks the completion service for a plan and stores it in one transaction."""

    def __init__(self, store: Store, client: CompletionClient):
        self.store = store
        self.client = client

    def generate(
        self,
        user_id: int,
        description: str,
        model_id: str,
        credential: str | None,
    ) -> dict:
        """Generate and persist a project.

        Returns:
            Dict with 'project' (stored row) and 'structure' (the plan as a dict).

        Raises:
            ValidationError: blank description or no credential configured.
            CompletionError: the service failed or returned an unusable plan.
        """
        text = require_text(description, "Project description", MAX_PROJECT_DESCRIPTION)
        if not credential:
            raise ValidationError("OpenRouter API key is required for project generation")

        plan = self.client.plan_structure(credential, model_id, text)
        project = self.store.create_project_from_plan(user_id, plan)

        logger.info(
            "Generated project #%d for user #%d: %d objectives, %d tasks",
            project["id"], user_id, len(plan.objectives),
            sum(len(o.tasks) for o in plan.objectives),
        )
        return {"project": project, "structure": plan.to_dict()}
