"""Completion client ABC. Implementations must provide complete() and plan_structure()."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field


class CompletionError(Exception):
    """Any failure talking to the completion service.

    status_code is the upstream HTTP status when there was one.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


@dataclass(frozen=True)
class TokenUsage:
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class CompletionResult:
    """Normalized completion. model is the id that was requested."""
    content: str
    model: str
    usage: TokenUsage | None = None


# -- Tagged outcome the turn pipeline branches on --

@dataclass(frozen=True)
class Success:
    result: CompletionResult


@dataclass(frozen=True)
class Failure:
    reason: str
    status_code: int | None = None


CompletionOutcome = Success | Failure


# -- Project planning --

@dataclass(frozen=True)
class PlannedTask:
    title: str
    description: str = ""


@dataclass(frozen=True)
class PlannedObjective:
    title: str
    description: str = ""
    tasks: list[PlannedTask] = field(default_factory=list)


@dataclass(frozen=True)
class ProjectPlan:
    title: str
    description: str = ""
    objectives: list[PlannedObjective] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> ProjectPlan:
        """Build a plan from parsed JSON. Raises CompletionError('invalid structure')."""
        try:
            title = data["title"]
            objectives = data["objectives"]
            if not isinstance(title, str) or not title.strip() or not isinstance(objectives, list):
                raise ValueError("title and objectives are required")
            return cls(
                title=title.strip(),
                description=(data.get("description") or "").strip(),
                objectives=[
                    PlannedObjective(
                        title=_required_title(obj),
                        description=(obj.get("description") or "").strip(),
                        tasks=[
                            PlannedTask(
                                title=_required_title(task),
                                description=(task.get("description") or "").strip(),
                            )
                            for task in obj.get("tasks") or []
                        ],
                    )
                    for obj in objectives
                ],
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CompletionError("invalid structure") from e

    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "objectives": [
                {
                    "title": o.title,
                    "description": o.description,
                    "tasks": [{"title": t.title, "description": t.description} for t in o.tasks],
                }
                for o in self.objectives
            ],
        }


def _required_title(item: dict) -> str:
    title = item["title"]
    if not isinstance(title, str) or not title.strip():
        raise ValueError("title is required")
    return title.strip()


class CompletionClient(ABC):
    """Abstract base for text-completion backends.

    The credential is per call: each user brings their own API key.
    """

    @abstractmethod
    def complete(
        self,
        credential: str,
        model_id: str,
        system_prompt: str,
        user_message: str,
    ) -> CompletionResult:
        """Send a system prompt plus user message and return the reply.

        Raises:
            CompletionError: on transport failure, non-2xx status, or empty output.
        """

    @abstractmethod
    def plan_structure(self, credential: str, model_id: str, description: str) -> ProjectPlan:
        """Ask the model for a JSON project breakdown.

        Raises:
            CompletionError: as complete(), or 'invalid structure' when the
                reply is not a well-formed plan.
        """

    def list_models(self, credential: str) -> list[dict]:
        """Models available to this credential. Default: none advertised."""
        return []

    def get_credits(self, credential: str) -> dict:
        """Remaining balance for this credential. Default: unknown."""
        return {"credits": None, "usage": None}
