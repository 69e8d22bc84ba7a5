"""Symposium MCP Server. Entry point for objective chat, ordering and project generation."""

import logging
from contextlib import asynccontextmanager

from mcp.server.fastmcp import FastMCP

from symposium.config import load_config
from symposium.core.services import create_services
from symposium.core.utils import NotFoundError, ValidationError
from symposium.llm.interface import CompletionError
from symposium.storage.database import Database

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
)
logger = logging.getLogger("symposium")

_base_config = load_config()

# Populated by lifespan (stdio) or main() (http) before any tool executes.
_svc = None


def _init_services(svc):
    global _svc
    _svc = svc


def _acting_user() -> int:
    """The user every MCP tool acts on behalf of."""
    if _base_config.mcp_user_id is None:
        raise ValidationError("SYMPOSIUM_MCP_USER_ID is not set; MCP tools are disabled")
    return _base_config.mcp_user_id


# ============================================================
# Lifespan
# ============================================================

@asynccontextmanager
async def lifespan(server: FastMCP):
    """Connect to database, run migrations, create services."""
    db_instance = Database(_base_config.db)
    db_instance.connect()
    db_instance.run_migrations()

    _init_services(create_services(config=_base_config, db=db_instance))
    try:
        yield {}
    finally:
        db_instance.close()


mcp_kwargs = dict(
    name="symposium",
    instructions=(
        "Project planning assistant. Projects hold ordered objectives, objectives hold "
        "ordered tasks, and each objective has its own conversation with an LLM that "
        "sees the project, the task sequence, tagged knowledge-base cards and the "
        "visible history.\n"
        "\n"
        "Use send_message to talk inside an objective, reorder_task / reorder_objective "
        "to move items (positions are 1-based), and generate_project to turn a "
        "description into a new project."
    ),
    lifespan=lifespan,
)
if _base_config.transport == "http":
    mcp_kwargs["host"] = _base_config.http_host
    mcp_kwargs["port"] = _base_config.http_port

mcp = FastMCP(**mcp_kwargs)


# ============================================================
# Tool 1: send_message
# ============================================================

@mcp.tool()
def send_message(
    objective_id: int,
    content: str,
    active_tag_ids: list[int] | None = None,
    model: str | None = None,
) -> dict:
    """Send a chat message inside an objective and get the assistant's reply.

    The message is stored first. When an OpenRouter key is configured the
    assistant answers with the project, tasks, knowledge cards and visible
    history as context; a failed completion is stored as an apology message
    rather than raised.

    Args:
        objective_id: Objective whose conversation to continue.
        content: The message text.
        active_tag_ids: Tag ids whose hidden knowledge cards should be included.
        model: Model id. Defaults to SYMPOSIUM_DEFAULT_MODEL.
    """
    try:
        user_id = _acting_user()
        turn = _svc.turns.send_turn(
            user_id,
            objective_id,
            content,
            active_tag_ids=active_tag_ids or (),
            model_id=model or _svc.config.completion.default_model,
            credential=_svc.store.get_credential(user_id),
        )
        return turn.to_dict()
    except (ValidationError, NotFoundError) as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception("send_message failed")
        return {"error": f"Internal error: {e}"}


# ============================================================
# Tool 2: list_messages
# ============================================================

@mcp.tool()
def list_messages(objective_id: int) -> dict:
    """Full transcript of an objective, hidden messages included and flagged.

    Args:
        objective_id: Objective to read.
    """
    try:
        messages = _svc.message_manager.transcript(_acting_user(), objective_id)
        return {"objective_id": objective_id, "messages": messages}
    except (ValidationError, NotFoundError) as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception("list_messages failed")
        return {"error": f"Internal error: {e}"}


# ============================================================
# Tool 3: hide_message / message_to_card / delete_message
# ============================================================

@mcp.tool()
def hide_message(message_id: int) -> dict:
    """Toggle whether a message is hidden from future prompts. Nothing is deleted."""
    try:
        return _svc.message_manager.toggle_hidden(_acting_user(), message_id)
    except (ValidationError, NotFoundError) as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception("hide_message failed")
        return {"error": f"Internal error: {e}"}


@mcp.tool()
def message_to_card(message_id: int, title: str) -> dict:
    """Save a message into the knowledge base as a new (hidden) content card."""
    try:
        return _svc.message_manager.to_card(_acting_user(), message_id, title)
    except (ValidationError, NotFoundError) as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception("message_to_card failed")
        return {"error": f"Internal error: {e}"}


@mcp.tool()
def delete_message(message_id: int) -> dict:
    """Permanently delete a message. Prefer hide_message to keep it on record."""
    try:
        return _svc.message_manager.delete(_acting_user(), message_id)
    except (ValidationError, NotFoundError) as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception("delete_message failed")
        return {"error": f"Internal error: {e}"}


# ============================================================
# Tool 4: reorder
# ============================================================

@mcp.tool()
def reorder_task(task_id: int, new_position: int) -> dict:
    """Move a task to a 1-based position within its objective.

    Siblings between the old and new position shift by one; the order stays 1..N.
    """
    try:
        return _svc.sequencer.reorder_task(_acting_user(), task_id, new_position)
    except (ValidationError, NotFoundError) as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception("reorder_task failed")
        return {"error": f"Internal error: {e}"}


@mcp.tool()
def reorder_objective(objective_id: int, new_position: int) -> dict:
    """Move an objective to a 1-based position within its project."""
    try:
        return _svc.sequencer.reorder_objective(_acting_user(), objective_id, new_position)
    except (ValidationError, NotFoundError) as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception("reorder_objective failed")
        return {"error": f"Internal error: {e}"}


# ============================================================
# Tool 5: generate_project
# ============================================================

@mcp.tool()
def generate_project(description: str, model: str | None = None) -> dict:
    """Generate a project with ordered objectives and tasks from a description.

    Args:
        description: What the project is about, in plain words.
        model: Model id. Defaults to SYMPOSIUM_PLAN_MODEL.
    """
    try:
        user_id = _acting_user()
        return _svc.planner.generate(
            user_id,
            description,
            model_id=model or _svc.config.completion.plan_model,
            credential=_svc.store.get_credential(user_id),
        )
    except (ValidationError, NotFoundError, CompletionError) as e:
        return {"error": str(e)}
    except Exception as e:
        logger.exception("generate_project failed")
        return {"error": f"Internal error: {e}"}


# ============================================================
# Entry point
# ============================================================

def main():
    """Run the Symposium server."""
    if _base_config.transport == "http":
        import uvicorn
        from symposium.api import create_api

        # MCP's Starlette app is the parent: owns lifespan, serves /mcp
        mcp_app = mcp.streamable_http_app()
        _mcp_lifespan = mcp_app.router.lifespan_context

        # Connect and build services up front so the API can be mounted before start
        db_instance = Database(_base_config.db)
        db_instance.connect()
        db_instance.run_migrations()

        svc = create_services(config=_base_config, db=db_instance)
        _init_services(svc)

        mcp_app.mount("/api", create_api(svc))

        @asynccontextmanager
        async def combined_lifespan(app):
            try:
                async with _mcp_lifespan(app) as state:
                    yield state
            finally:
                db_instance.close()

        mcp_app.router.lifespan_context = combined_lifespan

        logger.info(
            "Starting Symposium (HTTP on %s:%d — MCP at /mcp, API at /api)",
            _base_config.http_host, _base_config.http_port,
        )
        uvicorn.run(mcp_app, host=_base_config.http_host, port=_base_config.http_port)
    else:
        logger.info("Starting Symposium MCP server (stdio)")
        mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
