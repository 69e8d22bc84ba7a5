"""Symposium REST API — endpoints for the web client.

Split into domain modules under symposium/api/. Each module exports a
register_routes(router, svc) function that adds its endpoints.
"""

from __future__ import annotations

import logging

from fastapi import Depends, FastAPI, APIRouter, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from symposium import __version__
from symposium.core.services import Services
from symposium.core.utils import NotFoundError, ValidationError
from symposium.llm.interface import CompletionError
from symposium.storage.database import StorageError

logger = logging.getLogger(__name__)


def create_api(svc: Services) -> FastAPI:
    """Build the REST API as a FastAPI app.

    Designed to be mounted as a sub-app on the MCP Starlette parent.
    No lifespan needed — the parent handles DB lifecycle.
    """
    db = svc.db
    config = svc.config

    def _release_db_conn():
        """Release the thread's pooled DB connection after each API request."""
        yield
        if db is not None:
            db.release_if_held()

    app = FastAPI(
        title="Symposium API",
        version=__version__,
        description="REST API for projects, ordering and objective chat.",
        docs_url="/swagger",
        redoc_url=None,
        dependencies=[Depends(_release_db_conn)],
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE"],
        allow_headers=["*"],
    )

    @app.exception_handler(ValidationError)
    async def _invalid_input(request: Request, exc: ValidationError):
        return JSONResponse(status_code=400, content={"detail": str(exc)})

    @app.exception_handler(NotFoundError)
    async def _not_found(request: Request, exc: NotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(CompletionError)
    async def _completion_failed(request: Request, exc: CompletionError):
        return JSONResponse(status_code=502, content={"detail": exc.message})

    @app.exception_handler(StorageError)
    async def _storage_failed(request: Request, exc: StorageError):
        logger.error("Storage failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=500, content={"detail": "Internal storage error"})

    @app.exception_handler(Exception)
    async def _unhandled(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(status_code=500, content={"detail": "Internal server error"})

    router = APIRouter()

    # Register all route modules
    from symposium.api.core import register_routes as reg_core
    from symposium.api.chat import register_routes as reg_chat
    from symposium.api.ordering import register_routes as reg_ordering
    from symposium.api.messages import register_routes as reg_messages
    from symposium.api.projects import register_routes as reg_projects
    from symposium.api.openrouter import register_routes as reg_openrouter

    reg_core(router, svc)
    reg_chat(router, svc)
    reg_ordering(router, svc)
    reg_messages(router, svc)
    reg_projects(router, svc)
    reg_openrouter(router, svc)

    app.include_router(router)
    return app
