"""Core endpoints — status."""

from __future__ import annotations

import logging

from fastapi import APIRouter

from symposium import __version__
from symposium.core.services import Services
from symposium.storage.database import StorageError

logger = logging.getLogger(__name__)


def register_routes(router: APIRouter, svc: Services, **kw):
    db = svc.db
    config = svc.config

    @router.get("/status")
    def api_status():
        database = "not configured"
        if db is not None:
            try:
                db.execute_one("SELECT 1 AS ok")
                database = "ok"
            except StorageError as e:
                logger.warning("Status check could not reach the database: %s", e)
                database = "unavailable"
        return {
            "status": "ok" if database != "unavailable" else "degraded",
            "version": __version__,
            "database": database,
            "completion_backend": config.completion.backend,
            "default_model": config.completion.default_model,
        }
