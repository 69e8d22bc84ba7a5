"""Service container and factory. Centralizes component initialization."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from symposium.config import Config, load_config
from symposium.core.context import ContextGatherer
from symposium.core.messages import MessageManager
from symposium.core.planning import ProjectPlanner
from symposium.core.sequence import SequenceManager
from symposium.core.turns import TurnPersister
from symposium.llm import get_completion_client
from symposium.llm.interface import CompletionClient
from symposium.storage.database import Database
from symposium.storage.interface import Store
from symposium.storage.postgres import PostgresStore

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Holds all initialized Symposium components."""

    config: Config
    db: Database | None
    store: Store
    completion: CompletionClient
    gatherer: ContextGatherer
    turns: TurnPersister
    sequencer: SequenceManager
    planner: ProjectPlanner
    message_manager: MessageManager


def create_services(
    config: Config | None = None,
    db: Database | None = None,
    store: Store | None = None,
    completion: CompletionClient | None = None,
) -> Services:
    """Build all Symposium services from config.

    Args:
        config: Configuration to use. Loads from env if None.
        db: Pre-connected database. Creates new one if None and no store is given.
        store: Storage accessor. Defaults to PostgresStore over db.
        completion: Completion client. Defaults to the configured backend.
    """
    if config is None:
        config = load_config()

    if store is None:
        if db is None:
            db = Database(config.db)
        store = PostgresStore(db)

    if completion is None:
        completion = get_completion_client(config.completion)

    gatherer = ContextGatherer(store)

    logger.info(
        "Services ready (completion=%s, default model=%s)",
        config.completion.backend, config.completion.default_model,
    )

    return Services(
        config=config,
        db=db,
        store=store,
        completion=completion,
        gatherer=gatherer,
        turns=TurnPersister(store, gatherer, completion),
        sequencer=SequenceManager(store),
        planner=ProjectPlanner(store, completion),
        message_manager=MessageManager(store),
    )
