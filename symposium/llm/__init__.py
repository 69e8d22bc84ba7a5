"""Completion client factory with pluggable provider registry.

Built-in provider: openrouter.
Register custom providers via ``register_completion_provider(name, factory_fn)``.
"""

from __future__ import annotations

import logging
from typing import Callable

from symposium.config import CompletionConfig
from symposium.llm.interface import CompletionClient

logger = logging.getLogger(__name__)

# Provider registry: name -> factory function(config) -> CompletionClient
_providers: dict[str, Callable[[CompletionConfig], CompletionClient]] = {}


def register_completion_provider(
    name: str,
    factory: Callable[[CompletionConfig], CompletionClient],
) -> None:
    """Register a custom completion provider.

    Args:
        name: Backend name (matches SYMPOSIUM_COMPLETION_BACKEND env var).
        factory: Callable that takes CompletionConfig and returns a CompletionClient.
    """
    _providers[name] = factory
    logger.info("Registered completion provider: %s", name)


def get_completion_client(config: CompletionConfig) -> CompletionClient:
    """Return the configured completion backend.

    Checks the plugin registry first, then falls back to built-in providers.
    """
    if config.backend in _providers:
        return _providers[config.backend](config)

    if config.backend == "openrouter":
        from symposium.llm.openrouter import OpenRouterClient
        return OpenRouterClient(config)

    available = sorted(set(BUILT_IN_PROVIDERS + list(_providers.keys())))
    raise ValueError(
        f"Unknown completion backend: {config.backend!r}. "
        f"Available: {', '.join(available)}"
    )


# For error messages and discovery
BUILT_IN_PROVIDERS = ["openrouter"]
