"""Configuration management. All settings from environment variables with sensible defaults."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field, replace

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DatabaseConfig:
    host: str = "localhost"
    port: int = 5432
    name: str = "symposium"
    user: str = "symposium"
    password: str = "symposium-dev-password"

    @property
    def dsn(self) -> str:
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.name}"


@dataclass(frozen=True)
class CompletionConfig:
    backend: str = "openrouter"  # "openrouter" or registered provider name
    base_url: str = "https://openrouter.ai/api"
    timeout: float = 60.0        # seconds per completion request

    default_model: str = "openai/gpt-5"
    plan_model: str = "openai/gpt-4"

    # Chat sampling. Held constant so identical requests stay reproducible.
    max_tokens: int = 2000
    temperature: float = 0.7
    top_p: float = 0.9
    frequency_penalty: float = 0.1
    presence_penalty: float = 0.1

    # Project structure generation
    plan_max_tokens: int = 3000
    plan_temperature: float = 0.3

    # Attribution headers sent to OpenRouter
    app_url: str = "https://symposium.app"
    app_title: str = "Symposium"


@dataclass(frozen=True)
class AuthConfig:
    header_name: str = "Authorization"  # Expects "Bearer <api_token>"


@dataclass(frozen=True)
class Config:
    db: DatabaseConfig = field(default_factory=DatabaseConfig)
    completion: CompletionConfig = field(default_factory=CompletionConfig)
    auth: AuthConfig = field(default_factory=AuthConfig)
    transport: str = "stdio"  # "stdio" or "http"
    http_host: str = "0.0.0.0"
    http_port: int = 8000
    cors_origins: list[str] = field(default_factory=lambda: ["*"])
    mcp_user_id: int | None = None  # User the MCP tools act on behalf of


def _parse_cors_origins(raw: str) -> list[str]:
    """Parse comma-separated CORS origins. '*' means allow all."""
    origins = [o.strip() for o in raw.split(",") if o.strip()]
    return origins or ["*"]


def _parse_optional_int(raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    return int(raw)


def load_config() -> Config:
    """Load configuration from environment variables."""
    completion = CompletionConfig(
        backend=os.getenv("SYMPOSIUM_COMPLETION_BACKEND", "openrouter"),
        base_url=os.getenv("SYMPOSIUM_OPENROUTER_URL", "https://openrouter.ai/api"),
        timeout=float(os.getenv("SYMPOSIUM_COMPLETION_TIMEOUT", "60")),
        default_model=os.getenv("SYMPOSIUM_DEFAULT_MODEL", "openai/gpt-5"),
        plan_model=os.getenv("SYMPOSIUM_PLAN_MODEL", "openai/gpt-4"),
        max_tokens=int(os.getenv("SYMPOSIUM_MAX_TOKENS", "2000")),
        temperature=float(os.getenv("SYMPOSIUM_TEMPERATURE", "0.7")),
        top_p=float(os.getenv("SYMPOSIUM_TOP_P", "0.9")),
        frequency_penalty=float(os.getenv("SYMPOSIUM_FREQUENCY_PENALTY", "0.1")),
        presence_penalty=float(os.getenv("SYMPOSIUM_PRESENCE_PENALTY", "0.1")),
        plan_max_tokens=int(os.getenv("SYMPOSIUM_PLAN_MAX_TOKENS", "3000")),
        plan_temperature=float(os.getenv("SYMPOSIUM_PLAN_TEMPERATURE", "0.3")),
        app_url=os.getenv("SYMPOSIUM_APP_URL", "https://symposium.app"),
        app_title=os.getenv("SYMPOSIUM_APP_TITLE", "Symposium"),
    )
    if completion.timeout <= 0:
        logger.warning("SYMPOSIUM_COMPLETION_TIMEOUT must be positive, using 60s")
        completion = replace(completion, timeout=60.0)

    return Config(
        db=DatabaseConfig(
            host=os.getenv("SYMPOSIUM_DB_HOST", "localhost"),
            port=int(os.getenv("SYMPOSIUM_DB_PORT", "5432")),
            name=os.getenv("SYMPOSIUM_DB_NAME", "symposium"),
            user=os.getenv("SYMPOSIUM_DB_USER", "symposium"),
            password=os.getenv("SYMPOSIUM_DB_PASS", "symposium-dev-password"),
        ),
        completion=completion,
        auth=AuthConfig(
            header_name=os.getenv("SYMPOSIUM_AUTH_HEADER", "Authorization"),
        ),
        transport=os.getenv("SYMPOSIUM_TRANSPORT", "stdio"),
        http_host=os.getenv("SYMPOSIUM_HTTP_HOST", "0.0.0.0"),
        http_port=int(os.getenv("SYMPOSIUM_HTTP_PORT", "8000")),
        cors_origins=_parse_cors_origins(os.getenv("SYMPOSIUM_CORS_ORIGINS", "*")),
        mcp_user_id=_parse_optional_int(os.getenv("SYMPOSIUM_MCP_USER_ID")),
    )
