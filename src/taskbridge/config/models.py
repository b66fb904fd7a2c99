"""Pydantic models for configuration sub-sections."""

from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from taskbridge.config.constants import (
    DEFAULT_HOST,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_PORT,
    DEFAULT_TIMEOUT_SECONDS,
    OPENSERV_API_URL,
)


class ExecutorConfig(BaseModel):
    """Where tasks are submitted and who works on them."""

    api_url: str = OPENSERV_API_URL
    api_key: str = Field(default="", exclude=True)
    workspace_id: int | None = None
    agent_id: int | None = None  # assignee for submitted tasks
    request_timeout_seconds: float = 30.0


class TrackingConfig(BaseModel):
    """Completion tracking budget."""

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS

    @model_validator(mode="after")
    def validate_budget(self) -> "TrackingConfig":
        if self.timeout_seconds <= 0:
            raise ValueError(f"timeout_seconds must be positive, got {self.timeout_seconds}")
        if self.poll_interval_seconds <= 0:
            raise ValueError(
                f"poll_interval_seconds must be positive, got {self.poll_interval_seconds}"
            )
        return self


class ChannelConfig(BaseModel):
    """Messaging channel settings."""

    telegram_enabled: bool = True
    telegram_bot_token: str = Field(default="", exclude=True)
    telegram_webhook_url: str = ""  # empty = long-polling


class ServerConfig(BaseModel):
    """HTTP server settings."""

    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    log_level: str = "info"


# Maps (nested_key_tuple) -> env_var_name for fields read from plain
# environment variables. Used by the migration and env-loading logic in
# settings.py.
FIELD_ENV_MAP: dict[tuple[str, ...], str] = {
    ("channels", "telegram_bot_token"): "TELEGRAM_BOT_TOKEN",
    ("executor", "api_key"): "OPENSERV_API_KEY",
    ("executor", "workspace_id"): "WORKSPACE_ID",
    ("executor", "agent_id"): "AGENT_ID",
}

# Subset of FIELD_ENV_MAP that must never be written to config.json.
SECRET_FIELDS: frozenset[tuple[str, ...]] = frozenset({
    ("channels", "telegram_bot_token"),
    ("executor", "api_key"),
})
