"""Central settings — loads from ~/.taskbridge/config.json + environment variables."""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from taskbridge.config.constants import CONFIG_FILE, ENV_FILE
from taskbridge.config.models import (
    FIELD_ENV_MAP,
    SECRET_FIELDS,
    ChannelConfig,
    ExecutorConfig,
    ServerConfig,
    TrackingConfig,
)

# Settings the bot cannot run without, keyed by the env var users set.
REQUIRED_FIELDS: dict[str, tuple[str, ...]] = {
    "TELEGRAM_BOT_TOKEN": ("channels", "telegram_bot_token"),
    "OPENSERV_API_KEY": ("executor", "api_key"),
    "WORKSPACE_ID": ("executor", "workspace_id"),
    "AGENT_ID": ("executor", "agent_id"),
}


class Settings(BaseSettings):
    """All taskbridge configuration in one place.

    Priority (highest → lowest):
      1. Environment variables (TASKBRIDGE_ prefix, or the plain names in
         ``FIELD_ENV_MAP`` such as ``OPENSERV_API_KEY``)
      2. .env file (working directory, then ~/.taskbridge/.env)
      3. ~/.taskbridge/config.json
      4. Defaults defined here
    """

    model_config = SettingsConfigDict(
        env_prefix="TASKBRIDGE_",
        env_file=(str(ENV_FILE), ".env"),
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    # --- Sub-configs ---
    executor: ExecutorConfig = Field(default_factory=ExecutorConfig)
    tracking: TrackingConfig = Field(default_factory=TrackingConfig)
    channels: ChannelConfig = Field(default_factory=ChannelConfig)
    server: ServerConfig = Field(default_factory=ServerConfig)

    # --- Top-level settings ---
    bot_name: str = "OpenServ Bot"

    @model_validator(mode="before")
    @classmethod
    def load_config_file(cls, values: dict) -> dict:
        """Merge config.json values as defaults (env vars still override)."""
        if CONFIG_FILE.exists():
            try:
                file_data = json.loads(CONFIG_FILE.read_text(encoding="utf-8"))
                cls._migrate_secrets_from_config(file_data)
                merged = {**file_data, **{k: v for k, v in values.items() if v is not None}}
                values = merged
            except (json.JSONDecodeError, OSError):
                pass

        cls._apply_env_to_fields(values)
        return values

    @classmethod
    def _migrate_secrets_from_config(cls, file_data: dict) -> None:
        """Move any secrets found in config.json into .env and strip them."""
        from taskbridge.config.env_utils import write_env_key

        migrated = False
        for key_path in SECRET_FIELDS:
            node = file_data
            for part in key_path[:-1]:
                node = node.get(part, {})
                if not isinstance(node, dict):
                    node = {}
                    break

            field = key_path[-1]
            value = node.get(field, "")
            if value and isinstance(value, str):
                write_env_key(FIELD_ENV_MAP[key_path], value)
                node[field] = ""
                migrated = True

        if migrated:
            CONFIG_FILE.write_text(json.dumps(file_data, indent=2), encoding="utf-8")

    @classmethod
    def _apply_env_to_fields(cls, values: dict) -> None:
        """Populate mapped fields from plain environment variables and .env files."""
        from taskbridge.config.env_utils import read_env_file

        env_file_vals = {**read_env_file(ENV_FILE), **read_env_file(Path(".env"))}

        for key_path, env_var in FIELD_ENV_MAP.items():
            val = os.environ.get(env_var) or env_file_vals.get(env_var)
            if not val:
                continue

            # Walk into the nested values dict, creating sub-dicts as needed.
            # Sub-configs passed in as model instances are explicit and win.
            node = values
            for part in key_path[:-1]:
                if isinstance(node.get(part), BaseModel):
                    node = None
                    break
                if not isinstance(node.get(part), dict):
                    node[part] = {}
                node = node[part]

            if node is not None:
                node[key_path[-1]] = val

    def missing_required(self, telegram: bool = True) -> list[str]:
        """Names of required environment variables that have no value.

        Pass ``telegram=False`` for commands that never talk to Telegram.
        """
        missing = []
        for env_var, (section, field) in REQUIRED_FIELDS.items():
            if not telegram and section == "channels":
                continue
            if not getattr(getattr(self, section), field):
                missing.append(env_var)
        return missing


@lru_cache
def get_settings() -> Settings:
    """Singleton settings instance."""
    return Settings()
