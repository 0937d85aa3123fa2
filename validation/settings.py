"""Queue settings using pydantic-settings with env var and YAML file support.

Env vars (DURABLE_QUEUE_ prefix) take precedence over YAML config file values.
Required: DURABLE_QUEUE_CURRENT_PATH.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Optional

import pydantic
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from shared.log import create_logger
from shared.logging_config import configure_logging
from validation.config import QueueConfig

_, _, _, _, log_error = create_logger("Settings")

ENV_PREFIX = "DURABLE_QUEUE_"
_YAML_CONFIG_PATH = os.environ.get(f"{ENV_PREFIX}CONFIG_FILE", "durable_queue.yml")


class QueueSettings(BaseSettings):
    """Durable queue settings.

    Precedence (highest to lowest):
    1. DURABLE_QUEUE_-prefixed environment variables
    2. YAML config file (DURABLE_QUEUE_CONFIG_FILE, default durable_queue.yml)
    3. Init arguments, then defaults defined below
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        yaml_file=_YAML_CONFIG_PATH,
        yaml_file_encoding="utf-8",
        extra="ignore",
    )

    # Required
    current_path: str

    # Optional with sensible defaults
    staging_path: Optional[str] = None
    fsync: bool = False
    log_level: str = "info"
    log_json: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Return sources in priority order: env > YAML > init (defaults)."""
        return (env_settings, YamlConfigSettingsSource(settings_cls), init_settings)

    def to_config(self) -> QueueConfig:
        """Build the validated QueueConfig the queue is constructed from."""
        return QueueConfig(
            current_path=self.current_path,
            staging_path=self.staging_path,
            fsync=self.fsync,
        )

    def apply_logging(self) -> None:
        """Configure root logging from log_level and log_json."""
        configure_logging(self.log_level, json_output=self.log_json)


@lru_cache(maxsize=1)
def get_settings() -> QueueSettings:
    """Return the cached QueueSettings instance.

    Logs the names of missing environment variables before re-raising
    the validation error.
    """
    try:
        return QueueSettings()
    except pydantic.ValidationError as exc:
        missing: list[str] = []
        for error in exc.errors():
            if error.get("type") == "missing":
                loc = error.get("loc", ())
                if loc:
                    missing.append(f"{ENV_PREFIX}{str(loc[0]).upper()}")

        if missing:
            log_error(
                f"Missing required configuration: {', '.join(missing)}. "
                f"Set these as environment variables or add them to {_YAML_CONFIG_PATH}"
            )
        else:
            log_error(f"Configuration error: {exc}")
        raise
