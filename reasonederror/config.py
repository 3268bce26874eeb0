"""
Reasoned Error — Configuration System

All configuration is Pydantic-validated and loaded from:
1. A YAML file (defaults, see config/default.yaml)
2. Environment variables (overrides), prefixed REASONEDERROR_

Nested keys use a double underscore, e.g.
REASONEDERROR_NOTIFIER__LOG_MODE=sync.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

# ─── Sub-configs ──────────────────────────────────────────────────


class LoggingConfig(BaseModel):
    level: str = "INFO"
    format: str = "console"  # "console" | "json"


class NotifierConfig(BaseModel):
    # Register the structlog creation handler at bootstrap
    log_creations: bool = True
    # Run it inline ("sync") or on the dispatch thread ("async")
    log_mode: str = "async"
    # Level of the reasoned_error_created log line
    log_level: str = "error"
    # Call fix() at the end of bootstrap
    auto_fix: bool = True

    @field_validator("log_mode")
    @classmethod
    def _check_log_mode(cls, value: str) -> str:
        mode = value.strip().lower()
        if mode not in ("sync", "async"):
            raise ValueError(f"log_mode must be 'sync' or 'async', got {value!r}")
        return mode

    @field_validator("log_level")
    @classmethod
    def _check_log_level(cls, value: str) -> str:
        level = value.strip().lower()
        if level not in ("debug", "info", "warning", "error", "critical"):
            raise ValueError(f"unknown log level {value!r}")
        return level


# ─── Root Configuration ──────────────────────────────────────────


class ReasonedErrorSettings(BaseSettings):
    """
    Root configuration. Loads from YAML, overridable by env vars.
    """

    model_config = SettingsConfigDict(
        env_prefix="REASONEDERROR_",
        env_nested_delimiter="__",
        extra="ignore",
    )

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    notifier: NotifierConfig = Field(default_factory=NotifierConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Environment wins over values passed in from the YAML file.
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_config(config_path: str | Path | None = None) -> ReasonedErrorSettings:
    """
    Load configuration from a YAML file, then apply environment variable overrides.

    A missing file is not an error; defaults apply.
    """
    raw: dict[str, Any] = {}

    if config_path:
        path = Path(config_path)
        if path.exists():
            with open(path) as f:
                raw = yaml.safe_load(f) or {}

    return ReasonedErrorSettings(**raw)
