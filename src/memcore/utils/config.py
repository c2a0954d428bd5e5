"""Global configuration."""

from __future__ import annotations

import json
import os
from datetime import timedelta
from pathlib import Path

from pydantic import BaseModel, Field

CONFIG_DIR_ENV = "MEMCORE_CONFIG_DIR"

VALID_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class Settings(BaseModel):
    session_ttl_hours: int = Field(default=24, gt=0)
    strict_sessions: bool = False
    log_level: str = "WARNING"

    @property
    def session_ttl(self) -> timedelta:
        return timedelta(hours=self.session_ttl_hours)


def global_config_dir() -> Path:
    override = os.environ.get(CONFIG_DIR_ENV)
    config = Path(override) if override else Path.home() / ".config" / "memory-core"
    config.mkdir(parents=True, exist_ok=True)
    return config


def load_global_config() -> dict:
    path = global_config_dir() / "config.json"
    if path.exists():
        return json.loads(path.read_text())
    return {}


def save_global_config(config: dict) -> None:
    path = global_config_dir() / "config.json"
    path.write_text(json.dumps(config, indent=2))


def load_settings() -> Settings:
    config = load_global_config()
    return Settings(**{k: v for k, v in config.items() if k in Settings.model_fields})
