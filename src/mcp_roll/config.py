"""Configuration for the roll server, read from environment variables."""

from __future__ import annotations

import logging
import os
import re
import sys
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

# Load environment variables from a local .env if present.
load_dotenv()


AllowedLogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR"]

CONFIG_BASE = ".roll"
HISTORY_FILE = ".roll.history"
LOG_FORMAT = "[%(levelname)s] [%(name)s] %(message)s"


class Settings(BaseModel):
    """Runtime configuration derived from environment variables."""

    home: str = Field(default="~", alias="ROLL_HOME", validate_default=True)
    profile: Optional[str] = Field(default=None, alias="ROLL_PROFILE")
    history_enabled: bool = Field(default=True, alias="ROLL_HISTORY")
    log_level: AllowedLogLevel = Field(default="WARNING", alias="ROLL_LOG_LEVEL")

    @field_validator("home", mode="before")
    @classmethod
    def _expand_home(cls, value: Optional[str]) -> str:
        if not value:
            value = "~"
        return str(Path(value).expanduser())

    @field_validator("profile", mode="before")
    @classmethod
    def _normalize_profile(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        # Profile names become part of a file name; keep letters only.
        normalized = re.sub(r"[^A-Za-z]", "", value).lower()
        return normalized or None

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.upper()

    @property
    def config_path(self) -> Path:
        """Alias file for the active profile."""
        name = CONFIG_BASE if self.profile is None else f"{CONFIG_BASE}.{self.profile}"
        return Path(self.home) / name

    @property
    def history_path(self) -> Path:
        """Append-only roll history, shared across profiles."""
        return Path(self.home) / HISTORY_FILE


def _raw_environment() -> dict[str, str]:
    """Snapshot environment variables relevant to the settings."""
    keys = [
        "ROLL_HOME",
        "ROLL_PROFILE",
        "ROLL_HISTORY",
        "ROLL_LOG_LEVEL",
    ]
    environment = {key: os.getenv(key) for key in keys}
    return {key: value for key, value in environment.items() if value is not None}


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load and memoize Settings from the environment."""
    try:
        return Settings(**_raw_environment())
    except ValidationError as exc:
        raise RuntimeError(f"Invalid roll configuration: {exc}") from exc


def configure_logging(level: str) -> None:
    """Send log records to stderr; stdout carries the MCP stdio transport."""
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


__all__ = [
    "AllowedLogLevel",
    "Settings",
    "configure_logging",
    "get_settings",
]
