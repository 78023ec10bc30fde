"""Configuration for i3-focus-last.

Settings are read from ~/.config/i3/focus-last.json when present. Every
field has a default, so the file is optional.
"""

import json
import logging
import os
from datetime import timedelta
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, ValidationError, field_validator

from .constants import ConfigPaths, DISCOVERY_PROPERTY, HISTORY_SIZE, MIN_FOCUS

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class FocusLastConfig(BaseModel):
    """Daemon and client settings."""

    history_size: int = Field(default=HISTORY_SIZE, ge=1, le=10000)
    min_focus_seconds: float = Field(default=MIN_FOCUS.total_seconds(), ge=0)
    property_name: str = Field(default=DISCOVERY_PROPERTY, pattern=r'^[A-Z0-9_]+$')
    socket_dir: Path = Field(default_factory=lambda: ConfigPaths.RUNTIME_DIR)
    log_level: str = Field(default="INFO")

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and validate logging level name."""
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v} (expected one of {', '.join(LOG_LEVELS)})")
        return level

    @property
    def min_focus(self) -> timedelta:
        """Debounce window as a timedelta."""
        return timedelta(seconds=self.min_focus_seconds)


def load_config(config_file: Optional[Path] = None) -> FocusLastConfig:
    """Load configuration from a JSON file.

    A missing file yields defaults. An unreadable or invalid file is logged
    and defaults are used. LOG_LEVEL in the environment overrides the file.

    Args:
        config_file: Path to focus-last.json (defaults to ~/.config/i3/focus-last.json)

    Returns:
        FocusLastConfig instance
    """
    config_file = config_file or ConfigPaths.CONFIG_FILE
    data = {}

    if config_file.exists():
        try:
            data = json.loads(config_file.read_text())
            if not isinstance(data, dict):
                raise ValueError("top-level JSON value must be an object")
            logger.debug(f"Loaded configuration from {config_file}")
        except (OSError, ValueError) as e:
            logger.error(f"Failed to read configuration from {config_file}: {e}")
            data = {}
    else:
        logger.debug(f"No configuration file at {config_file}, using defaults")

    env_level = os.environ.get("LOG_LEVEL")
    if env_level:
        data["log_level"] = env_level

    try:
        return FocusLastConfig(**data)
    except ValidationError as e:
        logger.error(f"Invalid configuration in {config_file}: {e}")
        return FocusLastConfig()
