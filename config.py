"""
config.py - Run settings from the environment.

A `.env` file in the working directory is loaded first (python-dotenv),
then these variables are read:

    EOB_TARGET_DIR  directory holding the EOB/check files (default: storage)
    EOB_LOG_LEVEL   logging level name (default: INFO)
    EOB_LOG_JSON    emit JSON log lines when truthy (default: off)

CLI flags always win over these values.
"""

from __future__ import annotations

import os

from dotenv import load_dotenv
from pydantic import BaseModel, Field

from logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_TARGET_DIR = "storage"
TRUTHY = {"1", "true", "yes", "on"}


class Settings(BaseModel):
    target_dir: str = Field(default=DEFAULT_TARGET_DIR)
    log_level: str = Field(default="INFO")
    log_json: bool = Field(default=False)


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in TRUTHY


def load_settings(dotenv: bool = True) -> Settings:
    """Build Settings from the process environment (and .env when present)."""
    if dotenv:
        try:
            load_dotenv()
        except UnicodeDecodeError:
            # Windows editors commonly save .env as cp1252.
            load_dotenv(encoding="cp1252")

    settings = Settings(
        target_dir=os.getenv("EOB_TARGET_DIR", "").strip() or DEFAULT_TARGET_DIR,
        log_level=os.getenv("EOB_LOG_LEVEL", "").strip() or "INFO",
        log_json=_env_flag("EOB_LOG_JSON"),
    )
    logger.debug(
        "settings_loaded | target_dir=%s | log_level=%s | log_json=%s",
        settings.target_dir,
        settings.log_level,
        settings.log_json,
    )
    return settings
