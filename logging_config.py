"""
logging_config.py - Centralized logging configuration.

Provides consistent logging setup across all modules.

Stream split: every log line goes to stderr through the single root
handler installed by setup_logging(). Stdout is reserved for the report
printed by main.py (numbered messages, JSON payload or summary table), so
`eob-recon ... > report.txt` captures the report without log noise.
"""

from __future__ import annotations

import logging
import sys

PLAIN_FORMAT = "%(asctime)s [%(name)-12s] %(levelname)-7s %(message)s"
JSON_FORMAT = (
    '{"timestamp":"%(asctime)s","level":"%(levelname)s",'
    '"module":"%(name)s","message":"%(message)s"}'
)


def setup_logging(level: int = logging.INFO, json_format: bool = False) -> None:
    """Configure root logger with consistent formatting.

    Args:
        level: Logging level.
        json_format: If True, emit JSON-like log lines.
    """
    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()

    formatter = logging.Formatter(
        JSON_FORMAT if json_format else PLAIN_FORMAT,
        datefmt="%H:%M:%S",
    )

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def parse_level(name: str | None, default: int = logging.INFO) -> int:
    """Map a level name like 'debug' to its logging constant."""
    if not name:
        return default
    level = logging.getLevelName(str(name).strip().upper())
    return level if isinstance(level, int) else default


def get_logger(name: str) -> logging.Logger:
    """Get a named logger."""
    return logging.getLogger(name)
