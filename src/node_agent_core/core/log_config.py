"""
Apply log level from the environment.

Single log level for all scopes (core, sensors, controllers).
"""

from __future__ import annotations

import logging
import os

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _parse_level(raw: str) -> int:
    if not raw or not str(raw).strip():
        return logging.INFO
    raw = str(raw).strip().upper()
    if raw.isdigit():
        return int(raw)
    return int(getattr(logging, raw, logging.INFO))


def level_from_env() -> int:
    """Resolve log level from NODE_LOG_LEVEL, else INFO."""
    return _parse_level(os.environ.get("NODE_LOG_LEVEL", ""))


def apply_log_level(level: int) -> None:
    """Set root logger level so all loggers (core, sensors, controllers) use this level."""
    logging.getLogger().setLevel(level)


def configure_logging() -> None:
    """Install the basic handler and apply NODE_LOG_LEVEL. Safe to call repeatedly."""
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)
    apply_log_level(level_from_env())
