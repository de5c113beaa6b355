"""
Runtime utility helpers.

- Logging sink setup
- Import-path resolution for application factories
- String utilities
"""

from __future__ import annotations

import importlib
import sys
from typing import Any

from loguru import logger

from chatcmd.config.schema import LoggingConfig


# ===========================
# Logging
# ===========================

LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan> | {message}"
)


def configure_logging(config: LoggingConfig) -> None:
    """Replace loguru's default sink with the configured ones."""
    logger.remove()
    logger.add(sys.stderr, level=config.level, format=LOG_FORMAT)

    path = config.file_path
    if path:
        path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            path,
            level=config.level,
            format=LOG_FORMAT,
            rotation=config.rotation,
            enqueue=True,
        )


# ===========================
# Import paths
# ===========================

def import_object(path: str) -> Any:
    """
    Resolve 'package.module:attribute'.

    Raises:
        ValueError: invalid path format
        ImportError / AttributeError: target missing
    """
    if ":" not in path:
        raise ValueError(f"Invalid import path (expected module:attr): {path}")

    module_name, attr = path.split(":", 1)
    obj: Any = importlib.import_module(module_name)
    for part in attr.split("."):
        obj = getattr(obj, part)
    return obj


# ===========================
# String Utilities
# ===========================

def truncate(s: str, max_len: int = 120, suffix: str = "...") -> str:
    """Truncate a string with suffix."""
    if len(s) <= max_len:
        return s
    return s[: max_len - len(suffix)] + suffix
