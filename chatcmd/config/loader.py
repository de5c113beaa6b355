"""
Configuration loading and persistence utilities.

Design goals:
    - Deterministic loading & fallback
    - Strict schema validation
    - Stable persistence format (camelCase on disk, snake_case in memory)
"""

from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any, Callable

from loguru import logger
from pydantic import ValidationError

from chatcmd.config.schema import Config


_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")


# =============================
# Paths
# =============================

def get_config_path() -> Path:
    """
    Return default configuration file path.

    Default:
        ~/.chatcmd/config.json
    """
    return Path.home() / ".chatcmd" / "config.json"


# =============================
# Load & Save
# =============================

def load_config(config_path: Path | None = None) -> Config:
    """
    Load configuration from disk or fallback to defaults.

    Flow:
        1. Read raw JSON
        2. camelCase → snake_case
        3. Pydantic validation (environment overrides file values)

    Args:
        config_path: Optional explicit path override.

    Returns:
        Validated Config object.
    """
    path = config_path or get_config_path()

    if not path.exists():
        logger.debug("Config file not found, using defaults | path={}", path)
        return Config()

    try:
        with path.open("r", encoding="utf-8") as f:
            raw = json.load(f)

        config = Config(**convert_keys(raw))

        logger.debug("Config loaded | path={}", path)
        return config

    except json.JSONDecodeError as e:
        logger.error("Invalid JSON in config | path={} err={}", path, e)

    except ValidationError as e:
        logger.error("Invalid config values | path={} err={}", path, e)

    logger.warning("Falling back to default configuration")
    return Config()


def save_config(config: Config, config_path: Path | None = None) -> Path:
    """
    Persist configuration to disk.

    Behavior:
        - snake_case → camelCase
        - Pretty JSON formatting
    """
    path = config_path or get_config_path()
    path.parent.mkdir(parents=True, exist_ok=True)

    data = convert_to_camel(config.model_dump())

    with path.open("w", encoding="utf-8") as f:
        json.dump(data, f, indent=2, ensure_ascii=False)

    logger.info("Config saved | path={}", path)
    return path


# =============================
# Key Conversion
# =============================

def convert_keys(data: Any) -> Any:
    """Rename every mapping key in a JSON tree from camelCase to snake_case."""
    return _rename_keys(data, camel_to_snake)


def convert_to_camel(data: Any) -> Any:
    """Rename every mapping key in a JSON tree from snake_case to camelCase."""
    return _rename_keys(data, snake_to_camel)


def _rename_keys(data: Any, rename: Callable[[str], str]) -> Any:
    if isinstance(data, dict):
        return {
            (rename(key) if isinstance(key, str) else key): _rename_keys(value, rename)
            for key, value in data.items()
        }
    if isinstance(data, (list, tuple)):
        return [_rename_keys(item, rename) for item in data]
    return data


def camel_to_snake(name: str) -> str:
    """botUsername -> bot_username. Keys already in snake_case pass through."""
    return _CAMEL_BOUNDARY.sub("_", name).lower()


def snake_to_camel(name: str) -> str:
    """queue_size -> queueSize"""
    first, _, rest = name.partition("_")
    if not rest:
        return name
    return first + "".join(part[:1].upper() + part[1:] for part in rest.split("_"))
