"""
Configuration schema definitions.

Design principles:
    - Explicit structure
    - Predictable defaults
    - Environment override support
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)


# =============================
# Routing
# =============================

class RouterConfig(BaseModel):
    """Event router configuration."""
    enabled: bool = True
    bot_username: Optional[str] = None


class BusConfig(BaseModel):
    """Notification bus configuration."""
    queue_size: int = Field(default=0, ge=0)


# =============================
# Logging
# =============================

class LoggingConfig(BaseModel):
    """loguru sink configuration."""
    level: str = "INFO"
    file: Optional[str] = None
    rotation: str = "10 MB"

    @field_validator("level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.upper()

    @property
    def file_path(self) -> Optional[Path]:
        return Path(self.file).expanduser() if self.file else None


# =============================
# Root Config
# =============================

class Config(BaseSettings):
    """
    Root configuration schema.

    Priority:
        env > config.json > defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="CHATCMD_",
        env_nested_delimiter="__",
    )

    router: RouterConfig = Field(default_factory=RouterConfig)
    bus: BusConfig = Field(default_factory=BusConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # File values arrive as init kwargs; env must win over them
        return env_settings, init_settings, dotenv_settings, file_secret_settings
