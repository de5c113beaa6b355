"""Configuration schema and loading."""

from chatcmd.config.loader import get_config_path, load_config, save_config
from chatcmd.config.schema import BusConfig, Config, LoggingConfig, RouterConfig

__all__ = [
    "BusConfig",
    "Config",
    "LoggingConfig",
    "RouterConfig",
    "get_config_path",
    "load_config",
    "save_config",
]
