"""
Configuration management for dynamic-dotenv.

Settings are read from DYNAMIC_DOTENV_* environment variables, never from
the .env file being watched.
"""

from dynamic_dotenv.config.settings import (
    Settings,
    default_path,
    resolve_path,
)
from dynamic_dotenv.config.types import (
    ConfigBase,
    ParserConfig,
    WatcherConfig,
)

__all__ = [
    "ConfigBase",
    "ParserConfig",
    "Settings",
    "WatcherConfig",
    "default_path",
    "resolve_path",
]
