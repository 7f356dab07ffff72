"""Core infrastructure layer.

This module provides foundation-level services:
- Configuration management (TOML)
- Device-local storage (SQLite)
- Logging (Loguru)
- Console rendering (Rich)
"""

from .config import (
    Config,
    load_config,
    parse_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
    ensure_directories,
)
from .storage import DeviceStorage, get_storage_connection, get_storage_path
from .logging import setup_logging, setup_logging_from_config
from .console import format_count, get_console, track_table

__all__ = [
    # Config
    "Config",
    "load_config",
    "parse_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    "ensure_directories",
    # Storage
    "DeviceStorage",
    "get_storage_connection",
    "get_storage_path",
    # Logging
    "setup_logging",
    "setup_logging_from_config",
    # Console
    "get_console",
    "format_count",
    "track_table",
]
