"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Database operations (SQLite)
- Logging (Loguru) and console output (Rich)
"""

# Configuration
from .config import (
    Config,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    create_default_config,
)

# Database
from .database import (
    PersistenceError,
    escape_path,
    unescape_path,
    get_database_path,
    get_db_connection,
    init_database,
    save_library,
    load_library,
    count_tracks,
)

# Console
from .console import get_console, printable, safe_print

__all__ = [
    # Config
    "Config",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "create_default_config",
    # Database
    "PersistenceError",
    "escape_path",
    "unescape_path",
    "get_database_path",
    "get_db_connection",
    "init_database",
    "save_library",
    "load_library",
    "count_tracks",
    # Console
    "get_console",
    "printable",
    "safe_print",
]
