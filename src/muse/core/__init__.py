"""Core infrastructure layer - no business logic dependencies.

This module provides foundation-level services:
- Configuration management (TOML)
- Database setup (SQLite)
- Console and log output (Rich, Loguru)

The core layer has no dependencies on domain or command modules.
"""

# Configuration
from .config import (
    Config,
    QueueConfig,
    TrackerConfig,
    load_config,
    get_config_dir,
    get_config_path,
    get_data_dir,
    get_socket_path,
    create_default_config,
    ensure_directories,
)

# Database
from .database import (
    get_database_path,
    get_db_connection,
    init_database,
    migrate_database,
)

# Console
from .console import get_console, safe_print, print_error

__all__ = [
    # Config
    "Config",
    "QueueConfig",
    "TrackerConfig",
    "load_config",
    "get_config_dir",
    "get_config_path",
    "get_data_dir",
    "get_socket_path",
    "create_default_config",
    "ensure_directories",
    # Database
    "get_database_path",
    "get_db_connection",
    "init_database",
    "migrate_database",
    # Console
    "get_console",
    "safe_print",
    "print_error",
]
