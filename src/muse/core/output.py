"""
Unified output system using Loguru.
Log records go to a rotating file; user-facing messages also go to the console.
"""

import sys
from pathlib import Path

from loguru import logger

from .config import LoggingConfig, get_data_dir
from .console import safe_print


LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{line} | {message}"


def get_log_file_path() -> Path:
    """Get the path to the default log file."""
    return get_data_dir() / "muse.log"


def setup_loguru(
    log_file: Path,
    level: str = "INFO",
    max_file_size_mb: int = 10,
    backup_count: int = 5,
    console_output: bool = False,
) -> None:
    """
    Configure loguru with a rotating file sink and an optional stderr sink.

    Args:
        log_file: Path to log file
        level: Minimum level for logging (DEBUG, INFO, WARNING, ERROR)
        max_file_size_mb: Size before the file is rotated
        backup_count: Number of rotated files to keep
        console_output: Also write log records to stderr
    """
    # Remove default handler
    logger.remove()

    log_file.parent.mkdir(parents=True, exist_ok=True)
    logger.add(
        log_file,
        rotation=f"{max_file_size_mb} MB",
        retention=backup_count,
        level=level,
        format=LOG_FORMAT,
        enqueue=False,  # Synchronous writes (thread-safe but blocking)
    )

    if console_output:
        logger.add(sys.stderr, level=level, format="{level}: {message}")

    logger.info(f"Loguru initialized: {log_file} (level={level})")


def setup_from_config(config: LoggingConfig) -> None:
    """Configure logging from the [logging] config section."""
    log_file = Path(config.log_file) if config.log_file else get_log_file_path()
    setup_loguru(
        log_file,
        level=config.level,
        max_file_size_mb=config.max_file_size_mb,
        backup_count=config.backup_count,
        console_output=config.console_output,
    )


def log(message: str, level: str = "info") -> None:
    """
    Unified logging: writes to the log file AND prints for the user.

    Args:
        message: User-facing message
        level: Log level (debug, info, warning, error)
    """
    log_func = getattr(logger, level)
    log_func(message)

    color_map = {
        "debug": "cyan",
        "info": None,
        "warning": "yellow",
        "error": "red",
    }
    safe_print(message, style=color_map.get(level))
