"""Logging configuration using Loguru for structured logging.

Provides collection-aware logging with JSON formatting, rotation, and retention policies.
"""

import sys
import time
from functools import wraps
from pathlib import Path
from typing import Any, Callable
from loguru import logger


# Remove default handler
logger.remove()


def setup_logging(
    log_dir: str = "logs",
    level: str = "INFO",
    rotation: str = "50 MB",
    retention: str = "30 days",
    compression: str = "zip",
    to_files: bool = True
) -> None:
    """Configure Loguru logging with console and rotating file sinks.

    Args:
        log_dir: Directory for log files
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        rotation: When to rotate log files
        retention: How long to keep old logs
        compression: Compression format for rotated logs
        to_files: Whether to add the file sinks at all
    """
    logger.remove()

    # Console handler with colored output
    logger.add(
        sys.stderr,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | <level>{message}</level>",
        level=level,
        colorize=True
    )

    if not to_files:
        logger.info("Logging system initialized", level=level, files=False)
        return

    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)

    # Main application log
    logger.add(
        log_path / "contract_archive_{time}.log",
        format="{time} | {level} | {name}:{function}:{line} | {message}",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=False
    )

    # JSON structured log for parsing and analysis
    logger.add(
        log_path / "contract_archive_json_{time}.log",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=True
    )

    # Collection-specific log file
    def table_format(record):
        table = record["extra"].get("table", "unknown")
        return f"{record['time']} | {record['level'].name} | {table} | {record['message']}\n"

    logger.add(
        log_path / "collections_{time}.log",
        format=table_format,
        level="INFO",
        rotation=rotation,
        retention=retention,
        compression=compression,
        filter=lambda record: "table" in record["extra"]
    )

    # Error-only log file
    logger.add(
        log_path / "errors_{time}.log",
        format="{time} | {level} | {name}:{function}:{line} | {message}",
        level="ERROR",
        rotation=rotation,
        retention=retention,
        compression=compression
    )

    logger.info("Logging system initialized", log_dir=log_dir, level=level)


def get_table_logger(table: str):
    """Get a logger bound to a specific collection.

    Args:
        table: Collection name

    Returns:
        Logger instance with collection context
    """
    return logger.bind(table=table)


def log_store_operation(operation: str) -> Callable:
    """Decorator to log a store method with timing.

    The first positional argument after ``self`` is taken as the collection
    name when it is a string.

    Args:
        operation: Name of the store operation

    Returns:
        Decorated function with logging
    """
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            table = args[1] if len(args) > 1 and isinstance(args[1], str) else kwargs.get("table", "*")
            table_logger = get_table_logger(table)

            table_logger.debug(f"Starting {operation}", function=func.__name__)
            start_time = time.perf_counter()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                table_logger.error(
                    f"{operation} failed",
                    function=func.__name__,
                    error=str(e),
                    error_type=type(e).__name__
                )
                raise

            table_logger.debug(
                f"{operation} completed",
                function=func.__name__,
                duration_seconds=round(time.perf_counter() - start_time, 4)
            )
            return result

        return wrapper
    return decorator
