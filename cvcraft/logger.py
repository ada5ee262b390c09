"""
Logger setup for cvcraft.

Every component logs through a prefixed wrapper (``[form]``, ``[render]``,
``[export]``, ``[store]``, ``[session]``) on top of a single loguru logger.
"""

import sys
from pathlib import Path

from loguru import logger

LEVEL_COLORS = {
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}

_CONSOLE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"
)
_FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <7} | {message}"


def setup_logger(level: str = "INFO", log_file: Path | None = None) -> Path | None:
    """
    Configure loguru for console output and, optionally, a log file.

    The file handler captures everything from DEBUG up; the console only shows
    ``level`` and above.

    Args:
        level: Minimum console level
        log_file: Optional path of a log file

    Returns:
        The log file path, if any
    """
    logger.remove()
    for level_name, color in LEVEL_COLORS.items():
        logger.level(level_name, color=color)

    logger.add(sys.stderr, format=_CONSOLE_FORMAT, level=level.upper(), colorize=True)

    if log_file is not None:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, format=_FILE_FORMAT, level="DEBUG")
    return log_file


class ContextLogger:
    """Thin wrapper adding a context prefix to every message."""

    def __init__(self, context: str):
        self.prefix = f"[{context}]"

    def debug(self, message: str) -> None:
        logger.debug(f"{self.prefix} {message}")

    def info(self, message: str) -> None:
        logger.info(f"{self.prefix} {message}")

    def success(self, message: str) -> None:
        logger.success(f"{self.prefix} {message}")

    def warning(self, message: str) -> None:
        logger.warning(f"{self.prefix} {message}")

    def error(self, message: str) -> None:
        logger.error(f"{self.prefix} {message}")


def get_logger(context: str) -> ContextLogger:
    return ContextLogger(context)
