"""Logging configuration using Loguru.

Console output always; rotating files when enabled (production). Every sink
shares a filter that scrubs registered secrets, so an API key that ends up
in an exception message or URL is never written out.
"""

import sys
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from loguru import logger

CONSOLE_FORMAT = (
    "<green>{time:HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{extra[name]}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {extra[name]}:{function}:{line} | {message}"

REDACTED = "[REDACTED]"


def redacting_filter(secrets: Iterable[str | None]) -> Callable[[dict[str, Any]], bool]:
    """Build a sink filter that replaces each secret in the message."""
    values = [s for s in secrets if s and s.strip()]

    def _filter(record: dict[str, Any]) -> bool:
        record["extra"].setdefault("name", record["name"])
        for value in values:
            if value in record["message"]:
                record["message"] = record["message"].replace(value, REDACTED)
        return True

    return _filter


def setup_logging(
    level: str = "INFO",
    log_dir: str = "logs",
    enable_file: bool = True,
    secrets: Iterable[str | None] = (),
) -> None:
    """Configure application logging.

    Args:
        level: Minimum log level (DEBUG, INFO, WARNING, ERROR)
        log_dir: Directory for log files
        enable_file: Whether to write rotating log files
        secrets: Values to scrub from every message (e.g. the API key)
    """
    logger.remove()
    scrub = redacting_filter(secrets)

    logger.add(
        sys.stderr,
        format=CONSOLE_FORMAT,
        level=level,
        filter=scrub,
        colorize=True,
        backtrace=True,
        diagnose=False,  # Locals may hold the API key
    )

    if enable_file:
        log_path = Path(log_dir)
        log_path.mkdir(exist_ok=True)

        logger.add(
            log_path / "relay_{time:YYYY-MM-DD}.log",
            format=FILE_FORMAT,
            level=level,
            filter=scrub,
            rotation="50 MB",
            retention="14 days",
            compression="gz",
            backtrace=True,
            diagnose=False,
        )

    logger.info(f"Logging initialized at {level} level")


def get_logger(name: str) -> "logger":
    """Get a logger bound to a module name.

    Usage:
        from src.logging_config import get_logger
        logger = get_logger(__name__)
    """
    return logger.bind(name=name)


def mask_secret(secret: str | None, visible: int = 4) -> str:
    """Mask a credential for logging: AIzaSyD... -> AIza****."""
    if not secret:
        return "<unset>"
    if len(secret) <= visible * 2:
        return "****"
    return f"{secret[:visible]}****"


def truncate_for_log(text: str, limit: int = 80) -> str:
    """Shorten user or model text before it goes into a log line."""
    text = text.replace("\n", " ")
    if len(text) <= limit:
        return text
    return f"{text[:limit]}..."
