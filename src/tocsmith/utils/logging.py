"""Structured logging setup for tocsmith."""

import structlog
from pathlib import Path
from typing import Any
import os


def configure_logging(verbose: bool = False) -> None:
    """
    Configure structlog for JSON logging to ~/.cache/tocsmith/logs/tocsmith.log.

    Log level can be controlled via TOCSMITH_LOG_LEVEL environment variable:
    - Set to "DEBUG" to see block detection and placement details
    - Defaults to "INFO" if not set (or "DEBUG" when verbose is requested)

    Log levels:
    - DEBUG: Located blocks, chosen insertion lines, cursor repairs
    - INFO: Generation requests and results, files written
    - WARNING: Rejected exclusion patterns, surgical replacement fallbacks
    - ERROR: Generation failures, write failures

    Example:
        # Enable debug logging
        export TOCSMITH_LOG_LEVEL=DEBUG
        tocsmith generate notes/project.md

        # View logs with jq for readability:
        tail -f ~/.cache/tocsmith/logs/tocsmith.log | jq .
    """
    # Ensure log directory exists
    log_dir = Path.home() / ".cache" / "tocsmith" / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "tocsmith.log"

    default_level = "DEBUG" if verbose else "INFO"
    log_level = os.environ.get("TOCSMITH_LOG_LEVEL", default_level).upper()

    # Validate log level
    valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR"]
    if log_level not in valid_levels:
        log_level = "INFO"

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.WriteLoggerFactory(file=open(log_file, "a")),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (typically __name__ of calling module)

    Returns:
        Structured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("outline_generated", doc_id="notes/a.md", items=12)
    """
    return structlog.get_logger(name)
