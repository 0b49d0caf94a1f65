"""Structured logging configuration."""

import logging
import sys
from typing import TextIO

import structlog

from fetchkit.settings.app import FetchSettings


def _resolve_level(level: int | str) -> int:
    """Convert a level name such as ``"debug"`` to its numeric value."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    if not isinstance(resolved, int):
        msg = f"Unknown log level: {level}"
        raise ValueError(msg)
    return resolved


def configure_logging(
    level: int | str = logging.INFO,
    output: TextIO = sys.stderr,
    json_format: bool = True,
) -> None:
    """Configure structured logging for fetchkit and the host application.

    Sets up structlog with JSON output format and standard processors
    for timestamps, log levels, and context binding.

    Args:
        level: Logging level or level name (default: INFO).
        output: Output stream (default: stderr).
        json_format: Whether to use JSON format (default: True).
    """
    numeric_level = _resolve_level(level)

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_format:
        processors.append(structlog.processors.JSONRenderer(sort_keys=True))
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=output),
        cache_logger_on_first_use=True,
    )

    # httpx logs through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=output,
        level=numeric_level,
    )


def configure_logging_from_settings(
    settings: FetchSettings,
    output: TextIO = sys.stderr,
) -> None:
    """Configure logging from environment settings.

    Args:
        settings: Loaded settings.
        output: Output stream (default: stderr).
    """
    configure_logging(
        level=settings.log_level,
        output=output,
        json_format=settings.log_json,
    )


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a bound logger instance.

    Args:
        name: Optional logger name.

    Returns:
        Bound logger instance.
    """
    logger: structlog.stdlib.BoundLogger = structlog.get_logger(name)
    return logger


def bind_fetch_context(**values: str) -> None:
    """Bind context (e.g. a caller's request id) to subsequent log messages.

    Context is stored in contextvars, so each asyncio task sees its own.

    Args:
        values: Key/value pairs to bind.
    """
    structlog.contextvars.bind_contextvars(**values)


def clear_fetch_context(*keys: str) -> None:
    """Remove bound context keys from log messages.

    Args:
        keys: Keys to unbind.
    """
    structlog.contextvars.unbind_contextvars(*keys)
