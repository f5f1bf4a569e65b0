"""Logging configuration for committee_engine.

Provides structured logging using structlog with console output by default and
JSON output for log aggregation. The engine is embedded by host applications:
getting a logger never touches the standard library configuration, only an
explicit configure_logging() call installs handlers. A rotating file handler
is attached when the host application asks for one.
"""

from __future__ import annotations

import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any

import structlog

from committee_engine.core.settings import EngineSettings, get_settings

# Module-level state for idempotent configuration
_configured: bool = False
_default_logger: structlog.BoundLogger | None = None

ENGINE_LOGGER_NAME = "committee_engine"


def resolve_log_options(
    level: str | None = None,
    json_output: bool | None = None,
    settings: EngineSettings | None = None,
) -> tuple[str, bool]:
    """Explicit arguments win over COMMITTEE_LOG_LEVEL / COMMITTEE_LOG_JSON."""
    settings = settings or get_settings()
    log_level = (level or settings.log_level).upper()
    return log_level, settings.log_json if json_output is None else json_output


def configure_logging(
    level: str | None = None,
    json_output: bool | None = None,
    log_file: str | Path | None = None,
) -> structlog.BoundLogger:
    """Configure structured logging for the engine.

    Handlers are attached to the committee_engine logger; the root logger
    and the handlers the host installed on it are left untouched.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR). Defaults to
            EngineSettings.log_level.
        json_output: If True, output JSON format. Defaults to
            EngineSettings.log_json.
        log_file: Optional path of a rotating log file.

    Returns:
        Configured logger instance.
    """
    global _configured, _default_logger

    # Skip if already configured (idempotent)
    if _configured:
        return structlog.get_logger()

    log_level, json_output = resolve_log_options(level, json_output)
    numeric_level = getattr(logging, log_level, logging.INFO)

    # 1. Configure Standard Library Logging (Handlers)
    handlers: list[logging.Handler] = [
        logging.StreamHandler(sys.stdout),
    ]

    if log_file is not None:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            logging.handlers.RotatingFileHandler(
                str(path), maxBytes=10 * 1024 * 1024, backupCount=5, encoding="utf-8"
            )
        )

    # Handlers go on the package logger; the root logger belongs to the host
    engine_logger = logging.getLogger(ENGINE_LOGGER_NAME)
    engine_logger.setLevel(numeric_level)
    engine_logger.propagate = False
    for handler in handlers:
        handler.setFormatter(logging.Formatter("%(message)s"))
        engine_logger.addHandler(handler)

    # 2. Configure Structlog Processors
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if json_output:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=False))

    # 3. Configure Structlog to wrap Stdlib
    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    _configured = True
    _default_logger = structlog.get_logger()
    return _default_logger


def get_logger(name: str | None = None) -> structlog.BoundLogger:
    """Get a logger instance, optionally bound to a specific name.

    Does not configure logging; until configure_logging() runs, structlog
    defaults apply.
    """
    logger = structlog.get_logger()
    if name:
        return logger.bind(logger_name=name)
    return logger
