#!/usr/bin/env python3
"""
Structured Logging Module using structlog

Provides structured logging with:
- Unit-of-work ID correlation (one ID per request / transaction)
- Stage numbering for cache execution flow
- JSON formatting for log aggregation, console rendering for development
"""

import logging
import sys
from contextvars import ContextVar, Token
from datetime import datetime, timezone

import structlog
from structlog.types import EventDict, WrappedLogger

from cacheable.core.config.settings import Settings, get_settings

# Context variable for the unit-of-work ID
unit_id_ctx: ContextVar[str | None] = ContextVar("unit_id", default=None)


def add_unit_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add unit-of-work ID to log event from context variable.

    STAGE-L.1: Unit ID injection
    """
    unit_id = unit_id_ctx.get()
    if unit_id:
        event_dict["unit_id"] = unit_id
    return event_dict


def add_timestamp(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ISO timestamp to log event.

    STAGE-L.2: Timestamp injection
    """
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
    return event_dict


def add_log_level_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Uppercase the level field.

    STAGE-L.3: Log level injection
    """
    if "level" in event_dict:
        event_dict["level"] = event_dict["level"].upper()
    return event_dict


def setup_logging(
    log_level: str | None = None,
    log_format: str | None = None,
    settings: Settings | None = None,
) -> None:
    """
    Setup structured logging with structlog.

    STAGE-L: Logging initialization

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format ('json' or 'console')
        settings: Settings to read defaults from (global settings if omitted)
    """
    settings = settings or get_settings()

    log_level = log_level or settings.logging.LOG_LEVEL
    log_format = log_format or settings.logging.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s", stream=sys.stdout, level=getattr(logging, log_level.upper())
    )

    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            add_unit_id,
            add_timestamp,
            structlog.stdlib.add_log_level,
            add_log_level_name,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Usage:
        logger = get_logger(__name__)
        logger.info("message", key="value", stage="C.1")
    """
    return structlog.get_logger(name)


def set_unit_id(unit_id: str) -> Token:
    """
    Set the unit-of-work ID for the current context.

    Call at the start of each request / transaction so every cache log line
    it produces can be correlated.
    """
    return unit_id_ctx.set(unit_id)


def get_unit_id() -> str | None:
    """Get current unit-of-work ID from context."""
    return unit_id_ctx.get()


def clear_unit_id() -> None:
    """Clear the unit-of-work ID from context."""
    unit_id_ctx.set(None)


def reset_unit_id(token: Token) -> None:
    """Restore the unit-of-work ID that was active before set_unit_id()."""
    unit_id_ctx.reset(token)


def log_stage(
    logger: structlog.stdlib.BoundLogger, stage: str, message: str, level: str = "info", **kwargs
) -> None:
    """
    Log a message with stage information.

    Usage:
        log_stage(logger, Stage.LOCAL_LOOKUP, "Local cache hit", cache_key="User::getById-7")
    """
    log_func = getattr(logger, level.lower())
    log_func(message, stage=str(getattr(stage, "value", stage)), **kwargs)
