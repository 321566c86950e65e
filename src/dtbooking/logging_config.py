"""Structured logging for the booking service, built on structlog."""

import logging
import sys

import structlog

# Audit trail of admin booking edits
ADMIN_LOGGER = "dtbooking.admin"
# Outbound push notifications
PUSH_LOGGER = "dtbooking.push"

_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "httpcore")


def configure_logging(log_level: str = "info", json_output: bool = False) -> None:
    """Route stdlib logging through structlog.

    Args:
        log_level: Root level name (debug/info/warning/error).
        json_output: JSON lines for production, coloured console output otherwise.

    The admin audit and push loggers stay at INFO even when the root level is
    raised, so booking edits and push sends are always recorded.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.ExtraAdder(),
        structlog.processors.TimeStamper(fmt="iso", utc=False),
        structlog.processors.StackInfoRenderer(),
    ]
    renderer = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if json_output
        else structlog.dev.ConsoleRenderer(colors=True)
    )

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
            foreign_pre_chain=shared_processors,
        )
    )

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in (ADMIN_LOGGER, PUSH_LOGGER):
        logging.getLogger(name).setLevel(min(level, logging.INFO))
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def bind_request_context(trace_id: str) -> None:
    """Start a fresh log context for one request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(trace_id=trace_id)


def bind_actor(user_id: int, user_type: str) -> None:
    """Tag the rest of the request's log lines with the authenticated user."""
    structlog.contextvars.bind_contextvars(user_id=user_id, user_type=user_type)


def clear_request_context() -> None:
    structlog.contextvars.clear_contextvars()
