"""
Logging configuration for Medo Care.

Uses structlog for structured JSON logging suitable for production.
Request-scoped fields (request id, method, path) are held in
structlog contextvars so every event logged while handling a request,
including batch events from the upload worker thread, carries them.
"""

import logging
import sys
from typing import Optional
from uuid import uuid4

import structlog
from structlog.types import Processor

from medocare.config import settings

REQUEST_ID_HEADER = "X-Request-ID"


def configure_logging(
    log_level: Optional[str] = None,
    json_format: bool = True
) -> None:
    """
    Configure structured logging for the application.

    Args:
        log_level: Override log level (defaults to settings.log_level)
        json_format: Whether to output JSON (True) or console format (False)
    """
    level = log_level or settings.log_level

    # Convert string level to logging constant
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    # Request context first, so renderers see request_id on every event
    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if json_format:
        # Production: one JSON object per line
        processors: list[Processor] = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ]
    else:
        # Development: Pretty console output
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True)
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Uvicorn access/error logs go through the standard library
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )


def bind_request_context(
    method: str,
    path: str,
    request_id: Optional[str] = None
) -> str:
    """
    Attach request fields to every log event in the current context.

    Args:
        method: HTTP method
        path: Request path (never the query string)
        request_id: Id supplied by the caller, if any

    Returns:
        The request id in use
    """
    request_id = request_id or uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(
        request_id=request_id,
        method=method,
        path=path,
    )
    return request_id


def clear_request_context() -> None:
    """Drop request fields once the response has been produced."""
    structlog.contextvars.clear_contextvars()


def get_logger(name: str = "medocare") -> structlog.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name for identification

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


# Configure logging on module import (reconfigured in the app lifespan)
configure_logging(
    log_level=settings.log_level,
    json_format=not settings.debug  # Console format in debug mode
)
