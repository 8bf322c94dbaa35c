"""
Structured logging for the storage connector.

Uses structlog for structured logging with context propagation. Logs render
to the console during development and as JSON lines when
``ARANGO_STORAGE_OBSERVABILITY_JSON_LOGS`` is set.

Usage:
    from arango_storage.common.logging import get_logger

    logger = get_logger(__name__, component="connector")

    # Simple logging
    logger.info("Record stored", collection="user", document_id="abc123")

    # Bound context
    op_logger = logger.bind(operation="set", key="user/abc123")
    op_logger.debug("Upserting document")

    # With timing
    with logger.timer("bootstrap", database="deepstream"):
        bootstrap()
"""

import datetime
import logging
import sys
import time
from contextlib import contextmanager
from typing import Any, Optional

import structlog
from structlog.types import EventDict, Processor

from arango_storage.common.config import config


# ==============================================================================
# Structlog Processors
# ==============================================================================


def add_timestamp(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """
    Add ISO 8601 timestamp to log events.

    Uses UTC timezone for consistency across regions.
    """
    event_dict["timestamp"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return event_dict


def add_log_level(logger: Any, method_name: str, event_dict: EventDict) -> EventDict:
    """Add the upper-cased log level to the event dict."""
    if method_name == "msg":
        level = event_dict.pop("level", "INFO")
    else:
        level = method_name.upper()

    event_dict["level"] = level
    return event_dict


# ==============================================================================
# Logger Configuration
# ==============================================================================


def configure_logging(
    json_output: bool = False,
    log_level: str = "INFO",
) -> None:
    """
    Configure structlog for the connector.

    Called once on import with the observability settings. Hosts may call it
    again to switch renderer or level.

    Args:
        json_output: If True, output JSON logs. If False, use console-friendly format.
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(
                colors=True,
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, log_level.upper())
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ==============================================================================
# Logger Factory
# ==============================================================================


class StorageLogger:
    """
    Connector logger with a timing helper.

    Wraps a structlog BoundLogger and binds the component name once.
    """

    def __init__(self, logger: structlog.BoundLogger, component: Optional[str] = None):
        self._logger = logger
        self._component = component

        if component:
            self._logger = self._logger.bind(component=component)

    def bind(self, **kwargs: Any) -> "StorageLogger":
        """Return a new logger with additional bound context."""
        return StorageLogger(self._logger.bind(**kwargs))

    def debug(self, message: str, **kwargs: Any) -> None:
        self._logger.debug(message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._logger.info(message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._logger.warning(message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self._logger.error(message, **kwargs)

    def critical(self, message: str, **kwargs: Any) -> None:
        self._logger.critical(message, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log exception with traceback."""
        self._logger.exception(message, **kwargs)

    @contextmanager
    def timer(self, operation: str, **context: Any):
        """
        Context manager for timing operations.

        Logs completion (or failure) with the duration in milliseconds and
        re-raises any exception.

        Example:
            with logger.timer("bootstrap", database="deepstream"):
                bootstrap()
        """
        start_time = time.perf_counter()
        self.debug(f"Starting {operation}", operation=operation, **context)

        try:
            yield
        except Exception as e:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.error(
                f"Operation failed: {operation}",
                operation=operation,
                duration_ms=duration_ms,
                error=str(e),
                **context,
            )
            raise
        else:
            duration_ms = (time.perf_counter() - start_time) * 1000
            self.info(
                f"Operation completed: {operation}",
                operation=operation,
                duration_ms=duration_ms,
                **context,
            )


def get_logger(
    name: str,
    component: Optional[str] = None,
    **initial_context: Any,
) -> StorageLogger:
    """
    Get a structured logger for a module.

    Args:
        name: Module name (typically __name__)
        component: Component name (e.g., "connector", "provisioner", "store")
        **initial_context: Additional context to bind to logger

    Example:
        logger = get_logger(__name__, component="provisioner")
        logger.info("Collection created", collection="user")
    """
    base_logger = structlog.get_logger(name)

    if initial_context:
        base_logger = base_logger.bind(**initial_context)

    return StorageLogger(base_logger, component)


# ==============================================================================
# Initialize logging on module import
# ==============================================================================

configure_logging(
    json_output=config.observability.json_logs,
    log_level=config.observability.log_level,
)
