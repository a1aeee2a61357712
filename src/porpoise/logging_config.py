"""
Porpoise Structured Logging

JSON logging for services embedding the cache store. Cache and storage
modules log through stdlib loggers; once ``setup_json_logging`` has run, the
root handler renders those records as JSON alongside structlog events.
"""

import logging
import os
import sys
from typing import IO, Optional

import structlog
from pythonjsonlogger import jsonlogger


def setup_json_logging(
    log_level: str = "INFO",
    service_name: str = "porpoise-cache",
    environment: Optional[str] = None,
    stream: Optional[IO[str]] = None,
):
    """
    Route structlog events and stdlib records to JSON on one stream.

    Args:
        log_level: Logging level name (DEBUG, INFO, WARNING, ...)
        service_name: Value bound as ``service`` on every structlog event
        environment: Bound as ``environment`` (default: PORPOISE_ENVIRONMENT or "development")
        stream: Output stream (default: stdout)
    """
    level = getattr(logging, log_level.upper())
    if environment is None:
        environment = os.getenv("PORPOISE_ENVIRONMENT", "development")
    stream = stream or sys.stdout

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=stream),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(stream)
    handler.setFormatter(jsonlogger.JsonFormatter(
        fmt="%(timestamp)s %(levelname)s %(name)s %(message)s",
        timestamp=True,
    ))
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(service=service_name, environment=environment)


def get_logger(name: str = __name__) -> structlog.BoundLogger:
    """Structlog logger for ``name``."""
    return structlog.get_logger(name)


def log_error(logger: structlog.BoundLogger, error: Exception, event: str, **extra):
    """Log an exception with its traceback; porpoise errors add component and context."""
    details = error.to_dict() if hasattr(error, "to_dict") else {}
    logger.error(
        event,
        error_type=type(error).__name__,
        error_message=str(error),
        component=details.get("component"),
        error_context=details.get("context"),
        exc_info=error,
        **extra
    )


def log_cache_stats(logger: structlog.BoundLogger, namespace: Optional[str], stats, **extra):
    """Emit one ``cache_stats`` event from a CacheStats snapshot."""
    logger.info("cache_stats", namespace=namespace, **stats.to_dict(), **extra)


if os.getenv("PORPOISE_JSON_LOGGING", "").lower() in ("1", "true", "yes"):
    setup_json_logging(log_level=os.getenv("PORPOISE_LOG_LEVEL", "INFO"))
