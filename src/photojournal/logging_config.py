"""
Centralized logging configuration for photojournal.

structlog is configured once at startup with console output in development
and JSON lines in production. Modules obtain loggers through get_logger()
and report through the small helpers below so that event names stay
consistent across the repositories, the upload pipeline and the HTTP layer.
"""

import logging
import os
import sys
from typing import Any

import structlog

LEVEL_MAPPING = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def get_log_level(level_name: str | None = None) -> int:
    """
    Resolve a log level name, falling back to LOG_LEVEL and then INFO.

    Args:
        level_name: Level name such as "DEBUG" (optional)

    Returns:
        int: Log level constant from logging module
    """
    if level_name is None:
        level_name = os.getenv("LOG_LEVEL", "INFO")
    return LEVEL_MAPPING.get(level_name.upper(), logging.INFO)


def configure_structured_logging(level_name: str | None = None, production: bool = False) -> None:
    """
    Configure structured logging for the whole process.

    Args:
        level_name: Log level name (defaults to the LOG_LEVEL environment variable)
        production: Render JSON lines instead of the development console format
    """
    log_level = get_log_level(level_name)

    logging.basicConfig(
        level=log_level,
        format="%(message)s",  # structlog will handle formatting
        stream=sys.stderr,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if production:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger().setLevel(log_level)

    logger = structlog.get_logger("photojournal.logging")
    logger.info(
        "logging_configured",
        log_level=logging.getLevelName(log_level),
        environment="production" if production else "development",
    )


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (optional, defaults to calling module)

    Returns:
        structlog.BoundLogger: Configured logger instance
    """
    if name is None:
        import inspect

        frame = inspect.currentframe()
        if frame and frame.f_back:
            name = frame.f_back.f_globals.get("__name__", "unknown")

    return structlog.get_logger(name)


def log_performance(operation: str, duration: float, **context: Any) -> None:
    """
    Log performance metrics.

    Args:
        operation: Name of the operation
        duration: Duration in seconds
        **context: Additional context information
    """
    logger = get_logger("photojournal.performance")
    logger.debug("performance_metric", operation=operation, duration_seconds=duration, **context)


def log_user_action(user_id: str, action: str, **context: Any) -> None:
    """
    Log management actions for the audit log.

    Args:
        user_id: Authenticated user name
        action: Action performed
        **context: Additional context information
    """
    logger = get_logger("photojournal.user_actions")
    logger.info("user_action", user_id=user_id, action=action, **context)


def log_error(error: Exception, context: dict[str, Any] | None = None, level: str = "error") -> None:
    """
    Log errors with structured context.

    Args:
        error: Exception that occurred
        context: Additional context information
        level: Logger method to use ("error", "warning", "info")
    """
    logger = get_logger("photojournal.errors")

    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if context:
        error_context.update(context)

    if level == "error":
        logger.error("error_occurred", **error_context, exc_info=error)
    else:
        getattr(logger, level)("error_occurred", **error_context)


def log_security_event(event_type: str, user_id: str | None = None, **context: Any) -> None:
    """
    Log security-related events.

    Args:
        event_type: Type of security event
        user_id: User identifier (if applicable)
        **context: Additional context information
    """
    logger = get_logger("photojournal.security")
    logger.warning("security_event", event_type=event_type, user_id=user_id, **context)
