"""Structured logging setup.

Events are snake_case names with key/value context, e.g.
``logger.info("task_completed", user_id=7, reward=15)``. Context bound with
``bind_user`` (the authenticated user) rides along on every event logged
while a request is being handled.
"""

import logging
import sys

import structlog

from taskpay.settings import settings

# Chatty third-party loggers kept at WARNING unless we run at DEBUG
_NOISY_LOGGERS = ("passlib", "sqlalchemy.engine", "uvicorn.access")


def _add_app_name(logger, method_name, event_dict):
    event_dict.setdefault("app", settings.app_name)
    return event_dict


def configure_logging() -> None:
    """Configure structlog and the standard library root logger."""
    level = logging.getLevelName(settings.log_level.upper())

    shared = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        _add_app_name,
    ]
    if settings.log_format == "json":
        processors = shared + [
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared + [
            structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)


def bind_user(user_id: int, is_admin: bool = False) -> None:
    """Attach the authenticated user to every event of the current request."""
    structlog.contextvars.bind_contextvars(user_id=user_id, admin=is_admin)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a logger instance."""
    return structlog.get_logger(name)
