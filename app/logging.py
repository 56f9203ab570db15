"""structlog configuration for the post engagement service.

LOG_LEVEL selects the level (default INFO) and LOG_FORMAT selects the
renderer: "json" (default) or "console".
"""

import logging
from os import environ

import structlog


def _resolve_level(level: str | None) -> int:
    normalized = (level or "INFO").strip().upper()
    return logging.getLevelNamesMapping().get(normalized, logging.INFO)


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    """Configure structlog.

    Args:
        level: Log level name, defaults to the LOG_LEVEL environment variable
        fmt: "json" or "console", defaults to the LOG_FORMAT environment variable
    """
    resolved_level = _resolve_level(level or environ.get("LOG_LEVEL"))
    fmt = (fmt or environ.get("LOG_FORMAT", "json")).lower()
    renderer = (
        structlog.dev.ConsoleRenderer()
        if fmt == "console"
        else structlog.processors.JSONRenderer()
    )
    logging.basicConfig(level=resolved_level)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(resolved_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
    )
