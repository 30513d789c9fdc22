"""
gracely/core/logging.py
Structured logging setup using structlog
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.stdlib import BoundLogger

from .config import get_settings


def setup_logging(level: Optional[str] = None, fmt: Optional[str] = None) -> BoundLogger:
    """
    Configure structured logging for the host process.

    Gracely never calls this itself; hosts that do not configure structlog
    can call it once at startup. Falls back to GRACELY_LOG_* settings.
    """
    settings = get_settings()
    level = level or settings.LOG_LEVEL
    fmt = fmt or settings.LOG_FORMAT

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level),
    )

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if fmt == "json":
        processors = shared_processors + [
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer()
        ]
    else:
        processors = shared_processors + [
            structlog.dev.ConsoleRenderer(colors=True)
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger = structlog.get_logger("gracely")
    logger.info("logging_configured", level=level, format=fmt)
    return logger


def get_logger(name: Optional[str] = None) -> BoundLogger:
    """
    Get a logger instance

    Args:
        name: Logger name (e.g., "detection", "shutdown")
    """
    if name:
        return structlog.get_logger(f"gracely.{name}")
    return structlog.get_logger("gracely")


# ============================================================================
# Export
# ============================================================================

__all__ = ["setup_logging", "get_logger"]
