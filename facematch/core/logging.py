"""Logging configuration for the face matching service."""
import logging
import sys
from typing import List

import structlog
from structlog.stdlib import ProcessorFormatter

from facematch.core.config import settings


def setup_logging() -> None:
    """Configure structured logging for the application.

    - Uses ConsoleRenderer with colors for development.
    - Uses JSONRenderer for other environments (staging, production).
    - Integrates with standard Python logging handlers.
    """
    shared_processors: List[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
    ]

    if settings.ENVIRONMENT == "development":
        final_processor = structlog.dev.ConsoleRenderer(colors=True)
    else:
        # JSON logs need exceptions rendered into the event dict
        shared_processors.append(structlog.processors.format_exc_info)
        final_processor = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=shared_processors + [ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processor=final_processor,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    # Clear existing handlers
    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    root_logger.addHandler(handler)
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    logging.getLogger("uvicorn.error").propagate = False
    logging.getLogger("uvicorn.access").disabled = True
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)

    root_logger.info(
        f"Logging setup complete. Environment: {settings.ENVIRONMENT}, Level: {settings.LOG_LEVEL}"
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a logger instance compatible with standard logging.

    Args:
        name: Name for the logger, typically __name__

    Returns:
        structlog.stdlib.BoundLogger: Configured logger instance
    """
    return structlog.get_logger(name)
