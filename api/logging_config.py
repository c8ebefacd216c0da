"""
============================================================================
FILE: logging_config.py
LOCATION: api/logging_config.py
============================================================================

PURPOSE:
    Provides configurable logging infrastructure with two output formats:
    - JSON structured logs for production (machine-readable, for log aggregators)
    - Human-readable logs for development (console-friendly)

ROLE IN PROJECT:
    Centralizes logging configuration for the backend. API modules import
    get_logger() to obtain child loggers of "studies"; the tree engine in
    services/study_tree logs through module loggers that setup_logging()
    also attaches to.

LOG FORMAT (Development):
    HH:MM:SS [LEVEL] module: message

LOG FORMAT (Production/JSON):
    {"timestamp": "...", "level": "...", "module": "...", "message": "..."}

DEPENDENCIES:
    - External: logging (Python standard library)
    - Internal: config.py (LOG_LEVEL, LOG_JSON)

USAGE:
    from api.logging_config import get_logger

    logger = get_logger("study_nodes")
    logger.info("Move applied")
============================================================================
"""
import json
import logging
import sys
from datetime import datetime, timezone
from typing import Iterable, Optional

from api.config import LOG_JSON, LOG_LEVEL

ENGINE_LOGGER = "services.study_tree"


class StructuredFormatter(logging.Formatter):
    """JSON-style structured log formatter for production."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "module": record.module,
            "message": record.getMessage(),
        }

        if record.funcName:
            log_data["function"] = record.funcName

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Add extra fields if provided
        if hasattr(record, "extra_data"):
            log_data.update(record.extra_data)

        return json.dumps(log_data)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable log formatter for development."""

    FORMAT = "%(asctime)s [%(levelname)s] %(module)s: %(message)s"

    def __init__(self):
        super().__init__(self.FORMAT, datefmt="%H:%M:%S")


def setup_logging(
    level: str = "INFO",
    production: bool = False,
    logger_name: str = "studies",
    also: Iterable[str] = (ENGINE_LOGGER,),
) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        production: Use JSON format if True, human-readable if False
        logger_name: Name of the logger instance
        also: Extra logger names sharing the same handler and level

    Returns:
        Configured logger instance
    """
    handler = logging.StreamHandler(sys.stdout)
    if production:
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(DevelopmentFormatter())

    for name in (logger_name, *also):
        configured = logging.getLogger(name)
        configured.setLevel(getattr(logging, level.upper()))
        configured.handlers.clear()
        configured.addHandler(handler)

    app_logger = logging.getLogger(logger_name)
    # Prevent propagation to root logger
    app_logger.propagate = False
    return app_logger


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Get a child logger with the given name."""
    base_logger = logging.getLogger("studies")
    if name:
        return base_logger.getChild(name)
    return base_logger


logger = setup_logging(level=LOG_LEVEL, production=LOG_JSON)
