"""
Structured logging.

Modules log through `structlog.get_logger()` with snake_case event names
and keyword context. Everything goes to stdout: JSON lines in production,
console output elsewhere. Records from stdlib loggers (uvicorn, sqlalchemy,
httpx) pass through the same renderer so the stream stays uniform.
"""

import logging
import sys
from typing import Optional

import structlog

from noteshub.core.config import settings

# Held at WARNING unless LOG_LEVEL is DEBUG
QUIET_LOGGERS = ("httpx", "httpcore", "aiosqlite", "sqlalchemy.engine", "multipart")


def _final_processors(environment: str) -> list:
    if environment == "production":
        return [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    return [structlog.dev.ConsoleRenderer()]


def setup_logging(level: Optional[str] = None, environment: Optional[str] = None) -> None:
    level = (level or settings.LOG_LEVEL).upper()
    environment = environment or settings.ENVIRONMENT

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    structlog.configure(
        processors=shared_processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta] + _final_processors(environment),
    )
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level if level == "DEBUG" else logging.WARNING)
