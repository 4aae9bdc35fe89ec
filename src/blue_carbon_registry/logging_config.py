"""Structured logging for the registry, built on structlog.

Development gets colored console lines; staging and production get one JSON
object per line. Every entry is stamped with the service name and, inside a
request, the request_id bound by RequestIDMiddleware, so a project or credit
transition can be traced back to the call that caused it.

Usage:
    from blue_carbon_registry.logging_config import configure_logging, get_logger
    configure_logging(get_settings())
    logger = get_logger(__name__)
    logger.info("project.submitted", project_id="abc-123", submitter="u-1")
"""

from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from blue_carbon_registry.config import Settings

SERVICE_NAME = "blue-carbon-registry"

# Libraries that log per query, per RPC call or per HTTP access line.
QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "web3", "urllib3", "aiosqlite")


def _add_service(
    logger: object, method_name: str, event_dict: structlog.types.EventDict
) -> structlog.types.EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


def setup_logging(log_level: str = "DEBUG", json_logs: bool = False) -> None:
    """Route structlog and stdlib logging through one stdout handler.

    Args:
        log_level: Standard level name (DEBUG, INFO, WARNING, ...).
        json_logs: Render JSON instead of the colored console format.
    """
    pre_chain: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        _add_service,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    renderer: structlog.types.Processor
    if json_logs:
        pre_chain.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def configure_logging(settings: Settings) -> None:
    """Apply the log level and format implied by the deployment settings."""
    setup_logging(log_level=settings.app_log_level, json_logs=not settings.is_development)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, optionally named after the calling module."""
    return structlog.get_logger(name)
