"""Structured logging setup for the patience logger namespace.

Patience is a library, so logging is opt-in: call `configure_logging()` or
construct `Patience(configure_logging=True)`. Only the "patience" logger
gets a handler; the host application's root logger is left alone.

Renderer follows `Settings.ENVIRONMENT`: JSON lines in production, colored
console output anywhere else.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from patience.config import Settings, settings as default_settings

LIBRARY_LOGGER = "patience"

# Transport and retry internals that log below WARNING on every try
QUIET_LOGGERS = ("httpx", "httpcore", "tenacity")


def add_app_context(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Tag every event with the emitting library."""
    event_dict["app"] = "patience"
    return event_dict


def build_processors() -> list[Processor]:
    """Processors shared by structlog loggers and foreign stdlib records."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_app_context,
    ]


def select_renderer(environment: str) -> Processor:
    if environment.lower() == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


def configure_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """
    Route patience's structlog events through a stdlib handler on stdout.

    Args:
        settings: Source of LOG_LEVEL and ENVIRONMENT (default: global settings)

    Returns:
        The configured "patience" stdlib logger
    """
    settings = settings or default_settings
    level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    processors = build_processors()
    if settings.ENVIRONMENT.lower() == "production":
        processors.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=processors + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=select_renderer(settings.ENVIRONMENT),
            foreign_pre_chain=processors,
        )
    )
    handler.setLevel(level)

    library_logger = logging.getLogger(LIBRARY_LOGGER)
    # Reconfiguring replaces the previous handler instead of stacking
    library_logger.handlers[:] = [handler]
    library_logger.setLevel(level)
    library_logger.propagate = False

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.get_logger(__name__).info(
        "Logging configured",
        log_level=settings.LOG_LEVEL,
        environment=settings.ENVIRONMENT,
    )
    return library_logger
