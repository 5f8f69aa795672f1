"""Centralized logging configuration with structured logging.

Provides:
- Pretty console logs for development (colored, key-value pairs)
- JSON logs for production (machine-parseable)
- Transaction ID correlation across every log line emitted inside a unit of work
- Configurable log level for SQLAlchemy's engine logger

Usage:
    from storefront.core.logging_config import setup_logging
    setup_logging()  # Call once at process startup
"""

import importlib.util
import logging
import sys

import structlog

from storefront.main_config import LoggingConfig, logging_config, settings


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure structured logging for the entire process.

    Behavior:
    - Reads LOG_FORMAT, LOG_LEVEL, LOG_LEVEL_SQLALCHEMY (via main_config)
    - JSON format for production (LOG_FORMAT=json)
    - Pretty console for local/dev (LOG_FORMAT=console)
    - Context bound with ``structlog.contextvars`` (e.g. transaction_id) is
      added to all logs

    Args:
        config: Logging settings; defaults to the process-wide ``logging_config``
    """
    config = config or logging_config
    log_level = config.level.upper()

    # Shared processors for both stdlib and structlog
    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]

    if config.format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        # rich is a dev dependency; colors only when it is importable
        colors = importlib.util.find_spec("rich") is not None
        renderer = structlog.dev.ConsoleRenderer(colors=colors)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    # Configure stdlib logging to use structlog formatting
    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(log_level)

    # SQLAlchemy echoes every statement at INFO; keep it quiet unless asked
    logging.getLogger("sqlalchemy.engine").setLevel(config.level_sqlalchemy.upper())

    logger = structlog.get_logger(__name__)
    logger.info(
        "logging_configured",
        app=settings.app_name,
        version=settings.app_version,
        env=settings.env.value,
        log_format=config.format,
        log_level=log_level,
    )
