"""
Structured logging setup.

Modules log snake_case events with key/value context:
    logger = get_logger(__name__)
    logger.info("records_added", count=12, table="rag_chunks")

Nothing here runs on import. The application calls configure_logging()
once; until then structlog's defaults apply.
"""

import logging

import structlog

from vector_rag.config import LoggingConfig


def configure_logging(config: LoggingConfig = None) -> None:
    """
    Route structlog through the standard library at the configured level.

    Args:
        config: Level and renderer choice. Defaults to INFO, console output.
    """
    config = config or LoggingConfig()
    level = getattr(logging, config.level)

    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)

    renderer = (
        structlog.processors.JSONRenderer()
        if config.json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = None):
    """Return a structlog logger bound to the given module name."""
    return structlog.get_logger(name)
