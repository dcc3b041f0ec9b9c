"""Structured Logging Setup - structlog on top of stdlib logging

Why: Same JSON log lines whether the codec runs in a service or a script.
How: Call configure_logging() once at process start (the demo does).
"""
import logging
import sys

import structlog

from secure_serialization.config import LOG_JSON, LOG_LEVEL


def configure_logging(json: bool = LOG_JSON, level: str = LOG_LEVEL):
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level.upper())
    renderer = structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
