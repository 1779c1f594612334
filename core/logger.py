"""
core/logger.py -- Logger construction for the SSO service.

The auth layer never reaches for a module-level logger. setup_logger()
configures structlog once at startup and returns the service logger, which
the lifespan hands to AuthService. The service binds per-operation fields
(op, email, user_id) onto it with log.bind().

Output format depends on the environment name:
  local -- structlog console renderer at DEBUG
  dev   -- one JSON object per line at DEBUG
  prod  -- one JSON object per line at INFO

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or storage/.
"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

import structlog
from structlog.typing import FilteringBoundLogger, Processor

LOGGER_NAME = "sso"

_ENV_LEVELS: dict[str, int] = {
    "local": logging.DEBUG,
    "dev": logging.DEBUG,
    "prod": logging.INFO,
}


def setup_logger(env: str, stream: TextIO | None = None) -> FilteringBoundLogger:
    """Configure structlog for the given environment and return the service logger.

    Calling it again replaces the previous configuration, so tests and
    reloads never stack output destinations.

    Raises ValueError for an unknown environment name.
    """
    try:
        level = _ENV_LEVELS[env]
    except KeyError:
        raise ValueError(f"Unknown environment {env!r}; expected one of {sorted(_ENV_LEVELS)}") from None

    out = stream or sys.stdout

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if env == "local":
        processors: list[Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=out.isatty()),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=False,
    )

    return structlog.get_logger(LOGGER_NAME)
