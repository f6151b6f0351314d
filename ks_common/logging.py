"""structlog setup for diagnostics.

Run progress goes to the console through the UI adapter; this only covers
`logging.getLogger(__name__)` records, which default to WARNING on stderr.
"""

from __future__ import annotations

import logging
import os
import sys

import structlog

_TRUTHY = {"1", "true", "yes", "on"}

_PRE_CHAIN: list[structlog.types.Processor] = [
    structlog.contextvars.merge_contextvars,
    structlog.processors.add_log_level,
    structlog.processors.TimeStamper(fmt="iso", utc=True),
]


def _level_from(value: str | int | None) -> int:
    if isinstance(value, int):
        return value
    if not value:
        return logging.WARNING
    return logging.getLevelNamesMapping().get(value.strip().upper(), logging.WARNING)


def configure_logging(
    *,
    level: str | int | None = None,
    debug: bool = False,
    log_file: str | None = None,
    json: bool | None = None,
    force: bool = False,
) -> None:
    """Route stdlib logging through a structlog formatter.

    ``KS_LOG_LEVEL``, ``KS_LOG_JSON`` and ``KS_LOG_FILE`` fill in whatever
    the caller leaves unset; ``debug`` wins over any level. Without
    ``force`` existing root handlers are kept.
    """
    if json is None:
        json = os.environ.get("KS_LOG_JSON", "").strip().lower() in _TRUTHY
    if log_file is None:
        log_file = os.environ.get("KS_LOG_FILE") or None
    resolved_level = logging.DEBUG if debug else _level_from(level or os.environ.get("KS_LOG_LEVEL"))

    root = logging.getLogger()
    if force or not root.handlers:
        renderer = (
            structlog.processors.JSONRenderer() if json else structlog.dev.ConsoleRenderer()
        )
        formatter = structlog.stdlib.ProcessorFormatter(
            processor=renderer, foreign_pre_chain=list(_PRE_CHAIN)
        )
        handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
        if log_file:
            handlers.append(logging.FileHandler(log_file))
        root.handlers.clear()
        for handler in handlers:
            handler.setFormatter(formatter)
            root.addHandler(handler)
        root.setLevel(resolved_level)

    structlog.configure(
        processors=[*_PRE_CHAIN, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
