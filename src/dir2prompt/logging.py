from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_LOGGING_CONFIGURED = False
_CURRENT_TARGET: str | None = None


def setup_logging(filename: str | Path | None = None) -> structlog.BoundLogger:
    """Set up structured logging for the dir2prompt package.

    structlog is configured once; the stdlib handler is replaced whenever a
    different target is requested, so a later ``--log-file`` takes effect
    even though the module-level logger was created at import time.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.

    Returns:
        A structlog logger instance configured for the dir2prompt package.
    """
    global _LOGGING_CONFIGURED, _CURRENT_TARGET  # noqa: PLW0603
    target = str(filename) if filename else None
    if not _LOGGING_CONFIGURED or target != _CURRENT_TARGET:
        handlers: list[logging.Handler] = []
        if target:
            handlers.append(logging.FileHandler(target, encoding="utf-8"))
        else:
            handlers.append(logging.StreamHandler(sys.stderr))

        logging.basicConfig(
            level=logging.INFO,
            handlers=handlers,
            format="%(message)s",
            force=True,
        )
        _CURRENT_TARGET = target

    if not _LOGGING_CONFIGURED:
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(logging.INFO),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_CONFIGURED = True

    return structlog.get_logger("dir2prompt")


logger = setup_logging()
