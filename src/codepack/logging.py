from __future__ import annotations

import logging
import sys
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from pathlib import Path

_LOGGING_CONFIGURED = False
_FILE_HANDLER: logging.Handler | None = None


def setup_logging(filename: str | Path | None = None, *, level: int = logging.INFO) -> structlog.BoundLogger:
    """Set up structured logging for the codepack package.

    The first call configures structlog and the stdlib root handler. A later
    call with a ``filename`` redirects output to that file.

    Args:
        filename: Optional path to a log file. If None, logs are written to stderr.
        level: Minimum level for emitted events.

    Returns:
        A structlog logger instance configured for the codepack package.
    """
    global _LOGGING_CONFIGURED, _FILE_HANDLER  # noqa: PLW0603
    if not _LOGGING_CONFIGURED:
        logging.basicConfig(
            level=level,
            handlers=[logging.StreamHandler(sys.stderr)],
            format="%(message)s",
        )
        structlog.configure(
            processors=[
                structlog.processors.TimeStamper(fmt="iso"),
                structlog.processors.add_log_level,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
                structlog.processors.JSONRenderer(),
            ],
            wrapper_class=structlog.make_filtering_bound_logger(level),
            context_class=dict,
            logger_factory=structlog.stdlib.LoggerFactory(),
            cache_logger_on_first_use=True,
        )
        _LOGGING_CONFIGURED = True

    if filename and _FILE_HANDLER is None:
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
        _FILE_HANDLER = logging.FileHandler(str(filename), encoding="utf-8")
        root.addHandler(_FILE_HANDLER)

    return structlog.get_logger("codepack")


logger = setup_logging()
