"""Structured logging configuration for Smart Select.

Analysis logs are dominated by absolute file paths and path collections
(frontiers, cycles, excluded sets). Two processors keep them readable:
paths under the workspace root are shown relative to it, and long
collections are cut down to a sample plus a count. Output is colored
console in development and JSON elsewhere.
"""

import logging
import os
import sys
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from smart_select.config import get_settings

# Items kept when a logged collection is shortened
MAX_LOGGED_ITEMS = 10


class RelativizeWorkspacePaths:
    """Rewrite absolute paths under the workspace root as root-relative."""

    def __init__(self, workspace_root: str) -> None:
        self._prefix = workspace_root.rstrip(os.sep) + os.sep

    def _shorten(self, value: Any) -> Any:
        if isinstance(value, str) and value.startswith(self._prefix):
            return value[len(self._prefix) :]
        return value

    def __call__(self, logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
        for key, value in event_dict.items():
            if key == "event":
                continue
            if isinstance(value, (list, tuple, set, frozenset)):
                event_dict[key] = type(value)(self._shorten(v) for v in value)
            else:
                event_dict[key] = self._shorten(value)
        return event_dict


def truncate_collections(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    """Replace collections longer than MAX_LOGGED_ITEMS with a sample and a count."""
    for key, value in event_dict.items():
        if isinstance(value, (list, tuple, set, frozenset)) and len(value) > MAX_LOGGED_ITEMS:
            items = sorted(value, key=str) if isinstance(value, (set, frozenset)) else list(value)
            event_dict[key] = {
                "sample": items[:MAX_LOGGED_ITEMS],
                "total": len(value),
            }
    return event_dict


def setup_logging() -> None:
    """Configure structured logging for the application.

    Development gets colored console output, other environments JSON.
    Standard library logging is routed to stdout at the configured level.
    """
    settings = get_settings()
    is_dev = settings.app.env == "development"

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        RelativizeWorkspacePaths(str(settings.workspace.root)),
        truncate_collections,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        processors: list[Processor] = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(colors=True),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.app.log_level),
    )

    # Per-request access lines and event-loop debug chatter drown out analysis logs
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Analysis started", root="/src/app.ts")
    """
    return structlog.get_logger(name)


class LogContext:
    """Bind context to every log line inside a block.

    Nested contexts that rebind a key restore the outer value on exit.

    Example:
        >>> with LogContext(analysis_root="/src/app.ts"):
        ...     logger.info("Expanding")  # includes analysis_root
    """

    def __init__(self, **context: Any) -> None:
        self.context = context
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.context)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
