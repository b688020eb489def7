"""Structlog configuration for the flow engine.

Every turn runs inside ``turn_context`` so that log lines emitted anywhere in
the engine carry the user id and the event kind. Production output is JSON
with user text clipped; development output goes through the console renderer.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from structlog.types import Processor

from .. import __version__
from ..models import get_settings

# Longest user text kept in production log events
MAX_LOGGED_TEXT = 80

# Event keys that may hold raw user input
TEXT_KEYS = ("text", "payload", "prompt")


def add_service_info(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Add service information to log events."""
    event_dict["service"] = "chatflow"
    event_dict["version"] = __version__
    return event_dict


def clip_user_text(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Shorten user-supplied text so one chatty user cannot flood the logs."""
    for key in TEXT_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > MAX_LOGGED_TEXT:
            event_dict[key] = f"{value[:MAX_LOGGED_TEXT]}… ({len(value)} chars)"
    return event_dict


def build_processors(environment: str) -> list[Processor]:
    """Processor chain for ``environment`` ("production" renders JSON)."""

    def add_environment(
        logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
    ) -> dict[str, Any]:
        event_dict["environment"] = environment
        return event_dict

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
        add_environment,
        add_service_info,
    ]

    if environment == "production":
        return [
            *shared_processors,
            clip_user_text,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]

    return [
        *shared_processors,
        structlog.dev.ConsoleRenderer(
            colors=True,
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_structlog(environment: str | None = None, level: int | None = None) -> None:
    """Configure structlog and the stdlib root logger.

    Args:
        environment: Overrides ``Settings.environment``
        level: Root log level; INFO in production, DEBUG elsewhere by default
    """
    environment = environment or get_settings().environment
    if level is None:
        level = logging.INFO if environment == "production" else logging.DEBUG

    structlog.configure(
        processors=build_processors(environment),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level, force=True)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a configured logger instance.

    Args:
        name: Logger name (usually __name__ from the calling module)

    Returns:
        A bound structlog logger instance
    """
    return structlog.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Bind context variables to every log event of the current turn."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    """Clear all bound context variables."""
    structlog.contextvars.clear_contextvars()


@contextmanager
def turn_context(user_id: str, **kwargs: Any) -> Iterator[None]:
    """Bind ``user_id`` (and any extra keys) for the duration of one turn.

    Context left over from a previous turn on the same task is discarded
    first, and nothing leaks out once the turn ends.
    """
    clear_context()
    bind_context(user_id=user_id, **kwargs)
    try:
        yield
    finally:
        clear_context()


# Initialize structlog on module import
configure_structlog()
