"""Infrastructure: session state, logging and metrics."""

from .logging_config import (
    bind_context,
    clear_context,
    configure_structlog,
    get_logger,
    turn_context,
)
from .session_store import ExpiringCache, KeyedLock, SessionStore

__all__ = [
    "SessionStore",
    "ExpiringCache",
    "KeyedLock",
    "configure_structlog",
    "get_logger",
    "bind_context",
    "clear_context",
    "turn_context",
]
