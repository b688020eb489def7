"""Session state layer for the flow engine.

Conversation state lives in three independent in-memory caches, each with its
own expiry horizon:

- sessions: flow pointer, session variables and message history; expires
  after the conversation timeout
- persisted variables: a longer-lived copy of every variable written, merged
  under the session variables on read
- profiles: channel profiles fetched by the caller

Expired entries behave as if they never existed: the next lookup creates a
fresh session. The clock is injectable so expiry can be tested without
sleeping.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any, Generic, TypeVar

from ..models import HistoryEntry, Session, Settings, UserProfile, get_settings
from ..models.session import utc_now
from .metrics import active_sessions

logger = logging.getLogger(__name__)

V = TypeVar("V")

Clock = Callable[[], float]


class ExpiringCache(Generic[V]):
    """Dictionary whose entries expire ``ttl_seconds`` after their last write.

    Reads never extend an entry's lifetime.
    """

    def __init__(self, ttl_seconds: float, clock: Clock = time.monotonic) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._store: dict[str, tuple[V, float]] = {}  # (value, expiry_time)

    def get(self, key: str) -> V | None:
        if key not in self._store:
            return None

        value, expiry_time = self._store[key]

        if self._clock() > expiry_time:
            del self._store[key]
            return None

        return value

    def set(self, key: str, value: V) -> int:
        """Store ``value`` and return the number of live entries."""
        self._store[key] = (value, self._clock() + self.ttl_seconds)
        # Clean up expired entries opportunistically
        self._cleanup_expired()
        return len(self._store)

    def delete(self, key: str) -> None:
        self._store.pop(key, None)

    def keys(self) -> list[str]:
        self._cleanup_expired()
        return list(self._store)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    def __len__(self) -> int:
        return len(self.keys())

    def _cleanup_expired(self) -> None:
        current_time = self._clock()
        expired_keys = [
            key for key, (_, expiry_time) in self._store.items() if current_time > expiry_time
        ]
        for key in expired_keys:
            del self._store[key]


class KeyedLock:
    """One asyncio lock per key, discarded once nobody holds or awaits it."""

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._users: dict[str, int] = {}

    @asynccontextmanager
    async def acquire(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def locked(self, key: str) -> bool:
        lock = self._locks.get(key)
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)


class SessionStore:
    """Per-user conversation state with expiry.

    None of the methods await, so each one is atomic on the event loop.
    Callers that read, decide and write across awaits (a whole turn) must
    hold ``lock(user_id)`` so that two events for the same user never
    interleave.

    Example:
        store = SessionStore.from_settings()

        async with store.lock("psid-1"):
            store.append_message("psid-1", "hello")
            store.set_flow("psid-1", "greeting")
    """

    def __init__(
        self,
        session_ttl_seconds: float = 1800,
        variables_ttl_seconds: float = 86400,
        profile_ttl_seconds: float = 3600,
        history_capacity: int = 20,
        clock: Clock = time.monotonic,
    ) -> None:
        self.history_capacity = history_capacity
        self._sessions: ExpiringCache[Session] = ExpiringCache(session_ttl_seconds, clock)
        self._user_data: ExpiringCache[dict[str, Any]] = ExpiringCache(
            variables_ttl_seconds, clock
        )
        self._profiles: ExpiringCache[UserProfile] = ExpiringCache(profile_ttl_seconds, clock)
        self._locks = KeyedLock()

    @classmethod
    def from_settings(
        cls, settings: Settings | None = None, clock: Clock = time.monotonic
    ) -> "SessionStore":
        """Build a store from application settings."""
        settings = settings or get_settings()
        return cls(
            session_ttl_seconds=settings.session_ttl_seconds,
            variables_ttl_seconds=settings.variables_ttl_seconds,
            profile_ttl_seconds=settings.profile_ttl_seconds,
            history_capacity=settings.history_capacity,
            clock=clock,
        )

    def lock(self, user_id: str):
        """Serialize a turn for ``user_id``; use as ``async with store.lock(uid)``."""
        return self._locks.acquire(user_id)

    # -------------------------------------------------------------------------
    # Sessions
    # -------------------------------------------------------------------------

    def _load(self, user_id: str) -> Session:
        session = self._sessions.get(user_id)
        if session is None:
            session = Session(user_id=user_id)
            self._save(session)
            logger.debug(f"Created session for user {user_id}")
        return session

    def _save(self, session: Session) -> None:
        active_sessions.set(self._sessions.set(session.user_id, session))

    def get(self, user_id: str) -> Session:
        """Return a copy of the user's session, creating a fresh one if needed."""
        return self._load(user_id).model_copy(deep=True)

    def append_message(self, user_id: str, text: str, from_bot: bool = False) -> HistoryEntry:
        """Add a message to the history, dropping the oldest beyond capacity."""
        session = self._load(user_id)
        entry = HistoryEntry(text=text, from_bot=from_bot)
        session.messages.append(entry)

        overflow = len(session.messages) - self.history_capacity
        if overflow > 0:
            del session.messages[:overflow]

        session.last_activity = entry.timestamp
        self._save(session)
        return entry.model_copy()

    def history(self, user_id: str, limit: int | None = None) -> list[HistoryEntry]:
        """Get the conversation history, optionally only the last ``limit`` entries."""
        messages = self._load(user_id).messages
        if limit:
            messages = messages[-limit:]
        return [entry.model_copy() for entry in messages]

    def flow_state(self, user_id: str) -> tuple[str | None, str | None]:
        """Return ``(flow, step)``; both ``None`` when no flow is active."""
        session = self._load(user_id)
        return session.current_flow, session.current_step

    def set_flow(self, user_id: str, flow: str, step: str = "start") -> None:
        session = self._load(user_id)
        session.current_flow = flow
        session.current_step = step
        session.last_activity = utc_now()
        self._save(session)

    def clear_flow(self, user_id: str) -> None:
        session = self._load(user_id)
        session.current_flow = None
        session.current_step = None
        session.last_activity = utc_now()
        self._save(session)

    def reset(self, user_id: str) -> None:
        """Discard the session. Persisted variables and the profile are kept."""
        self._sessions.delete(user_id)
        active_sessions.set(len(self._sessions))
        logger.info(f"Conversation reset for user {user_id}")

    # -------------------------------------------------------------------------
    # Variables
    # -------------------------------------------------------------------------

    def set_variable(self, user_id: str, key: str, value: Any) -> None:
        """Write a variable to the session and to the persisted bag."""
        session = self._load(user_id)
        session.variables[key] = value
        self._save(session)

        user_data = dict(self._user_data.get(user_id) or {})
        user_data[key] = value
        self._user_data.set(user_id, user_data)

    def get_variable(self, user_id: str, key: str, default: Any = None) -> Any:
        session = self._load(user_id)
        if key in session.variables:
            return session.variables[key]
        return (self._user_data.get(user_id) or {}).get(key, default)

    def all_variables(self, user_id: str) -> dict[str, Any]:
        """Persisted variables overlaid with session variables."""
        session = self._load(user_id)
        persisted = self._user_data.get(user_id) or {}
        return {**persisted, **session.variables}

    # -------------------------------------------------------------------------
    # Profiles
    # -------------------------------------------------------------------------

    def set_profile(self, user_id: str, profile: UserProfile) -> None:
        self._profiles.set(user_id, profile)

    def get_profile(self, user_id: str) -> UserProfile | None:
        return self._profiles.get(user_id)

    def stats(self) -> dict[str, int]:
        """Counts of live cache entries."""
        return {
            "active_conversations": len(self._sessions),
            "cached_profiles": len(self._profiles),
            "cached_user_data": len(self._user_data),
        }
