"""Per-user session state models."""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class HistoryEntry(BaseModel):
    """One message of the conversation history."""

    text: str
    from_bot: bool = False
    timestamp: datetime = Field(default_factory=utc_now)


class UserProfile(BaseModel):
    """Channel profile of a user, fetched by a ProfileProvider."""

    first_name: str | None = None
    last_name: str | None = None
    profile_pic: str | None = None


class Session(BaseModel):
    """Conversation state of one user.

    ``current_flow`` and ``current_step`` are either both set (a flow is
    active) or both unset (idle).
    """

    user_id: str
    current_flow: str | None = None
    current_step: str | None = None
    variables: dict[str, Any] = Field(default_factory=dict)
    messages: list[HistoryEntry] = Field(default_factory=list)
    started_at: datetime = Field(default_factory=utc_now)
    last_activity: datetime = Field(default_factory=utc_now)

    @property
    def is_active(self) -> bool:
        return self.current_flow is not None and self.current_step is not None
