"""Collaborator interfaces consumed by the flow engine.

The engine never talks to a messaging platform or a language model directly.
A channel adapter supplies a MessagingSink (and usually a ProfileProvider);
the host supplies a GenerativeResponder. Any of their methods may raise; the
engine lets those exceptions propagate to the caller.
"""

from abc import ABC, abstractmethod

from ..models import Button, CarouselElement, HistoryEntry, QuickReply, UserProfile


class MessagingSink(ABC):
    """Outbound side of a messaging channel."""

    @abstractmethod
    async def send_text(self, user_id: str, text: str) -> None:
        """Send a plain text message.

        Args:
            user_id: Channel-scoped user identifier
            text: Message text, already interpolated
        """
        pass

    @abstractmethod
    async def send_quick_replies(
        self, user_id: str, text: str, options: list[QuickReply]
    ) -> None:
        """Send a message with quick-reply chips."""
        pass

    @abstractmethod
    async def send_buttons(self, user_id: str, text: str, buttons: list[Button]) -> None:
        """Send a button template."""
        pass

    @abstractmethod
    async def send_carousel(self, user_id: str, elements: list[CarouselElement]) -> None:
        """Send a carousel of cards."""
        pass

    async def send_typing(self, user_id: str) -> None:
        """Show a typing indicator. Channels without one ignore it."""
        return None


class GenerativeResponder(ABC):
    """Produces free-form replies (usually backed by an LLM)."""

    @abstractmethod
    async def complete(
        self,
        prompt: str,
        history: list[HistoryEntry],
        profile: UserProfile | None,
    ) -> str:
        """Generate a reply.

        Args:
            prompt: The instruction or user text to respond to
            history: Recent conversation, oldest first
            profile: The user's cached profile, if known

        Returns:
            Reply text to send to the user
        """
        pass


class ProfileProvider(ABC):
    """Looks up a user's public profile on the channel."""

    @abstractmethod
    async def fetch_profile(self, user_id: str) -> UserProfile | None:
        """Fetch the profile, or ``None`` if the channel does not expose one."""
        pass
