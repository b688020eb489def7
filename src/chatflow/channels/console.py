"""Console channel used by the developer CLI.

Renders outbound messages with rich and remembers the options last shown so
that typing their number selects them, like tapping a quick reply.
"""

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..models import Button, CarouselElement, HistoryEntry, QuickReply, UserProfile
from .base import GenerativeResponder, MessagingSink, ProfileProvider


class ConsoleSink(MessagingSink):
    """Prints bot messages to the terminal."""

    def __init__(self, console: Console | None = None, bot_name: str = "Assistant"):
        self.console = console or Console()
        self.bot_name = bot_name
        self.quick_replies: list[QuickReply] = []
        self.buttons: list[Button] = []

    def _panel(self, text: str) -> None:
        self.console.print(
            Panel(
                text,
                title=f"[bold green]{self.bot_name}[/bold green]",
                border_style="green",
            )
        )

    def _print_choices(self, titles: list[str]) -> None:
        for i, title in enumerate(titles, 1):
            self.console.print(f"  [cyan]{i}.[/cyan] {title}")

    async def send_text(self, user_id: str, text: str) -> None:
        self._panel(text)

    async def send_quick_replies(
        self, user_id: str, text: str, options: list[QuickReply]
    ) -> None:
        self.quick_replies = list(options)
        self.buttons = []
        self._panel(text)
        self._print_choices([option.title for option in options])

    async def send_buttons(self, user_id: str, text: str, buttons: list[Button]) -> None:
        self.buttons = list(buttons)
        self.quick_replies = []
        self._panel(text)
        self._print_choices(
            [f"{button.title} ({button.url})" if button.url else button.title for button in buttons]
        )

    async def send_carousel(self, user_id: str, elements: list[CarouselElement]) -> None:
        table = Table(show_header=True)
        table.add_column("Card", style="cyan")
        table.add_column("Details", style="white")
        for element in elements:
            table.add_row(element.title, element.subtitle or "")
        self.console.print(table)

    async def send_typing(self, user_id: str) -> None:
        self.console.print("[dim]…[/dim]")

    def resolve_choice(self, text: str) -> tuple[str, str | None, bool]:
        """Map a typed number to the option it selects.

        Returns:
            ``(text, payload, is_postback)``; the payload is None when the
            input does not select a shown option.
        """
        if not text.strip().isdigit():
            return text, None, False

        index = int(text.strip()) - 1
        if 0 <= index < len(self.quick_replies):
            option = self.quick_replies[index]
            return option.title, option.payload, False
        if 0 <= index < len(self.buttons) and self.buttons[index].payload:
            button = self.buttons[index]
            return button.title, button.payload, True
        return text, None, False


class StaticResponder(GenerativeResponder):
    """Answers every prompt with a fixed reply; stands in when no model is wired up."""

    def __init__(self, reply: str):
        self.reply = reply

    async def complete(
        self,
        prompt: str,
        history: list[HistoryEntry],
        profile: UserProfile | None,
    ) -> str:
        return self.reply


class StaticProfileProvider(ProfileProvider):
    """Returns the same profile for every user."""

    def __init__(self, profile: UserProfile | None = None):
        self.profile = profile

    async def fetch_profile(self, user_id: str) -> UserProfile | None:
        return self.profile
