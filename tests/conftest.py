"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock

import pytest

from chatflow.channels.base import GenerativeResponder, MessagingSink
from chatflow.flows import FlowEngine, FlowRegistry
from chatflow.infrastructure.session_store import SessionStore
from chatflow.models import Settings


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RecordingSink(MessagingSink):
    """Messaging sink that records every send in order."""

    def __init__(self):
        self.sent: list[tuple] = []
        self.typing = 0

    async def send_text(self, user_id, text):
        self.sent.append(("text", user_id, text))

    async def send_quick_replies(self, user_id, text, options):
        self.sent.append(("quick_replies", user_id, text, [o.payload for o in options]))

    async def send_buttons(self, user_id, text, buttons):
        self.sent.append(("buttons", user_id, text, [b.title for b in buttons]))

    async def send_carousel(self, user_id, elements):
        self.sent.append(("carousel", user_id, [e.title for e in elements]))

    async def send_typing(self, user_id):
        self.typing += 1

    @property
    def texts(self) -> list[str]:
        return [entry[2] for entry in self.sent if entry[0] != "carousel"]


@pytest.fixture
def clock():
    """Create a controllable clock."""
    return FakeClock()


@pytest.fixture
def settings():
    """Create settings with a small step ceiling."""
    return Settings(max_step_executions=10, max_context_messages=3)


@pytest.fixture
def store(clock, settings):
    """Create a session store driven by the fake clock."""
    return SessionStore.from_settings(settings, clock=clock)


@pytest.fixture
def sink():
    """Create a recording messaging sink."""
    return RecordingSink()


@pytest.fixture
def responder():
    """Create a mock generative responder."""
    mock = AsyncMock(spec=GenerativeResponder)
    mock.complete.return_value = "AI reply"
    return mock


@pytest.fixture
def sleep():
    """Create a no-op sleep so delays do not slow tests down."""
    return AsyncMock()


@pytest.fixture
def registry():
    """Create a registry with a small set of test flows."""
    registry = FlowRegistry()
    registry.register_flow(
        "greeting",
        {
            "triggers": [{"type": "keyword", "keywords": ["hello"]}],
            "steps": {
                "start": {
                    "actions": [{"type": "send_text", "text": "Hi {{first_name}}!"}],
                },
            },
        },
    )
    registry.register_flow(
        "survey",
        {
            "triggers": [{"type": "exact", "value": "SURVEY"}],
            "steps": {
                "start": {
                    "actions": [{"type": "send_text", "text": "Do you like us?"}],
                    "waitForInput": True,
                    "storeInputAs": "answer",
                    "inputHandlers": [
                        {"type": "contains", "value": "yes", "goto": "happy"},
                        {"type": "regex", "pattern": "^no\\b", "goto": "sad"},
                        {"type": "any", "goto": "unsure"},
                    ],
                },
                "happy": {"actions": [{"type": "send_text", "text": "Glad to hear it!"}]},
                "sad": {"actions": [{"type": "send_text", "text": "Sorry about that."}]},
                "unsure": {
                    "actions": [{"type": "send_text", "text": "You said {{answer}}."}],
                    "next": "followup",
                },
                "followup": {"actions": [{"type": "send_text", "text": "Thanks anyway."}]},
            },
        },
    )
    registry.register_flow(
        "signup",
        {
            "triggers": [{"type": "regex", "pattern": "^sign ?up"}],
            "steps": {
                "start": {
                    "actions": [{"type": "send_text", "text": "What's your email?"}],
                    "wait_for_input": True,
                    "store_input_as": "email",
                    "next": "done",
                },
                "done": {"actions": [{"type": "send_text", "text": "Saved {{email}}."}]},
            },
        },
    )
    return registry


@pytest.fixture
def engine(registry, store, sink, responder, settings, sleep):
    """Create a flow engine wired to the test collaborators."""
    return FlowEngine(registry, store, sink, responder, settings=settings, sleep=sleep)
