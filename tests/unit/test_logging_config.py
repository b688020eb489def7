"""Tests for logging configuration."""

import pytest
import structlog

from chatflow.infrastructure.logging_config import (
    MAX_LOGGED_TEXT,
    build_processors,
    clip_user_text,
    turn_context,
)


class TestClipUserText:
    """Tests for the user text clipping processor."""

    def test_long_text_is_clipped(self):
        text = "x" * (MAX_LOGGED_TEXT + 20)

        event = clip_user_text(None, "info", {"event": "message_received", "text": text})

        assert event["text"].startswith("x" * MAX_LOGGED_TEXT)
        assert event["text"].endswith(f"({len(text)} chars)")

    def test_short_text_is_untouched(self):
        event = clip_user_text(None, "info", {"event": "postback_received", "payload": "MENU"})

        assert event["payload"] == "MENU"

    def test_other_keys_are_untouched(self):
        event = clip_user_text(None, "info", {"event": "e", "flow": "y" * 200})

        assert event["flow"] == "y" * 200


class TestTurnContext:
    """Tests for per-turn context binding."""

    def test_binds_and_clears(self):
        structlog.contextvars.bind_contextvars(stale="left over")

        with turn_context("u1", event_kind="text"):
            assert structlog.contextvars.get_contextvars() == {
                "user_id": "u1",
                "event_kind": "text",
            }

        assert structlog.contextvars.get_contextvars() == {}

    def test_clears_on_error(self):
        with pytest.raises(RuntimeError):
            with turn_context("u1"):
                raise RuntimeError("boom")

        assert structlog.contextvars.get_contextvars() == {}


class TestBuildProcessors:
    """Tests for the processor chain."""

    def test_production_renders_json(self):
        processors = build_processors("production")

        assert clip_user_text in processors
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)

    def test_development_renders_console(self):
        processors = build_processors("development")

        assert clip_user_text not in processors
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

    def test_environment_is_added(self):
        processors = build_processors("staging")
        add_environment = next(
            p for p in processors if getattr(p, "__name__", "") == "add_environment"
        )

        assert add_environment(None, "info", {})["environment"] == "staging"
