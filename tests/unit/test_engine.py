"""Tests for the flow engine state machine."""

from unittest.mock import AsyncMock

import pytest

from chatflow.exceptions import FlowLoopError
from chatflow.models import UserProfile


class TestTriggers:
    """Tests for trigger lookup through the engine."""

    def test_check_triggers(self, engine):
        assert engine.check_triggers("well hello there") == "greeting"
        assert engine.check_triggers("survey") == "survey"
        assert engine.check_triggers("Sign up please") == "signup"
        assert engine.check_triggers("something else") is None

    def test_list_flow_names(self, engine):
        assert engine.list_flow_names() == ["greeting", "survey", "signup"]

    def test_register_flow(self, engine):
        engine.register_flow(
            "extra",
            {
                "triggers": [{"type": "exact", "value": "extra"}],
                "steps": {"start": {"actions": []}},
            },
        )

        assert engine.check_triggers("EXTRA") == "extra"


class TestStartFlow:
    """Tests for starting flows."""

    @pytest.mark.asyncio
    async def test_pointer_is_set_before_actions_run(self, engine, store, sink):
        states = []

        async def send_text(user_id, text):
            states.append(store.flow_state(user_id))

        sink.send_text = send_text

        assert await engine.start_flow("u1", "survey")

        assert states == [("survey", "start")]
        assert store.flow_state("u1") == ("survey", "start")

    @pytest.mark.asyncio
    async def test_terminal_start_ends_idle(self, engine, store, sink):
        store.set_profile("u1", UserProfile(first_name="Sam"))

        assert await engine.start_flow("u1", "greeting")

        assert sink.texts == ["Hi Sam!"]
        assert store.flow_state("u1") == (None, None)

    @pytest.mark.asyncio
    async def test_unknown_flow(self, engine, store, sink):
        store.set_flow("u1", "survey", "start")

        assert not await engine.start_flow("u1", "missing")

        assert sink.sent == []
        assert store.flow_state("u1") == ("survey", "start")

    @pytest.mark.asyncio
    async def test_flow_without_start_step(self, engine, store, sink):
        engine.register_flow("broken", {"steps": {"middle": {"actions": []}}})

        assert not await engine.start_flow("u1", "broken")

        assert store.flow_state("u1") == (None, None)


class TestExecuteStep:
    """Tests for step execution and transitions."""

    @pytest.mark.asyncio
    async def test_next_records_pointer_without_running_it(self, engine, store, sink):
        await engine.start_flow("u1", "signup")

        assert sink.texts == ["What's your email?"]
        assert store.flow_state("u1") == ("signup", "done")

    @pytest.mark.asyncio
    async def test_wait_keeps_pointer(self, engine, store):
        step = await engine.execute_step("u1", "survey", "start")

        assert step.wait_for_input
        assert store.flow_state("u1") == ("survey", "start")

    @pytest.mark.asyncio
    async def test_unknown_step_is_ignored(self, engine, store, sink):
        store.set_flow("u1", "survey", "start")

        assert await engine.execute_step("u1", "survey", "nowhere") is None
        assert await engine.execute_step("u1", "nowhere", "start") is None

        assert sink.sent == []
        assert store.flow_state("u1") == ("survey", "start")

    @pytest.mark.asyncio
    async def test_origin_wait_applies_after_goto(self, engine, store, sink):
        engine.register_flow(
            "loopback",
            {
                "steps": {
                    "start": {
                        "actions": [
                            {"type": "send_text", "text": "one"},
                            {"type": "goto_flow", "flow": "loopback", "step": "end"},
                        ],
                        "waitForInput": True,
                    },
                    "end": {"actions": [{"type": "send_text", "text": "two"}]},
                }
            },
        )

        await engine.start_flow("u1", "loopback")

        assert sink.texts == ["one", "two"]
        assert store.flow_state("u1") == ("loopback", "start")

    @pytest.mark.asyncio
    async def test_terminal_origin_ends_idle_after_goto(self, engine, store, sink):
        engine.register_flow(
            "router",
            {"steps": {"start": {"actions": [{"type": "goto_flow", "flow": "survey"}]}}},
        )

        await engine.start_flow("u1", "router")

        assert sink.texts == ["Do you like us?"]
        assert store.flow_state("u1") == (None, None)

    @pytest.mark.asyncio
    async def test_origin_next_applies_after_goto(self, engine, store, sink):
        engine.register_flow(
            "a",
            {
                "steps": {
                    "start": {
                        "actions": [{"type": "goto_flow", "flow": "b"}],
                        "next": "after",
                    },
                    "after": {"actions": [{"type": "send_text", "text": "back in a"}]},
                }
            },
        )
        engine.register_flow(
            "b",
            {"steps": {"start": {"actions": [{"type": "send_text", "text": "in b"}]}}},
        )

        await engine.start_flow("u1", "a")

        assert sink.texts == ["in b"]
        assert store.flow_state("u1") == ("a", "after")

    @pytest.mark.asyncio
    async def test_goto_cycle_raises(self, engine, settings):
        engine.register_flow(
            "ping",
            {"steps": {"start": {"actions": [{"type": "goto_flow", "flow": "pong"}]}}},
        )
        engine.register_flow(
            "pong",
            {"steps": {"start": {"actions": [{"type": "goto_flow", "flow": "ping"}]}}},
        )

        with pytest.raises(FlowLoopError) as exc_info:
            await engine.start_flow("u1", "ping")

        assert exc_info.value.limit == settings.max_step_executions
        assert exc_info.value.user_id == "u1"

    @pytest.mark.asyncio
    async def test_sink_errors_propagate(self, engine, sink):
        sink.send_text = AsyncMock(side_effect=ConnectionError("channel down"))

        with pytest.raises(ConnectionError):
            await engine.start_flow("u1", "survey")


class TestHandleFlowInput:
    """Tests for resuming a waiting step."""

    @pytest.mark.asyncio
    async def test_idle_user_is_not_handled(self, engine, store):
        assert not await engine.handle_flow_input("u1", "yes")

        assert store.all_variables("u1") == {}
        assert store.history("u1") == []

    @pytest.mark.asyncio
    async def test_step_not_waiting_is_not_handled(self, engine, store, sink):
        store.set_flow("u1", "signup", "done")

        assert not await engine.handle_flow_input("u1", "hello")

        assert sink.sent == []
        assert store.flow_state("u1") == ("signup", "done")
        assert store.all_variables("u1") == {}

    @pytest.mark.asyncio
    async def test_contains_handler(self, engine, store, sink):
        await engine.start_flow("u1", "survey")

        assert await engine.handle_flow_input("u1", "Yes please")

        assert sink.texts == ["Do you like us?", "Glad to hear it!"]
        assert store.get_variable("u1", "answer") == "Yes please"
        assert store.flow_state("u1") == (None, None)

    @pytest.mark.asyncio
    async def test_regex_handler(self, engine, store, sink):
        await engine.start_flow("u1", "survey")

        assert await engine.handle_flow_input("u1", "No thanks")

        assert sink.texts[-1] == "Sorry about that."

    @pytest.mark.asyncio
    async def test_any_handler_and_recorded_next(self, engine, store, sink):
        await engine.start_flow("u1", "survey")

        assert await engine.handle_flow_input("u1", "maybe")

        assert sink.texts[-1] == "You said maybe."
        assert store.flow_state("u1") == ("survey", "followup")

    @pytest.mark.asyncio
    async def test_first_matching_handler_wins(self, engine, store, sink):
        engine.register_flow(
            "order",
            {
                "steps": {
                    "start": {
                        "waitForInput": True,
                        "inputHandlers": [
                            {"type": "contains", "value": "yes", "goto": "a"},
                            {"type": "any", "goto": "b"},
                        ],
                    },
                    "a": {"actions": [{"type": "send_text", "text": "A"}]},
                    "b": {"actions": [{"type": "send_text", "text": "B"}]},
                }
            },
        )
        await engine.start_flow("u1", "order")

        await engine.handle_flow_input("u1", "yes please")

        assert sink.texts == ["A"]

    @pytest.mark.asyncio
    async def test_handler_actions_without_goto(self, engine, store, sink):
        engine.register_flow(
            "quiz",
            {
                "steps": {
                    "start": {
                        "waitForInput": True,
                        "inputHandlers": [
                            {
                                "type": "exact",
                                "value": "42",
                                "actions": [{"type": "send_text", "text": "Correct"}],
                            }
                        ],
                    }
                }
            },
        )
        await engine.start_flow("u1", "quiz")

        assert await engine.handle_flow_input("u1", "42")

        assert sink.texts == ["Correct"]
        assert store.flow_state("u1") == ("quiz", "start")

    @pytest.mark.asyncio
    async def test_falls_back_to_next(self, engine, store, sink):
        store.set_flow("u1", "signup", "start")

        assert await engine.handle_flow_input("u1", "a@b.c")

        assert sink.texts == ["Saved a@b.c."]
        assert store.flow_state("u1") == (None, None)

    @pytest.mark.asyncio
    async def test_no_match_and_no_next(self, engine, store, sink):
        engine.register_flow(
            "note",
            {"steps": {"start": {"waitForInput": True, "storeInputAs": "note"}}},
        )
        await engine.start_flow("u1", "note")

        assert not await engine.handle_flow_input("u1", "remember milk")

        assert store.get_variable("u1", "note") == "remember milk"
        assert store.flow_state("u1") == ("note", "start")

    @pytest.mark.asyncio
    async def test_handler_goto_to_missing_step(self, engine, store, sink):
        engine.register_flow(
            "dangling",
            {
                "steps": {
                    "start": {
                        "waitForInput": True,
                        "inputHandlers": [{"type": "any", "goto": "missing"}],
                    }
                }
            },
        )
        await engine.start_flow("u1", "dangling")

        assert await engine.handle_flow_input("u1", "anything")

        assert store.flow_state("u1") == ("dangling", "start")
