"""Action interpreter: executes the actions of a step one at a time.

Each action's visible effect completes before the next action starts. Send
and generation failures propagate to the caller untouched.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

from ..channels.base import GenerativeResponder, MessagingSink
from ..infrastructure.metrics import actions_total, record_configuration_error
from ..infrastructure.session_store import SessionStore
from ..models import (
    Action,
    AIResponseAction,
    CarouselElement,
    ConditionAction,
    DelayAction,
    GotoFlowAction,
    SendAction,
    SendButtonsAction,
    SendCarouselAction,
    SendQuickRepliesAction,
    SendTextAction,
    SetVariableAction,
)
from .conditions import evaluate_condition
from .context import TurnContext
from .interpolation import interpolate

if TYPE_CHECKING:
    from .engine import FlowEngine

logger = logging.getLogger(__name__)

Sleep = Callable[[float], Awaitable[None]]


class ActionInterpreter:
    """Applies actions on behalf of a FlowEngine."""

    def __init__(
        self,
        engine: "FlowEngine",
        store: SessionStore,
        sink: MessagingSink,
        responder: GenerativeResponder,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.engine = engine
        self.store = store
        self.sink = sink
        self.responder = responder
        self._sleep = sleep

    async def apply_all(
        self, user_id: str, actions: list[Action], context: TurnContext
    ) -> None:
        for action in actions:
            await self.apply(user_id, action, context)

    async def apply(self, user_id: str, action: Action, context: TurnContext) -> None:
        """Execute a single action."""
        if isinstance(action, SendTextAction):
            text = self._render(user_id, action.text)
            await self._typing(user_id, action)
            await self.sink.send_text(user_id, text)
            self.store.append_message(user_id, text, from_bot=True)

        elif isinstance(action, SendQuickRepliesAction):
            text = self._render(user_id, action.text)
            await self._typing(user_id, action)
            await self.sink.send_quick_replies(user_id, text, action.options)
            self.store.append_message(user_id, text, from_bot=True)

        elif isinstance(action, SendButtonsAction):
            text = self._render(user_id, action.text)
            await self._typing(user_id, action)
            await self.sink.send_buttons(user_id, text, action.buttons)
            self.store.append_message(user_id, text, from_bot=True)

        elif isinstance(action, SendCarouselAction):
            await self._typing(user_id, action)
            await self.sink.send_carousel(user_id, self._render_carousel(user_id, action))

        elif isinstance(action, SetVariableAction):
            value = action.value
            if action.from_input and context.user_input:
                value = context.user_input
            self.store.set_variable(user_id, action.name, value)

        elif isinstance(action, AIResponseAction):
            await self._ai_response(user_id, action, context)

        elif isinstance(action, ConditionAction):
            variables = self.store.all_variables(user_id)
            if evaluate_condition(action.condition, variables, context.condition_context()):
                await self.apply_all(user_id, action.then_actions, context)
            else:
                await self.apply_all(user_id, action.else_actions, context)

        elif isinstance(action, GotoFlowAction):
            await self._goto_flow(user_id, action, context)

        elif isinstance(action, DelayAction):
            await self._sleep(action.duration / 1000)

        else:
            logger.warning(f"Unknown action type: {getattr(action, 'type', action)!r}")
            return

        actions_total.labels(action=action.type).inc()

    async def _typing(self, user_id: str, action: SendAction) -> None:
        await self.sink.send_typing(user_id)
        if action.delay:
            await self._sleep(action.delay / 1000)

    def _render(self, user_id: str, text: str) -> str:
        return interpolate(
            text, self.store.all_variables(user_id), self.store.get_profile(user_id)
        )

    def _render_carousel(self, user_id: str, action: SendCarouselAction) -> list[CarouselElement]:
        elements = []
        for element in action.elements:
            update = {"title": self._render(user_id, element.title)}
            if element.subtitle:
                update["subtitle"] = self._render(user_id, element.subtitle)
            elements.append(element.model_copy(update=update))
        return elements

    async def _ai_response(
        self, user_id: str, action: AIResponseAction, context: TurnContext
    ) -> None:
        await self.sink.send_typing(user_id)

        profile = self.store.get_profile(user_id)
        if action.prompt:
            prompt = interpolate(action.prompt, self.store.all_variables(user_id), profile)
        else:
            prompt = context.user_input or self._last_user_message(user_id)

        history = self.store.history(user_id)
        reply = await self.responder.complete(prompt, history, profile)

        await self.sink.send_text(user_id, reply)
        self.store.append_message(user_id, reply, from_bot=True)

    def _last_user_message(self, user_id: str) -> str:
        for entry in reversed(self.store.history(user_id)):
            if not entry.from_bot:
                return entry.text
        return ""

    async def _goto_flow(
        self, user_id: str, action: GotoFlowAction, context: TurnContext
    ) -> None:
        if self.engine.registry.get_step(action.flow, action.step) is None:
            logger.error(f"goto_flow target not found: {action.flow}.{action.step}")
            record_configuration_error("step")
            return

        # No cycle detection here; the per-turn step ceiling stops runaway chains.
        self.store.set_flow(user_id, action.flow, action.step)
        await self.engine.execute_step(user_id, action.flow, action.step, context)
