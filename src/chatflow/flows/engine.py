"""Flow engine: the per-user conversation state machine.

A user is either idle (no flow pointer) or active in ``(flow, step)``.

- ``start_flow`` points the user at a flow's ``start`` step and runs it.
- ``execute_step`` runs a step's actions, then records the next pointer:
  ``next`` when set (that step runs on the next inbound event), the step
  itself when it waits for input, or idle when it is terminal.
- ``handle_flow_input`` resumes a step that is waiting for input.

Unknown flows and steps are logged and ignored, leaving the session as it
was. Errors raised by the messaging sink or the responder propagate.
"""

import asyncio
import logging
from typing import Any

from ..channels.base import GenerativeResponder, MessagingSink
from ..exceptions import FlowLoopError
from ..infrastructure.metrics import (
    flow_starts_total,
    record_configuration_error,
    step_executions_total,
)
from ..infrastructure.session_store import SessionStore
from ..models import Flow, Settings, Step, get_settings
from .actions import ActionInterpreter, Sleep
from .context import TurnContext
from .registry import FlowRegistry

logger = logging.getLogger(__name__)


class FlowEngine:
    """Drives users through registered flows.

    Example:
        engine = FlowEngine(registry, store, sink, responder)

        if not await engine.handle_flow_input(user_id, text):
            flow_name = engine.check_triggers(text)
            if flow_name:
                await engine.start_flow(user_id, flow_name)
    """

    def __init__(
        self,
        registry: FlowRegistry,
        store: SessionStore,
        sink: MessagingSink,
        responder: GenerativeResponder,
        settings: Settings | None = None,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self.registry = registry
        self.store = store
        self.settings = settings or get_settings()
        self.interpreter = ActionInterpreter(self, store, sink, responder, sleep=sleep)

    def register_flow(self, name: str, definition: Flow | dict[str, Any]) -> Flow:
        return self.registry.register_flow(name, definition)

    def list_flow_names(self) -> list[str]:
        return self.registry.list_flow_names()

    def check_triggers(self, message: str) -> str | None:
        """Return the flow a free-form message or payload should start, if any."""
        return self.registry.match(message)

    def new_turn(self, user_id: str, user_input: str | None = None) -> TurnContext:
        return TurnContext(
            user_id=user_id,
            user_input=user_input,
            max_step_executions=self.settings.max_step_executions,
        )

    async def start_flow(
        self, user_id: str, flow_name: str, context: TurnContext | None = None
    ) -> bool:
        """Start ``flow_name`` at its ``start`` step.

        Returns:
            False if the flow or its start step is not registered.
        """
        if self.registry.get_step(flow_name, "start") is None:
            logger.error(f"Cannot start flow '{flow_name}': flow or start step not found")
            record_configuration_error("flow")
            return False

        flow_starts_total.labels(flow=flow_name).inc()
        logger.info(f"Starting flow {flow_name} for user {user_id}")

        self.store.set_flow(user_id, flow_name, "start")
        await self.execute_step(user_id, flow_name, "start", context or self.new_turn(user_id))
        return True

    async def execute_step(
        self,
        user_id: str,
        flow_name: str,
        step_name: str,
        context: TurnContext | None = None,
    ) -> Step | None:
        """Run a step's actions and record where the user goes next.

        Returns:
            The executed step, or None if it was not found.

        Raises:
            FlowLoopError: If the turn exceeds its step-execution ceiling.
        """
        context = context or self.new_turn(user_id)

        flow = self.registry.get_flow(flow_name)
        if flow is None:
            logger.error(f"Flow not found: {flow_name}")
            record_configuration_error("flow")
            return None

        step = flow.get_step(step_name)
        if step is None:
            logger.error(f"Step not found: {step_name} in flow {flow_name}")
            record_configuration_error("step")
            return None

        try:
            context.count_step(flow_name, step_name)
        except FlowLoopError:
            logger.error(
                f"Step ceiling of {context.max_step_executions} reached for user {user_id} "
                f"at {flow_name}.{step_name}; check for goto_flow cycles"
            )
            record_configuration_error("loop")
            raise

        step_executions_total.labels(flow=flow_name, step=step_name).inc()
        logger.debug(f"Executing step {step_name} in flow {flow_name} for user {user_id}")

        await self.interpreter.apply_all(user_id, step.actions, context)
        self._record_transition(user_id, flow_name, step_name, step)

        return step

    def _record_transition(self, user_id: str, flow_name: str, step_name: str, step: Step) -> None:
        if step.next:
            self.store.set_flow(user_id, flow_name, step.next)
        elif step.wait_for_input:
            self.store.set_flow(user_id, flow_name, step_name)
        else:
            self.store.clear_flow(user_id)
            logger.debug(f"Flow {flow_name} completed for user {user_id}")

    async def handle_flow_input(
        self, user_id: str, text: str, context: TurnContext | None = None
    ) -> bool:
        """Resume the user's active step with their input.

        Returns:
            True if the input was consumed by the active flow; False if the
            user is idle or the active step is not waiting for input, in
            which case nothing was changed and the caller should fall back to
            trigger matching.
        """
        flow_name, step_name = self.store.flow_state(user_id)
        if not flow_name or not step_name:
            return False

        step = self.registry.get_step(flow_name, step_name)
        if step is None:
            logger.warning(f"Active step {flow_name}.{step_name} for user {user_id} not found")
            return False

        if not step.wait_for_input:
            return False

        if context is None:
            context = self.new_turn(user_id, user_input=text)
        else:
            context.user_input = text

        if step.store_input_as:
            self.store.set_variable(user_id, step.store_input_as, text)

        for handler in step.input_handlers:
            if handler.matches(text):
                await self.interpreter.apply_all(user_id, handler.actions, context)
                if handler.goto:
                    await self._advance(user_id, flow_name, handler.goto, context)
                return True

        if step.next:
            await self._advance(user_id, flow_name, step.next, context)
            return True

        return False

    async def _advance(
        self, user_id: str, flow_name: str, step_name: str, context: TurnContext
    ) -> None:
        if self.registry.get_step(flow_name, step_name) is None:
            logger.error(f"Step not found: {step_name} in flow {flow_name}")
            record_configuration_error("step")
            return

        self.store.set_flow(user_id, flow_name, step_name)
        await self.execute_step(user_id, flow_name, step_name, context)
