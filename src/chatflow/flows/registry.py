"""Flow registry and trigger index.

The registry is an ordinary object built by the composition root and passed
to the engine; there is no module-level singleton.
"""

import logging
from typing import Any

from ..models import ExactTrigger, Flow, KeywordTrigger, RegexTrigger, Step, Trigger

logger = logging.getLogger(__name__)


class TriggerIndex:
    """Maps raw user input or payloads to the name of a flow to start.

    Triggers are grouped by kind and checked in a fixed order: every keyword
    trigger first, then every exact trigger, then every regex trigger. Within
    a kind, registration order decides. A broad keyword trigger therefore
    wins over another flow's exact trigger for the same input.
    """

    MATCH_ORDER: tuple[type, ...] = (KeywordTrigger, ExactTrigger, RegexTrigger)

    def __init__(self) -> None:
        self._by_kind: dict[type, list[tuple[str, Trigger]]] = {
            kind: [] for kind in self.MATCH_ORDER
        }

    def add(self, flow_name: str, trigger: Trigger) -> None:
        self._by_kind[type(trigger)].append((flow_name, trigger))

    def remove_flow(self, flow_name: str) -> None:
        for kind, entries in self._by_kind.items():
            self._by_kind[kind] = [(name, t) for name, t in entries if name != flow_name]

    def match(self, raw_input: str) -> str | None:
        """Return the flow name of the first matching trigger, if any."""
        for kind in self.MATCH_ORDER:
            for flow_name, trigger in self._by_kind[kind]:
                if trigger.matches(raw_input):
                    return flow_name
        return None

    def triggers_for(self, flow_name: str) -> list[Trigger]:
        return [
            trigger
            for kind in self.MATCH_ORDER
            for name, trigger in self._by_kind[kind]
            if name == flow_name
        ]

    def __len__(self) -> int:
        return sum(len(entries) for entries in self._by_kind.values())


class FlowRegistry:
    """In-memory catalog of flows, one per name.

    Example:
        registry = FlowRegistry()
        registry.register_flow("help", {"triggers": [...], "steps": {...}})

        registry.triggers.match("I need help")  # -> "help"
    """

    def __init__(self) -> None:
        self._flows: dict[str, Flow] = {}
        self.triggers = TriggerIndex()

    def register_flow(self, name: str, definition: Flow | dict[str, Any]) -> Flow:
        """Register a flow, replacing any flow previously registered under ``name``.

        Args:
            name: The flow name triggers and ``goto_flow`` actions refer to.
            definition: A Flow or its dict form (snake_case or camelCase keys).

        Returns:
            The registered Flow.

        Raises:
            pydantic.ValidationError: If the definition is malformed.
        """
        if isinstance(definition, Flow):
            flow = definition if definition.name == name else definition.model_copy(
                update={"name": name}
            )
        else:
            flow = Flow.model_validate({**definition, "name": name})

        if name in self._flows:
            logger.info(f"Flow '{name}' already registered, replacing it")
            self.triggers.remove_flow(name)

        self._flows[name] = flow
        for trigger in flow.triggers:
            self.triggers.add(name, trigger)

        self._warn_dangling_steps(flow)
        logger.info(f"Flow registered: {name}")
        return flow

    def unregister_flow(self, name: str) -> Flow | None:
        flow = self._flows.pop(name, None)
        if flow:
            self.triggers.remove_flow(name)
            logger.info(f"Flow unregistered: {name}")
        return flow

    def get_flow(self, name: str) -> Flow | None:
        return self._flows.get(name)

    def get_step(self, flow_name: str, step_name: str) -> Step | None:
        flow = self._flows.get(flow_name)
        if flow is None:
            return None
        return flow.get_step(step_name)

    def list_flow_names(self) -> list[str]:
        return list(self._flows)

    def match(self, raw_input: str) -> str | None:
        return self.triggers.match(raw_input)

    def __contains__(self, name: str) -> bool:
        return name in self._flows

    def __len__(self) -> int:
        return len(self._flows)

    def _warn_dangling_steps(self, flow: Flow) -> None:
        if "start" not in flow.steps:
            logger.warning(f"Flow '{flow.name}' has no 'start' step")

        for step_name, step in flow.steps.items():
            if step.next and step.wait_for_input:
                logger.warning(
                    f"Step '{step_name}' in flow '{flow.name}' sets both next and "
                    f"wait_for_input; next takes precedence once its actions run"
                )

            targets = [step.next] + [handler.goto for handler in step.input_handlers]
            for target in targets:
                if target is not None and target not in flow.steps:
                    logger.warning(
                        f"Step '{step_name}' in flow '{flow.name}' points to unknown step "
                        f"'{target}'"
                    )
