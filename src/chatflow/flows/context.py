"""Per-turn execution context."""

from dataclasses import dataclass
from typing import Any

from ..exceptions import FlowLoopError


@dataclass
class TurnContext:
    """State shared by every step and action executed for one inbound event.

    Attributes:
        user_id: The user the turn belongs to.
        user_input: The text the user just sent, if any.
        max_step_executions: Ceiling on step executions within the turn.
        step_executions: Steps executed so far.
    """

    user_id: str
    user_input: str | None = None
    max_step_executions: int = 25
    step_executions: int = 0

    def condition_context(self) -> dict[str, Any]:
        """Ephemeral values conditions may refer to, under both key spellings."""
        if self.user_input is None:
            return {}
        return {"user_input": self.user_input, "userInput": self.user_input}

    def count_step(self, flow: str, step: str) -> None:
        """Account for one more step execution.

        Raises:
            FlowLoopError: If the ceiling is exceeded.
        """
        self.step_executions += 1
        if self.step_executions > self.max_step_executions:
            raise FlowLoopError(self.user_id, flow, step, self.max_step_executions)
