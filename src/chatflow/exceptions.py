"""Exception taxonomy for the flow engine."""


class ChatflowError(Exception):
    """Base class for all chatflow errors."""


class FlowConfigurationError(ChatflowError):
    """A flow, step or trigger refers to something that is not registered."""


class FlowLoopError(FlowConfigurationError):
    """A single turn executed more steps than the configured ceiling.

    Raised when flows chain into each other (for example two steps that
    `goto_flow` one another) without ever waiting for input.
    """

    def __init__(self, user_id: str, flow: str, step: str, limit: int):
        self.user_id = user_id
        self.flow = flow
        self.step = step
        self.limit = limit
        super().__init__(
            f"Turn for user '{user_id}' exceeded {limit} step executions "
            f"(last step '{step}' in flow '{flow}')"
        )


class FlowDefinitionError(ChatflowError):
    """A flow definition file could not be read or validated."""
