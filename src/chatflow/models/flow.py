"""Flow definition models.

Flows are pure data: a flow is a set of named steps plus the triggers that
start it. Triggers, input handlers and actions are closed tagged unions
discriminated on their ``type`` field. Definitions written with the camelCase
keys of the JSON flow format (``waitForInput``, ``storeInputAs``, ...) are
accepted as well as snake_case.
"""

from __future__ import annotations

import logging
import re
from typing import Annotated, Any, Literal, Union

from pydantic import (
    AfterValidator,
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
)
from pydantic.alias_generators import to_camel

logger = logging.getLogger(__name__)


class DefinitionModel(BaseModel):
    """Base for immutable flow-definition models."""

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        alias_generator=to_camel,
        extra="ignore",
    )


def _check_pattern(pattern: str) -> str:
    try:
        re.compile(pattern, re.IGNORECASE)
    except re.error as e:
        raise ValueError(f"Invalid regular expression {pattern!r}: {e}") from e
    return pattern


Pattern = Annotated[str, AfterValidator(_check_pattern)]


# =============================================================================
# Triggers
# =============================================================================


class ExactTrigger(DefinitionModel):
    """Matches when the whole input equals ``value``, ignoring case."""

    type: Literal["exact"] = "exact"
    value: str

    def matches(self, text: str) -> bool:
        return text.lower().strip() == self.value.lower()


class KeywordTrigger(DefinitionModel):
    """Matches when any keyword occurs anywhere in the input, ignoring case."""

    type: Literal["keyword"] = "keyword"
    keywords: list[str] = Field(default_factory=list)

    def matches(self, text: str) -> bool:
        lowered = text.lower().strip()
        return any(keyword.lower() in lowered for keyword in self.keywords)


class RegexTrigger(DefinitionModel):
    """Matches when ``pattern`` is found in the original input, ignoring case."""

    type: Literal["regex"] = "regex"
    pattern: Pattern

    def matches(self, text: str) -> bool:
        return re.search(self.pattern, text, re.IGNORECASE) is not None


Trigger = Annotated[
    Union[ExactTrigger, KeywordTrigger, RegexTrigger],
    Field(discriminator="type"),
]


# =============================================================================
# Actions
# =============================================================================


class QuickReply(DefinitionModel):
    """A quick-reply chip shown under a message."""

    title: str
    payload: str | None = None


class Button(DefinitionModel):
    """A template button: either a postback payload or a URL."""

    title: str
    payload: str | None = None
    url: str | None = None


class CarouselElement(DefinitionModel):
    """One card of a carousel (generic template)."""

    title: str
    subtitle: str | None = None
    image_url: str | None = None
    buttons: list[Button] = Field(default_factory=list)


class Condition(DefinitionModel):
    """Predicate over session variables, see ``chatflow.flows.conditions``."""

    field: str
    operator: str
    value: Any = None


class SendAction(DefinitionModel):
    """Base for message sends; ``delay`` is the typing pause in milliseconds."""

    delay: int = Field(default=500, ge=0)


class SendTextAction(SendAction):
    type: Literal["send_text"] = "send_text"
    text: str


class SendQuickRepliesAction(SendAction):
    type: Literal["send_quick_replies"] = "send_quick_replies"
    text: str
    options: list[QuickReply] = Field(
        default_factory=list,
        validation_alias=AliasChoices("options", "replies"),
    )


class SendButtonsAction(SendAction):
    type: Literal["send_buttons"] = "send_buttons"
    text: str
    buttons: list[Button] = Field(default_factory=list)


class SendCarouselAction(SendAction):
    type: Literal["send_carousel"] = "send_carousel"
    elements: list[CarouselElement] = Field(default_factory=list)


class SetVariableAction(DefinitionModel):
    """Store a literal value, or the user's input when ``from_input`` is set."""

    type: Literal["set_variable"] = "set_variable"
    name: str
    value: Any = None
    from_input: bool = False


class AIResponseAction(DefinitionModel):
    """Ask the generative responder for a reply and send it."""

    type: Literal["ai_response"] = "ai_response"
    prompt: str | None = None


class ConditionAction(DefinitionModel):
    """Run ``then`` when the condition holds, otherwise ``else``."""

    type: Literal["condition"] = "condition"
    condition: Condition
    then_actions: ActionList = Field(default_factory=list, alias="then")
    else_actions: ActionList = Field(default_factory=list, alias="else")


class GotoFlowAction(DefinitionModel):
    """Jump to a step of a flow and execute it within the same turn."""

    type: Literal["goto_flow"] = "goto_flow"
    flow: str
    step: str = "start"


class DelayAction(DefinitionModel):
    """Pause the current turn; ``duration`` is in milliseconds."""

    type: Literal["delay"] = "delay"
    duration: int = Field(default=1000, ge=0)


Action = Annotated[
    Union[
        SendTextAction,
        SendQuickRepliesAction,
        SendButtonsAction,
        SendCarouselAction,
        SetVariableAction,
        AIResponseAction,
        ConditionAction,
        GotoFlowAction,
        DelayAction,
    ],
    Field(discriminator="type"),
]

ACTION_TYPES = frozenset(
    {
        "send_text",
        "send_quick_replies",
        "send_buttons",
        "send_carousel",
        "set_variable",
        "ai_response",
        "condition",
        "goto_flow",
        "delay",
    }
)


def _drop_unknown_actions(actions: Any) -> Any:
    """Skip action entries of an unknown kind instead of rejecting the flow."""
    if not isinstance(actions, list):
        return actions

    kept = []
    for action in actions:
        if isinstance(action, dict) and action.get("type") not in ACTION_TYPES:
            logger.warning(f"Unknown action type: {action.get('type')!r}, skipping")
            continue
        kept.append(action)
    return kept


ActionList = Annotated[list[Action], BeforeValidator(_drop_unknown_actions)]


# =============================================================================
# Input handlers
# =============================================================================


class ExactHandler(DefinitionModel):
    type: Literal["exact"] = "exact"
    value: str
    goto: str | None = None
    actions: ActionList = Field(default_factory=list)

    def matches(self, text: str) -> bool:
        return text.lower() == self.value.lower()


class ContainsHandler(DefinitionModel):
    type: Literal["contains"] = "contains"
    value: str
    goto: str | None = None
    actions: ActionList = Field(default_factory=list)

    def matches(self, text: str) -> bool:
        return self.value.lower() in text.lower()


class RegexHandler(DefinitionModel):
    type: Literal["regex"] = "regex"
    pattern: Pattern
    goto: str | None = None
    actions: ActionList = Field(default_factory=list)

    def matches(self, text: str) -> bool:
        return re.search(self.pattern, text, re.IGNORECASE) is not None


class AnyHandler(DefinitionModel):
    type: Literal["any"] = "any"
    goto: str | None = None
    actions: ActionList = Field(default_factory=list)

    def matches(self, text: str) -> bool:
        return True


InputHandler = Annotated[
    Union[ExactHandler, ContainsHandler, RegexHandler, AnyHandler],
    Field(discriminator="type"),
]


# =============================================================================
# Steps and flows
# =============================================================================


class Step(DefinitionModel):
    """One node of a flow.

    After its actions run, a step either records ``next`` as the pointer
    (executed on the next inbound event), waits for input on itself, or
    completes the flow when neither is set.
    """

    actions: ActionList = Field(default_factory=list)
    wait_for_input: bool = False
    store_input_as: str | None = None
    input_handlers: list[InputHandler] = Field(default_factory=list)
    next: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.next is None and not self.wait_for_input


class Flow(DefinitionModel):
    """A named conversation script."""

    name: str
    description: str = ""
    triggers: list[Trigger] = Field(default_factory=list)
    steps: dict[str, Step] = Field(default_factory=dict)

    def get_step(self, step_name: str) -> Step | None:
        return self.steps.get(step_name)


ConditionAction.model_rebuild()
ExactHandler.model_rebuild()
ContainsHandler.model_rebuild()
RegexHandler.model_rebuild()
AnyHandler.model_rebuild()
Step.model_rebuild()
Flow.model_rebuild()
