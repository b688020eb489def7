"""Data models for the flow engine."""

from .config import Settings, get_settings
from .events import InboundEvent
from .flow import (
    Action,
    AIResponseAction,
    AnyHandler,
    Button,
    CarouselElement,
    Condition,
    ConditionAction,
    ContainsHandler,
    DelayAction,
    ExactHandler,
    ExactTrigger,
    Flow,
    GotoFlowAction,
    InputHandler,
    KeywordTrigger,
    QuickReply,
    RegexHandler,
    RegexTrigger,
    SendAction,
    SendButtonsAction,
    SendCarouselAction,
    SendQuickRepliesAction,
    SendTextAction,
    SetVariableAction,
    Step,
    Trigger,
)
from .session import HistoryEntry, Session, UserProfile

__all__ = [
    "Settings",
    "get_settings",
    "InboundEvent",
    "Flow",
    "Step",
    "Trigger",
    "ExactTrigger",
    "KeywordTrigger",
    "RegexTrigger",
    "InputHandler",
    "ExactHandler",
    "ContainsHandler",
    "RegexHandler",
    "AnyHandler",
    "Action",
    "SendAction",
    "SendTextAction",
    "SendQuickRepliesAction",
    "SendButtonsAction",
    "SendCarouselAction",
    "SetVariableAction",
    "AIResponseAction",
    "ConditionAction",
    "GotoFlowAction",
    "DelayAction",
    "Condition",
    "QuickReply",
    "Button",
    "CarouselElement",
    "Session",
    "HistoryEntry",
    "UserProfile",
]
