"""Flow engine: registry, triggers, conditions, actions and the state machine."""

from .actions import ActionInterpreter
from .conditions import evaluate_condition, loose_equals
from .context import TurnContext
from .engine import FlowEngine
from .interpolation import interpolate
from .loader import build_registry, load_flows_from_yaml, register_default_flows
from .registry import FlowRegistry, TriggerIndex

__all__ = [
    "FlowEngine",
    "FlowRegistry",
    "TriggerIndex",
    "ActionInterpreter",
    "TurnContext",
    "evaluate_condition",
    "loose_equals",
    "interpolate",
    "build_registry",
    "load_flows_from_yaml",
    "register_default_flows",
]
