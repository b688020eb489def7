"""Prometheus metrics for the flow engine.

Provides metrics collection for:
- Flow starts and step executions
- Action executions by kind
- Turn outcomes and latency
- Session store occupancy
"""

from prometheus_client import Counter, Gauge, Histogram

# =============================================================================
# Flow Metrics
# =============================================================================

flow_starts_total = Counter(
    "chatflow_flow_starts_total",
    "Total flows started",
    ["flow"],
)

step_executions_total = Counter(
    "chatflow_step_executions_total",
    "Total step executions",
    ["flow", "step"],
)

actions_total = Counter(
    "chatflow_actions_total",
    "Total actions executed by kind",
    ["action"],
)

configuration_errors_total = Counter(
    "chatflow_configuration_errors_total",
    "Lookups of unknown flows or steps",
    ["kind"],  # flow/step/loop
)

# =============================================================================
# Turn Metrics
# =============================================================================

turns_total = Counter(
    "chatflow_turns_total",
    "Total inbound events processed",
    ["route", "status"],  # route: flow_input/trigger/payload/ai/unsupported
)

turn_duration_seconds = Histogram(
    "chatflow_turn_duration_seconds",
    "Turn processing time in seconds",
    buckets=[0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

# =============================================================================
# Session Metrics
# =============================================================================

active_sessions = Gauge(
    "chatflow_active_sessions",
    "Number of unexpired sessions seen at the last store write",
)


# =============================================================================
# Helper Functions
# =============================================================================


def record_turn(route: str, status: str, duration: float) -> None:
    """Record a processed turn.

    Args:
        route: Which path handled the event
        status: Turn status (success/error)
        duration: Turn duration in seconds
    """
    turns_total.labels(route=route, status=status).inc()
    turn_duration_seconds.observe(duration)


def record_configuration_error(kind: str) -> None:
    """Record a lookup of an unknown flow, step, or a runaway turn."""
    configuration_errors_total.labels(kind=kind).inc()
