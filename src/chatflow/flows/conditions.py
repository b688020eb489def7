"""Condition evaluation over session variables.

Conditions never raise: an unknown operator or an operand that cannot be
compared simply evaluates to False.
"""

import logging
from collections.abc import Mapping
from typing import Any

from ..models import Condition

logger = logging.getLogger(__name__)


def _to_number(value: Any) -> float | None:
    """Coerce a value to a float, or None when it is not numeric."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str) and value.strip():
        try:
            return float(value.strip())
        except ValueError:
            return None
    return None


def loose_equals(left: Any, right: Any) -> bool:
    """Equality that treats ``"5"`` and ``5`` as the same value."""
    if left is None or right is None:
        return left is None and right is None
    if left == right:
        return True

    left_number, right_number = _to_number(left), _to_number(right)
    if left_number is not None and right_number is not None:
        return left_number == right_number

    return str(left) == str(right)


def _compare(left: Any, right: Any, greater: bool) -> bool:
    left_number, right_number = _to_number(left), _to_number(right)
    if left_number is None or right_number is None:
        return False
    return left_number > right_number if greater else left_number < right_number


def resolve_field(
    field: str, variables: Mapping[str, Any], context: Mapping[str, Any] | None = None
) -> Any:
    """Look a field up in the variables, then in the per-turn context."""
    value = variables.get(field)
    if value is None and context:
        value = context.get(field)
    return value


def evaluate_condition(
    condition: Condition,
    variables: Mapping[str, Any],
    context: Mapping[str, Any] | None = None,
) -> bool:
    """Evaluate a condition.

    Args:
        condition: The field, operator and comparison value.
        variables: Merged session variables.
        context: Ephemeral values for this turn, e.g. ``user_input``.

    Returns:
        Whether the condition holds.
    """
    field_value = resolve_field(condition.field, variables, context)
    expected = condition.value

    operator = condition.operator

    if operator == "equals":
        return loose_equals(field_value, expected)
    elif operator == "not_equals":
        return not loose_equals(field_value, expected)
    elif operator == "contains":
        haystack = "" if field_value is None else str(field_value)
        return str(expected).lower() in haystack.lower()
    elif operator == "exists":
        return field_value is not None
    elif operator == "not_exists":
        return field_value is None
    elif operator == "greater_than":
        return _compare(field_value, expected, greater=True)
    elif operator == "less_than":
        return _compare(field_value, expected, greater=False)

    logger.warning(f"Unknown condition operator: {operator!r}")
    return False
