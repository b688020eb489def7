"""Tests for condition evaluation."""

import pytest

from chatflow.flows import evaluate_condition, loose_equals
from chatflow.models import Condition


def check(operator: str, field_value, value=None, context=None) -> bool:
    variables = {} if field_value is None else {"field": field_value}
    return evaluate_condition(Condition(field="field", operator=operator, value=value), variables, context)


class TestLooseEquals:
    """Tests for coercing equality."""

    @pytest.mark.parametrize(
        "left,right,expected",
        [
            ("5", 5, True),
            (5.0, "5", True),
            ("yes", "yes", True),
            ("Yes", "yes", False),
            (None, None, True),
            (None, "", False),
            (True, 1, True),
        ],
    )
    def test_loose_equals(self, left, right, expected):
        assert loose_equals(left, right) is expected


class TestOperators:
    """Tests for each operator."""

    def test_equals(self):
        assert check("equals", "10", 10)
        assert not check("equals", "10", 11)

    def test_not_equals(self):
        assert check("not_equals", "gold", "silver")
        assert not check("not_equals", 3, "3")

    def test_contains_is_case_insensitive(self):
        assert check("contains", "Premium Member", "premium")
        assert not check("contains", "Basic", "premium")

    def test_contains_on_missing_field(self):
        assert not check("contains", None, "x")

    def test_exists(self):
        assert check("exists", "")
        assert not check("exists", None)
        assert check("not_exists", None)
        assert not check("not_exists", 0)

    def test_numeric_comparisons(self):
        assert check("greater_than", "21", 18)
        assert not check("greater_than", 18, "18")
        assert check("less_than", 2.5, "3")

    def test_non_numeric_comparison_is_false(self):
        assert not check("greater_than", "abc", 1)
        assert not check("less_than", None, 1)

    def test_unknown_operator_is_false(self):
        assert not check("matches_vibe", "anything", "anything")


class TestFieldResolution:
    """Tests for variables-then-context lookup."""

    def test_falls_back_to_context(self):
        condition = Condition(field="user_input", operator="contains", value="yes")
        assert evaluate_condition(condition, {}, {"user_input": "Yes please"})

    def test_variables_take_precedence(self):
        condition = Condition(field="user_input", operator="equals", value="stored")
        assert evaluate_condition(condition, {"user_input": "stored"}, {"user_input": "typed"})
