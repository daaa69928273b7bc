"""
Tests for ConditionEvaluator.

Covers:
- String operators (trimmed, case-insensitive)
- Number and Date ordering
- Null policy
- Unparseable values and unsupported operators
"""

from datetime import date
from decimal import Decimal

import pytest

from incentive_engines.conditions import evaluate_condition
from incentive_kernel.domain.types import DataType


class TestStringConditions:

    @pytest.mark.parametrize("record,op,rule,expected", [
        ("Fully Delivered", "CONTAINS", "fully", True),
        ("Partially", "CONTAINS", "Fully", False),
        ("  US-West ", "=", "us-west", True),
        ("US-West", "!=", "US-East", True),
        ("Fully Delivered", "STARTSWITH", "FULLY", True),
        ("Fully Delivered", "ENDSWITH", "delivered", True),
        ("Fully Delivered", "NOT CONTAINS", "partial", True),
        ("Fully Delivered", "NOT CONTAINS", "deliver", False),
    ])
    def test_operators(self, record, op, rule, expected):
        assert evaluate_condition(record, op, rule) is expected

    def test_operator_is_normalized(self):
        assert evaluate_condition("abc", " contains ", "B") is True

    def test_non_string_values_compare_as_text(self):
        assert evaluate_condition(1810, "=", "1810") is True

    def test_whole_number_float_matches_its_integer_text(self):
        assert evaluate_condition(17100002.0, "=", "17100002") is True
        assert evaluate_condition("17100002", "=", 17100002.0) is True
        assert evaluate_condition(17100002.0, "!=", "17100002") is False

    def test_ordering_operator_on_string_is_false(self, captured_logs):
        assert evaluate_condition("b", ">", "a") is False
        assert any(r["message"] == "unsupported_operator" for r in captured_logs())


class TestNumberConditions:

    @pytest.mark.parametrize("record,op,rule,expected", [
        ("100", ">", "99.5", True),
        ("100", ">=", Decimal("100"), True),
        ("100.00", "=", "100", True),
        (99, "<", "100", True),
        ("100", "<=", "99", False),
        ("100", "!=", "100.0", False),
    ])
    def test_ordering(self, record, op, rule, expected):
        assert evaluate_condition(record, op, rule, DataType.NUMBER) is expected

    def test_unparseable_record_value_is_false(self):
        assert evaluate_condition("n/a", ">", "1", DataType.NUMBER) is False
        assert evaluate_condition("n/a", "!=", "1", DataType.NUMBER) is False

    def test_string_operator_on_number_is_false(self):
        assert evaluate_condition("100", "CONTAINS", "1", DataType.NUMBER) is False

    def test_data_type_may_be_given_by_name(self):
        assert evaluate_condition("10", ">", "9", "Number") is True
        # unknown types compare as strings, which have no ordering operators
        assert evaluate_condition("10", ">", "9", "Text") is False


class TestDateConditions:

    def test_ordering(self):
        assert evaluate_condition("2024-12-15", ">=", "2024-12-01", DataType.DATE) is True
        assert evaluate_condition("2024-12-15", "<", date(2024, 12, 1), DataType.DATE) is False
        assert evaluate_condition("2024-12-15", "=", date(2024, 12, 15), DataType.DATE) is True

    def test_malformed_date_is_false(self):
        assert evaluate_condition("15/12/2024", "<", "2025-01-01", DataType.DATE) is False


class TestNullPolicy:
    """Blank means None or the empty string."""

    @pytest.mark.parametrize("data_type", list(DataType))
    def test_blank_record_matches_only_equal_blank(self, data_type):
        assert evaluate_condition(None, "=", "", data_type) is True
        assert evaluate_condition("", "=", None, data_type) is True
        assert evaluate_condition(None, "=", "x", data_type) is False
        assert evaluate_condition(None, "!=", "x", data_type) is False
        assert evaluate_condition("", "!=", "", data_type) is False

    @pytest.mark.parametrize("data_type", list(DataType))
    def test_blank_rule_matches_only_not_equal(self, data_type):
        assert evaluate_condition("5", "!=", "", data_type) is True
        assert evaluate_condition("5", "=", None, data_type) is False
        assert evaluate_condition("5", ">", "", data_type) is False

    def test_whitespace_is_not_blank(self):
        assert evaluate_condition(" ", "=", "", DataType.STRING) is False
