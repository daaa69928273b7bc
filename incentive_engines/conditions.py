"""
ConditionEvaluator -- typed comparison of a record value against a rule value.

Responsibility:
    Decide whether one rule condition holds for one value. Every rule type
    (qualification, exclusion, adjustment) goes through this function.

Architecture position:
    Engines -- pure, zero I/O. Leaf of the engine layer.

Invariants enforced:
    - Null policy is applied before any typing: a blank record value
      (None or "") matches only ``=`` against an equally blank rule value;
      a blank rule value matches only ``!=`` against a present record value.
    - Number comparison is exact Decimal; Date comparison is by calendar
      day on ``YYYY-MM-DD`` values; String comparison is trimmed and
      case-insensitive.
    - Never raises. Unparseable values and unsupported operators evaluate
      to False (unsupported operators with a warning).
"""

from __future__ import annotations

from decimal import InvalidOperation
from typing import Any

from incentive_kernel.domain.types import DataType
from incentive_kernel.domain.values import is_blank, parse_decimal, parse_iso_date, to_text
from incentive_kernel.logging_config import get_logger

logger = get_logger("engines.conditions")


def evaluate_condition(
    record_value: Any,
    operator: str,
    rule_value: Any,
    data_type: DataType | str = DataType.STRING,
) -> bool:
    """
    Evaluate ``record_value <operator> rule_value`` under ``data_type``.

    ``rule_value`` may already be typed (Decimal for Number, date for Date)
    when it comes from a compiled scheme.
    """
    op = (operator or "").strip().upper()

    if is_blank(record_value):
        return op == "=" and is_blank(rule_value)
    if is_blank(rule_value):
        return op == "!="

    data_type = data_type if isinstance(data_type, DataType) else DataType.parse(data_type)
    if data_type is DataType.NUMBER:
        return _compare_numbers(record_value, op, rule_value)
    if data_type is DataType.DATE:
        return _compare_dates(record_value, op, rule_value)
    return _compare_strings(record_value, op, rule_value)


def _compare_ordered(left: Any, op: str, right: Any, data_type: DataType) -> bool:
    if op == "=":
        return left == right
    if op == "!=":
        return left != right
    if op == ">":
        return left > right
    if op == ">=":
        return left >= right
    if op == "<":
        return left < right
    if op == "<=":
        return left <= right
    logger.warning("unsupported_operator", extra={
        "operator": op,
        "data_type": data_type.value,
    })
    return False


def _compare_numbers(record_value: Any, op: str, rule_value: Any) -> bool:
    try:
        left = parse_decimal(record_value)
        right = parse_decimal(rule_value)
        return _compare_ordered(left, op, right, DataType.NUMBER)
    except (ValueError, InvalidOperation):
        return False


def _compare_dates(record_value: Any, op: str, rule_value: Any) -> bool:
    left = parse_iso_date(record_value)
    right = parse_iso_date(rule_value)
    if left is None or right is None:
        return False
    return _compare_ordered(left, op, right, DataType.DATE)


def _compare_strings(record_value: Any, op: str, rule_value: Any) -> bool:
    left = to_text(record_value).casefold()
    right = to_text(rule_value).casefold()
    if op == "=":
        return left == right
    if op == "!=":
        return left != right
    if op == "CONTAINS":
        return right in left
    if op == "STARTSWITH":
        return left.startswith(right)
    if op == "ENDSWITH":
        return left.endswith(right)
    if op == "NOT CONTAINS":
        return right not in left
    logger.warning("unsupported_operator", extra={
        "operator": op,
        "data_type": DataType.STRING.value,
    })
    return False
