from __future__ import annotations

import math
import re
import uuid
from collections.abc import Callable
from decimal import Decimal, InvalidOperation
from typing import Any

from ..models.config_models import CONDITION_OPS, RuleConfig
from ..models.row import Row, is_blank
from ..models.validation import RowCondition, RulePredicate, ValidationRule

"""Declarative rule helpers compiling to ValidationRule.

Only ``required_rule`` rejects blank values; ``numeric_rule``, ``range_rule``
and ``pattern_rule`` let blanks pass so that optional columns can still carry
format rules. ``length_rule`` measures blanks as length 0.
"""

__all__ = [
    "required_rule",
    "length_rule",
    "numeric_rule",
    "range_rule",
    "pattern_rule",
    "conditional_rule",
    "column_condition",
    "compile_rule",
    "to_number",
]


def to_number(value: Any) -> float | None:
    """Parse a value as float; ``None`` when it is not numeric (NaN included)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    else:
        try:
            number = float(str(value).strip())
        except ValueError:
            return None
    if math.isnan(number):
        return None
    return number


def required_rule(
    column_name: str, error_message: str | None = None, *, priority: int = 0, rule_name: str | None = None
) -> ValidationRule:
    return ValidationRule(
        column_name=column_name,
        validate=lambda value, row: not is_blank(value),
        error_message=error_message or f"{column_name} is required",
        priority=priority,
        rule_name=rule_name or f"{column_name}_Required",
    )


def length_rule(
    column_name: str,
    min_length: int = 0,
    max_length: int | None = None,
    error_message: str | None = None,
    *,
    priority: int = 0,
    rule_name: str | None = None,
) -> ValidationRule:
    if max_length is not None and max_length < min_length:
        raise ValueError(f"max_length {max_length} < min_length {min_length}")

    def check(value: Any, row: Row) -> bool:
        length = len("" if value is None else str(value))
        return length >= min_length and (max_length is None or length <= max_length)

    upper = "∞" if max_length is None else str(max_length)
    return ValidationRule(
        column_name=column_name,
        validate=check,
        error_message=error_message or f"{column_name} length must be between {min_length} and {upper} characters",
        priority=priority,
        rule_name=rule_name or f"{column_name}_Length",
    )


def numeric_rule(
    column_name: str, error_message: str | None = None, *, priority: int = 0, rule_name: str | None = None
) -> ValidationRule:
    return ValidationRule(
        column_name=column_name,
        validate=lambda value, row: is_blank(value) or to_number(value) is not None,
        error_message=error_message or f"{column_name} must be a number",
        priority=priority,
        rule_name=rule_name or f"{column_name}_Numeric",
    )


def range_rule(
    column_name: str,
    min_value: float | None = None,
    max_value: float | None = None,
    error_message: str | None = None,
    *,
    priority: int = 0,
    rule_name: str | None = None,
) -> ValidationRule:
    if min_value is None and max_value is None:
        raise ValueError("range_rule needs min_value or max_value")

    def check(value: Any, row: Row) -> bool:
        if is_blank(value):
            return True
        number = to_number(value)
        if number is None:
            return False
        if min_value is not None and number < min_value:
            return False
        return max_value is None or number <= max_value

    if min_value is not None and max_value is not None:
        default_message = f"{column_name} must be between {min_value} and {max_value}"
    elif min_value is not None:
        default_message = f"{column_name} must be at least {min_value}"
    else:
        default_message = f"{column_name} must be at most {max_value}"
    return ValidationRule(
        column_name=column_name,
        validate=check,
        error_message=error_message or default_message,
        priority=priority,
        rule_name=rule_name or f"{column_name}_Range",
    )


def pattern_rule(
    column_name: str,
    pattern: str,
    error_message: str | None = None,
    *,
    priority: int = 0,
    rule_name: str | None = None,
) -> ValidationRule:
    """Rule passing when ``pattern`` matches the whole trimmed text."""
    try:
        compiled = re.compile(pattern)
    except re.error as e:
        raise ValueError(f"invalid pattern for {column_name}: {e}") from e
    return ValidationRule(
        column_name=column_name,
        validate=lambda value, row: is_blank(value) or compiled.fullmatch(str(value).strip()) is not None,
        error_message=error_message or f"{column_name} has an invalid format",
        priority=priority,
        rule_name=rule_name or f"{column_name}_Pattern",
    )


def conditional_rule(
    column_name: str,
    condition: RowCondition,
    validate: RulePredicate,
    error_message: str,
    *,
    priority: int = 0,
    rule_name: str | None = None,
) -> ValidationRule:
    """Rule that only fires for rows where ``condition(row)`` holds."""
    return ValidationRule(
        column_name=column_name,
        validate=validate,
        error_message=error_message,
        apply_condition=condition,
        priority=priority,
        rule_name=rule_name or f"{column_name}_Conditional_{uuid.uuid4().hex[:8]}",
    )


def _as_decimal(value: Any) -> Decimal | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = Decimal(str(value).strip())
    except InvalidOperation:
        return None
    return number if number.is_finite() else None


_COMPARATORS: dict[str, Callable[[Any, Any], bool]] = {
    "gt": lambda a, b: a > b,
    "ge": lambda a, b: a >= b,
    "lt": lambda a, b: a < b,
    "le": lambda a, b: a <= b,
}


def column_condition(column_name: str, op: str, value: Any = None) -> RowCondition:
    """Build ``row -> bool`` comparing another column's value.

    ``eq``/``ne`` compare numerically when both sides are numbers and as
    trimmed text otherwise. Ordering ops are numeric only and are False for
    non-numeric values.
    """
    if op not in CONDITION_OPS:
        raise ValueError(f"unknown condition op: {op!r}")

    if op == "empty":
        return lambda row: is_blank(row.get_value(column_name))
    if op == "not_empty":
        return lambda row: not is_blank(row.get_value(column_name))

    expected_number = _as_decimal(value)

    def equals(actual: Any) -> bool:
        actual_number = _as_decimal(actual)
        if expected_number is not None and actual_number is not None:
            return actual_number == expected_number
        if value is None:
            return is_blank(actual)
        return actual is not None and str(actual).strip() == str(value).strip()

    if op == "eq":
        return lambda row: equals(row.get_value(column_name))
    if op == "ne":
        return lambda row: not equals(row.get_value(column_name))

    if expected_number is None:
        raise ValueError(f"condition '{op}' needs a numeric value (got {value!r})")
    compare = _COMPARATORS[op]

    def ordered(row: Row) -> bool:
        actual_number = _as_decimal(row.get_value(column_name))
        return actual_number is not None and compare(actual_number, expected_number)

    return ordered


def compile_rule(config: RuleConfig) -> ValidationRule:
    """Turn a declarative RuleConfig into a ValidationRule."""
    kind = config.kind
    common: dict[str, Any] = {"priority": config.priority, "rule_name": config.name}
    if kind == "required":
        rule = required_rule(config.column, config.message, **common)
    elif kind == "length":
        rule = length_rule(config.column, config.min or 0, config.max, config.message, **common)
    elif kind == "numeric":
        rule = numeric_rule(config.column, config.message, **common)
    elif kind == "range":
        rule = range_rule(config.column, config.min, config.max, config.message, **common)
    elif kind == "pattern":
        if not config.pattern:
            raise ValueError(f"pattern rule on {config.column} has no pattern")
        rule = pattern_rule(config.column, config.pattern, config.message, **common)
    else:
        raise ValueError(f"unknown rule kind: {kind!r}")

    if config.when is not None:
        rule.apply_condition = column_condition(config.when.column, config.when.op, config.when.value)
        if config.name is None:
            rule.rule_name = f"{rule.rule_name}_When_{config.when.column}"
    return rule
