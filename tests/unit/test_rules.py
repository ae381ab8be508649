from __future__ import annotations

import pytest

from datagrid.models.config_models import ConditionConfig, RuleConfig
from datagrid.models.row import Row
from datagrid.services.rules import (
    column_condition,
    compile_rule,
    conditional_rule,
    length_rule,
    numeric_rule,
    pattern_rule,
    range_rule,
    required_rule,
    to_number,
)

"""Unit tests for the declarative rule helpers."""


@pytest.fixture()
def row(sample_columns) -> Row:
    return Row.for_columns(sample_columns)


def test_required_rule(row):
    rule = required_rule("Name")
    assert rule.rule_name == "Name_Required"
    assert rule.error_message == "Name is required"
    assert rule.validate("x", row) is True
    assert rule.validate("   ", row) is False
    assert rule.validate(None, row) is False


def test_length_rule(row):
    rule = length_rule("Name", 2, 4)
    assert rule.rule_name == "Name_Length"
    assert rule.validate("abc", row)
    assert not rule.validate("a", row)
    assert not rule.validate("abcde", row)
    # blanks measure as length 0
    assert not rule.validate(None, row)
    assert length_rule("Name", 0, 3).validate(None, row)
    with pytest.raises(ValueError):
        length_rule("Name", 5, 2)


def test_numeric_rule_allows_blank(row):
    rule = numeric_rule("Age")
    assert rule.rule_name == "Age_Numeric"
    assert rule.validate("", row)
    assert rule.validate(None, row)
    assert rule.validate("12.5", row)
    assert rule.validate(7, row)
    assert not rule.validate("abc", row)
    assert not rule.validate(True, row)


def test_range_rule(row):
    rule = range_rule("Age", 18, 65)
    assert rule.rule_name == "Age_Range"
    assert rule.error_message == "Age must be between 18 and 65"
    assert rule.validate(None, row)
    assert rule.validate("18", row)
    assert rule.validate(65, row)
    assert not rule.validate(17, row)
    assert not rule.validate("abc", row)
    assert range_rule("Age", min_value=0).error_message == "Age must be at least 0"
    with pytest.raises(ValueError):
        range_rule("Age")


def test_pattern_rule(row):
    rule = pattern_rule("Code", r"[A-Z]{3}\d{2}")
    assert rule.rule_name == "Code_Pattern"
    assert rule.validate("ABC12", row)
    assert rule.validate(" ABC12 ", row)
    assert not rule.validate("ABC123", row)
    assert rule.validate("", row)
    with pytest.raises(ValueError):
        pattern_rule("Code", "[unclosed")


def test_conditional_rule_default_name(row):
    rule = conditional_rule("Salary", lambda r: True, lambda v, r: True, "msg")
    assert rule.rule_name.startswith("Salary_Conditional_")
    assert len(rule.rule_name) == len("Salary_Conditional_") + 8


def test_column_condition_ops(row):
    row.set_value("Age", "55")
    assert column_condition("Age", "gt", 50)(row)
    assert column_condition("Age", "ge", 55)(row)
    assert not column_condition("Age", "lt", 50)(row)
    assert column_condition("Age", "eq", 55)(row)
    assert column_condition("Age", "ne", 40)(row)
    assert column_condition("Age", "not_empty")(row)
    assert column_condition("Name", "empty")(row)
    row.set_value("Name", "Bob")
    assert column_condition("Name", "eq", " Bob ")(row)
    # ordering on a non-numeric value is simply False
    assert not column_condition("Name", "gt", 1)(row)


def test_column_condition_rejects_bad_input():
    with pytest.raises(ValueError):
        column_condition("Age", "between", 1)
    with pytest.raises(ValueError):
        column_condition("Age", "gt", "abc")


def test_compile_rule_with_when(row):
    cfg = RuleConfig(
        column="Salary",
        kind="range",
        min=3000,
        message="Salary must be at least 3000",
        priority=3,
        when=ConditionConfig(column="Age", op="gt", value=50),
    )
    rule = compile_rule(cfg)
    assert rule.priority == 3
    assert rule.rule_name == "Salary_Range_When_Age"
    row.set_value("Age", 40)
    assert rule.should_apply(row) is False
    row.set_value("Age", 55)
    assert rule.should_apply(row) is True
    assert rule.validate(1000, row) is False


def test_compile_rule_unknown_kind():
    with pytest.raises(ValueError):
        compile_rule(RuleConfig(column="A", kind="email"))


def test_to_number():
    assert to_number("3.5") == 3.5
    assert to_number(None) is None
    assert to_number("nan") is None
    assert to_number(False) is None
