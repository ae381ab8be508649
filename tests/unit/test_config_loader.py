from __future__ import annotations

from pathlib import Path

import pytest

from datagrid.config.loader import ConfigError, load_config, parse_config
from datagrid.models.value_types import ValueType


def test_load_sample_config(write_config: Path):
    cfg = load_config(write_config)
    assert cfg.settings.min_row_count == 5
    assert cfg.settings.validation_batch_size == 2
    assert cfg.settings.realtime_validation is True
    assert [c.name for c in cfg.columns] == ["Name", "Age", "Salary", "ValidAlerts", "DeleteAction"]
    assert cfg.columns[1].value_type is ValueType.INTEGER
    assert [r.kind for r in cfg.rules] == ["required", "range", "range"]
    assert cfg.rules[2].when is not None
    assert cfg.rules[2].when.op == "gt"


def test_defaults_applied():
    cfg = parse_config({"columns": [{"name": "A"}]})
    assert cfg.settings.min_row_count == 50
    assert cfg.columns[0].value_type is ValueType.STRING
    assert cfg.columns[0].min_width == 80
    assert cfg.rules == []


def test_duplicate_column_names_are_suffixed():
    cfg = parse_config({"columns": [{"name": "A"}, {"name": "A"}, {"name": ""}]})
    assert [c.name for c in cfg.columns] == ["A", "A_1", "Column"]


def test_missing_file(temp_workdir: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(temp_workdir / "config" / "nope.yml")


def test_invalid_yaml(temp_workdir: Path):
    p = temp_workdir / "config" / "grid.yml"
    p.write_text("columns: [unclosed\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="invalid yaml"):
        load_config(p)


def test_root_must_be_mapping(temp_workdir: Path):
    p = temp_workdir / "config" / "grid.yml"
    p.write_text("- a\n- b\n", encoding="utf-8")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(p)


@pytest.mark.parametrize(
    "data",
    [
        {},
        {"columns": [{"type": "string"}]},
        {"columns": [{"name": "A"}], "unexpected": 1},
        {"columns": [{"name": "A"}], "settings": {"min_row_count": 0}},
        {"columns": [{"name": "A"}], "rules": [{"column": "A", "kind": "email"}]},
        {"columns": [{"name": "A"}], "rules": [{"column": "A", "kind": "range", "when": {"column": "A", "op": "between"}}]},
    ],
)
def test_schema_violations(data):
    with pytest.raises(ConfigError, match="config validation failed"):
        parse_config(data)


def test_unknown_value_type():
    with pytest.raises(ConfigError, match="unknown value type"):
        parse_config({"columns": [{"name": "A", "type": "money"}]})


def test_width_bounds_checked():
    with pytest.raises(ConfigError, match="max_width"):
        parse_config({"columns": [{"name": "A", "min_width": 200, "max_width": 100}]})


def test_rule_on_unknown_column():
    with pytest.raises(ConfigError, match="unknown column: B"):
        parse_config({"columns": [{"name": "A"}], "rules": [{"column": "B", "kind": "required"}]})


def test_rule_condition_on_unknown_column():
    data = {
        "columns": [{"name": "A"}],
        "rules": [{"column": "A", "kind": "required", "when": {"column": "Z", "op": "empty"}}],
    }
    with pytest.raises(ConfigError, match="condition references unknown column: Z"):
        parse_config(data)


def test_rule_on_special_column_is_rejected():
    data = {
        "columns": [{"name": "A"}],
        "special_columns": {"valid_alerts": True},
        "rules": [{"column": "ValidAlerts", "kind": "required"}],
    }
    with pytest.raises(ConfigError, match="unknown column"):
        parse_config(data)


def test_uncompilable_rule():
    data = {"columns": [{"name": "A"}], "rules": [{"column": "A", "kind": "range"}]}
    with pytest.raises(ConfigError, match="invalid range rule on A"):
        parse_config(data)
