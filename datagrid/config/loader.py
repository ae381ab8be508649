from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.column import Column, ensure_unique_names
from ..models.config_models import ConditionConfig, GridConfig, GridSettings, RuleConfig
from ..services.rules import compile_rule

"""Grid config loader.

Responsibilities:
- Load a YAML grid definition (columns, settings, declarative rules)
- Validate it against the packaged JSON schema
- Apply defaults (GridSettings defaults for absent keys)
- Check that every rule targets a declared column and compiles
"""

__all__ = [
    "ConfigError",
    "load_config",
    "parse_config",
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
]

SCHEMA_PATH = Path(__file__).with_name("grid_config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/grid.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or invalid, or the data
            violates it (missing keys, wrong types, unknown keys ...)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_columns(data: dict[str, Any]) -> list[Column]:
    columns: list[Column] = []
    for raw in data["columns"]:
        try:
            column = Column(
                name=raw["name"],
                value_type=raw.get("type", "string"),
                min_width=raw.get("min_width", 80),
                max_width=raw.get("max_width", 300),
                resizable=raw.get("resizable", True),
                sortable=raw.get("sortable", True),
                read_only=raw.get("read_only", False),
            )
        except ValueError as e:
            raise ConfigError(f"column '{raw['name']}': {e}") from e
        if column.max_width < column.min_width:
            raise ConfigError(f"column '{column.name}': max_width < min_width")
        columns.append(column)

    specials = data.get("special_columns", {})
    if specials.get("valid_alerts", False):
        columns.append(Column.valid_alerts())
    if specials.get("delete_action", False):
        columns.append(Column.delete_action())
    return ensure_unique_names(columns)


def _build_rules(data: dict[str, Any], column_names: set[str]) -> list[RuleConfig]:
    rules: list[RuleConfig] = []
    for raw in data.get("rules", []):
        when_raw = raw.get("when")
        when = None
        if when_raw is not None:
            when = ConditionConfig(column=when_raw["column"], op=when_raw["op"], value=when_raw.get("value"))
            if when.column not in column_names:
                raise ConfigError(f"rule condition references unknown column: {when.column}")
        rule = RuleConfig(
            column=raw["column"],
            kind=raw["kind"],
            message=raw.get("message"),
            priority=raw.get("priority", 0),
            name=raw.get("name"),
            min=raw.get("min"),
            max=raw.get("max"),
            pattern=raw.get("pattern"),
            when=when,
        )
        if rule.column not in column_names:
            raise ConfigError(f"rule references unknown column: {rule.column}")
        try:
            compile_rule(rule)
        except ValueError as e:
            raise ConfigError(f"invalid {rule.kind} rule on {rule.column}: {e}") from e
        rules.append(rule)
    return rules


def parse_config(data: dict[str, Any]) -> GridConfig:
    """Build a GridConfig from already-parsed YAML data."""
    _validate_config_schema(data)

    try:
        settings = GridSettings(**data.get("settings", {}))
    except (TypeError, ValueError) as e:
        raise ConfigError(f"invalid settings: {e}") from e

    columns = _build_columns(data)
    rules = _build_rules(data, {c.name for c in columns if not c.is_special})
    return GridConfig(settings=settings, columns=columns, rules=rules)


def load_config(path: Path) -> GridConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return parse_config(data)
