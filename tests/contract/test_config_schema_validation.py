from __future__ import annotations

import json

import jsonschema
import pytest
import yaml
from jsonschema.exceptions import ValidationError

from datagrid.config.loader import SCHEMA_PATH

"""Grid config schema contract test (packaged JSON schema)."""


@pytest.fixture()
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_schema_is_valid_draft07(schema):
    jsonschema.Draft7Validator.check_schema(schema)


def test_sample_config_is_valid(schema, sample_config_yaml):
    jsonschema.validate(yaml.safe_load(sample_config_yaml), schema)


def test_full_example(schema):
    config = {
        "settings": {
            "min_row_count": 50,
            "validation_batch_size": 10,
            "debug": False,
            "realtime_validation": True,
            "line_separator": "\r\n",
        },
        "columns": [
            {"name": "Code", "type": "string", "min_width": 60, "max_width": 120, "sortable": True},
            {"name": "Amount", "type": "decimal", "read_only": False, "resizable": False},
        ],
        "special_columns": {"valid_alerts": True, "delete_action": False},
        "rules": [
            {"column": "Code", "kind": "pattern", "pattern": "[A-Z]{3}", "priority": 2, "name": "code_fmt"},
            {"column": "Amount", "kind": "numeric", "when": {"column": "Code", "op": "not_empty"}},
        ],
    }
    jsonschema.validate(config, schema)


@pytest.mark.parametrize(
    "config",
    [
        {"settings": {"min_row_count": 5}},
        {"columns": []},
        {"columns": [{"name": "A", "width": 3}]},
        {"columns": [{"name": "A"}], "special_columns": {"row_numbers": True}},
        {"columns": [{"name": "A"}], "rules": [{"column": "A"}]},
        {"columns": [{"name": "A"}], "settings": {"validation_batch_size": 0}},
        {"columns": [{"name": "A"}], "settings": {"line_separator": ""}},
    ],
)
def test_schema_rejects(schema, config):
    with pytest.raises(ValidationError):
        jsonschema.validate(config, schema)
