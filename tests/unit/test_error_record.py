from __future__ import annotations

import json
import re

from datagrid.models.error_record import JSON_KEYS, ErrorRecord

"""Unit tests for ErrorRecord creation and its JSON Lines form."""

TIMESTAMP = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")


def test_create_from_exception():
    cause = KeyError("Age")
    record = ErrorRecord.create(cause, "validation", "validate_cell")

    assert TIMESTAMP.match(record.timestamp)
    assert record.component == "validation"
    assert record.operation == "validate_cell"
    assert record.error_type == "KeyError"
    assert record.message == "'Age'"
    assert record.cause is cause


def test_to_json_line_has_fixed_keys():
    record = ErrorRecord.create(RuntimeError("düsseldorf"), "grid", "paste")
    line = record.to_json_line()
    data = json.loads(line)

    assert tuple(data) == JSON_KEYS
    assert "cause" not in data
    assert "düsseldorf" in line
    assert "\n" not in line


def test_cause_is_ignored_for_equality():
    a = ErrorRecord("2024-01-01T00:00:00Z", "grid", "sort", "ValueError", "x", cause=ValueError("x"))
    b = ErrorRecord("2024-01-01T00:00:00Z", "grid", "sort", "ValueError", "x")
    assert a == b
    assert "cause" not in repr(a)
