from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone

import pytest

from datagrid.models.row import Row
from datagrid.models.validation_summary import BatchMetrics, BatchStatsAccumulator, ValidationSummary
from datagrid.services.summary import format_number, render_summary_line

"""Unit tests for the validation SUMMARY line and its metrics."""

SUMMARY_PATTERN = re.compile(
    r"^SUMMARY\s+rows=([0-9]+)\s+valid=([0-9]+)\s+invalid=([0-9]+)\s+empty=([0-9]+)\s+"
    r"batches=([0-9]+)\s+elapsed_sec=([0-9]+\.?[0-9]*)\s+throughput_rps=([0-9]+\.?[0-9]*)$"
)

START = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)


def _rows(sample_columns, ages: list) -> list[Row]:
    rows = []
    for age in ages:
        row = Row.for_columns(sample_columns)
        if age is not None:
            row.set_value("Age", age)
            if age < 0:
                row.get_cell("Age").set_validation_errors(["negative"])
        rows.append(row)
    return rows


def test_render_summary_line_fields(sample_columns):
    rows = _rows(sample_columns, [1, -1, 2, None, None])
    stats = BatchStatsAccumulator()
    stats(BatchMetrics(batch_size=2, elapsed_seconds=0.5, start_time=0.0, end_time=0.5))
    stats(BatchMetrics(batch_size=1, elapsed_seconds=0.25, start_time=0.5, end_time=0.75))

    summary = ValidationSummary.from_rows(rows, START, START + timedelta(seconds=2), stats)
    line = render_summary_line(summary)

    match = SUMMARY_PATTERN.match(line)
    assert match, f"SUMMARY line should match regex: {line}"
    assert match.groups() == ("3", "2", "1", "2", "2", "2", "1.5")


def test_zero_elapsed_gives_zero_throughput(sample_columns):
    summary = ValidationSummary.from_rows(_rows(sample_columns, [1]), START, START)
    assert summary.throughput_rows_per_sec == 0.0
    assert render_summary_line(summary).endswith("batches=0 elapsed_sec=0 throughput_rps=0")


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (0, "0"),
        (0.0, "0"),
        (2.0, "2"),
        (1.5, "1.5"),
        (0.004, "0.004"),
        (0.0000001, "0"),
        (4761.9, "4761.9"),
    ],
)
def test_format_number(value, expected):
    assert format_number(value) == expected


def test_batch_stats_p95():
    stats = BatchStatsAccumulator()
    assert stats.get_stats() == (0, 0.0, 0.0)

    stats.add_batch_time(0.3)
    assert stats.get_stats() == (1, 0.3, 0.3)

    for t in [0.1 * i for i in range(2, 21)]:
        stats.add_batch_time(t)
    count, avg, p95 = stats.get_stats()
    assert count == 20
    assert avg == pytest.approx(1.06)
    assert max(stats.batch_times) >= p95 >= 1.8
