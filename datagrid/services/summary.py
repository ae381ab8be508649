from __future__ import annotations

from ..models.validation_summary import ValidationSummary

"""SUMMARY line rendering for validation runs.

Format:
SUMMARY rows={rows} valid={valid} invalid={invalid} empty={empty}
batches={batches} elapsed_sec={elapsed} throughput_rps={throughput}
"""

__all__ = [
    "render_summary_line",
    "format_number",
]


def format_number(value: float) -> str:
    """Render a metric without scientific notation; integral values lose the '.0'."""
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(value)


def render_summary_line(summary: ValidationSummary) -> str:
    """Render the SUMMARY line for a finished validation run.

    Examples:
        >>> from datetime import datetime, timezone
        >>> start = datetime(2024, 1, 1, 10, 0, 0, tzinfo=timezone.utc)
        >>> end = datetime(2024, 1, 1, 10, 0, 2, tzinfo=timezone.utc)
        >>> s = ValidationSummary(
        ...     total_rows=10, valid_rows=8, invalid_rows=2, empty_rows=40,
        ...     total_batches=1, avg_batch_seconds=0.5, p95_batch_seconds=0.5,
        ...     start_time=start, end_time=end, elapsed_seconds=2.0,
        ...     throughput_rows_per_sec=5.0,
        ... )
        >>> render_summary_line(s)
        'SUMMARY rows=10 valid=8 invalid=2 empty=40 batches=1 elapsed_sec=2 throughput_rps=5'
    """
    return (
        f"SUMMARY rows={summary.total_rows} "
        f"valid={summary.valid_rows} "
        f"invalid={summary.invalid_rows} "
        f"empty={summary.empty_rows} "
        f"batches={summary.total_batches} "
        f"elapsed_sec={format_number(summary.elapsed_seconds)} "
        f"throughput_rps={format_number(summary.throughput_rows_per_sec)}"
    )
