from __future__ import annotations

import statistics
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .row import Row

"""Batch validation metrics and the aggregated run summary.

``BatchMetrics`` is handed to the ``metrics_callback`` of
``ValidationEngine.validate_all_rows`` once per batch; ``BatchStatsAccumulator``
collects those timings and ``ValidationSummary`` feeds the SUMMARY line.
"""

__all__ = [
    "BatchMetrics",
    "BatchStatsAccumulator",
    "ValidationSummary",
]


@dataclass(frozen=True)
class BatchMetrics:
    """Metrics for a single validation batch."""
    batch_size: int  # rows validated in this batch
    elapsed_seconds: float
    start_time: float  # time.time()
    end_time: float  # time.time()


class BatchStatsAccumulator:
    """Collects batch timings and derives count / average / p95."""

    def __init__(self) -> None:
        self.batch_times: list[float] = []

    def __call__(self, metrics: BatchMetrics) -> None:
        self.add_batch_time(metrics.elapsed_seconds)

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Calculate batch statistics.

        Returns:
            tuple: (total_batches, avg_batch_seconds, p95_batch_seconds)
        """
        if not self.batch_times:
            return (0, 0.0, 0.0)

        total_batches = len(self.batch_times)
        avg_batch_seconds = statistics.mean(self.batch_times)
        if total_batches == 1:
            p95_batch_seconds = self.batch_times[0]
        else:
            p95_batch_seconds = statistics.quantiles(
                self.batch_times, n=20, method="inclusive"
            )[18]
        return (total_batches, avg_batch_seconds, p95_batch_seconds)


@dataclass(frozen=True)
class ValidationSummary:
    """Aggregated result of one full-grid validation run."""
    total_rows: int  # non-empty rows
    valid_rows: int
    invalid_rows: int
    empty_rows: int
    total_batches: int
    avg_batch_seconds: float
    p95_batch_seconds: float
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float

    @staticmethod
    def from_rows(
        rows: Iterable[Row],
        start_time: datetime,
        end_time: datetime,
        batch_stats: BatchStatsAccumulator | None = None,
    ) -> ValidationSummary:
        total = valid = invalid = empty = 0
        for row in rows:
            if row.is_empty:
                empty += 1
                continue
            total += 1
            if row.has_validation_errors:
                invalid += 1
            else:
                valid += 1
        batches, avg, p95 = batch_stats.get_stats() if batch_stats is not None else (0, 0.0, 0.0)
        elapsed = max((end_time - start_time).total_seconds(), 0.0)
        throughput = round(total / elapsed, 1) if elapsed > 0 else 0.0
        return ValidationSummary(
            total_rows=total,
            valid_rows=valid,
            invalid_rows=invalid,
            empty_rows=empty,
            total_batches=batches,
            avg_batch_seconds=avg,
            p95_batch_seconds=p95,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=elapsed,
            throughput_rows_per_sec=throughput,
        )
