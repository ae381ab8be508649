from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable, Iterable

from ..models.cell import Cell
from ..models.column import is_special_column
from ..models.events import EventChannel, RowValidationCompleted
from ..models.row import Row
from ..models.validation import ValidationResult, ValidationRule
from ..models.validation_summary import BatchMetrics
from .component import Component

"""Validation engine: rule registry plus per-cell, per-row and batch evaluation.

Rules are kept per column in registration order. Evaluation filters the rules
whose ``apply_condition`` holds for the row and runs them by descending
priority (stable, so equal priorities keep registration order). Every failing
rule contributes its message; evaluation never stops at the first failure.

A predicate that raises counts as a failed rule with the message
``"Validation error: <exception>"``. Any other fault is published through
``error_occurred`` and the call returns what it has computed so far.

Full-grid validation runs rows in fixed-size batches: the rows of one batch
are validated concurrently and the whole batch is awaited before the next one
starts. A second ``validate_all_rows`` on the same engine while one is in
flight is rejected with ``ValidationInProgressError`` and returns ``[]``.
"""

__all__ = [
    "ValidationEngine",
    "ValidationInProgressError",
    "DEFAULT_BATCH_SIZE",
]

DEFAULT_BATCH_SIZE = 10

ProgressCallback = Callable[[int, int], None]


class ValidationInProgressError(RuntimeError):
    """Raised (and reported) when a full-grid validation is already running."""


class ValidationEngine(Component):
    component_name = "validation"

    def __init__(self, logger: logging.Logger | None = None, batch_size: int = DEFAULT_BATCH_SIZE) -> None:
        super().__init__(logger)
        if batch_size < 1:
            raise ValueError(f"batch_size must be >= 1 (got {batch_size})")
        self.batch_size = batch_size
        self._rules: dict[str, list[ValidationRule]] = {}
        self._in_flight = False
        self.validation_completed: EventChannel[RowValidationCompleted] = EventChannel(
            "validation_completed", log=self.logger
        )

    # --- rule management ---------------------------------------------
    def add_rule(self, rule: ValidationRule) -> None:
        """Register a rule; an existing rule with the same name on the column is replaced."""
        if rule is None:
            raise ValueError("rule must not be None")
        rules = self._rules.setdefault(rule.column_name, [])
        rules[:] = [r for r in rules if r.rule_name != rule.rule_name]
        rules.append(rule)
        self.logger.debug(f"rule added: column={rule.column_name} name={rule.rule_name} priority={rule.priority}")

    def add_rules(self, rules: Iterable[ValidationRule]) -> None:
        for rule in rules:
            self.add_rule(rule)

    def remove_rule(self, column_name: str, rule_name: str) -> bool:
        rules = self._rules.get(column_name)
        if not rules:
            return False
        remaining = [r for r in rules if r.rule_name != rule_name]
        if len(remaining) == len(rules):
            return False
        if remaining:
            self._rules[column_name] = remaining
        else:
            del self._rules[column_name]
        return True

    def clear_rules(self, column_name: str | None = None) -> None:
        if column_name is None:
            self._rules.clear()
        else:
            self._rules.pop(column_name, None)

    def get_rules(self, column_name: str) -> list[ValidationRule]:
        return list(self._rules.get(column_name, []))

    def has_rules(self, column_name: str) -> bool:
        return bool(self._rules.get(column_name))

    @property
    def total_rule_count(self) -> int:
        return sum(len(rules) for rules in self._rules.values())

    # --- evaluation ----------------------------------------------------
    def _applicable_rules(self, column_name: str, row: Row) -> list[ValidationRule]:
        rules = [r for r in self._rules.get(column_name, []) if r.should_apply(row)]
        return sorted(rules, key=lambda r: r.priority, reverse=True)

    def validate_cell(self, cell: Cell, row: Row) -> ValidationResult:
        """Evaluate the column's rules for ``cell`` and store the messages on it."""
        if cell is None or row is None:
            raise ValueError("cell and row are required")
        column_name = cell.column_name
        if is_special_column(column_name):
            return ValidationResult.success(column_name)
        try:
            if row.is_empty:
                cell.set_validation_errors([])
                return ValidationResult.success(column_name)

            errors: list[str] = []
            for rule in self._applicable_rules(column_name, row):
                try:
                    ok = rule.validate(cell.value, row)
                except Exception as e:
                    errors.append(f"Validation error: {e}")
                    continue
                if not ok:
                    errors.append(rule.error_message)
            cell.set_validation_errors(errors)
            if errors:
                return ValidationResult.failure(column_name, errors)
            return ValidationResult.success(column_name)
        except Exception as e:
            self._report(e, "validate_cell")
            return ValidationResult.failure(column_name, [f"Validation error: {e}"])

    def validate_row(self, row: Row) -> list[ValidationResult]:
        """Validate every ruled data cell and refresh the row's aggregate state."""
        if row is None:
            raise ValueError("row is required")
        results: list[ValidationResult] = []
        try:
            if row.is_empty:
                row.clear_validation_errors()
            else:
                for cell in row.data_cells():
                    if self.has_rules(cell.column_name):
                        results.append(self.validate_cell(cell, row))
            row.update_validation_status()
        except Exception as e:
            self._report(e, "validate_row")
            return results
        self.validation_completed.emit(RowValidationCompleted(row=row, results=list(results)))
        return results

    async def _validate_row_async(self, row: Row) -> list[ValidationResult]:
        await asyncio.sleep(0)
        return self.validate_row(row)

    async def validate_all_rows(
        self,
        rows: Iterable[Row],
        progress: ProgressCallback | None = None,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> list[ValidationResult]:
        """Validate every non-empty row in batches of ``batch_size``.

        Args:
            rows: Rows to validate; empty rows are skipped
            progress: Called with ``(processed, total)`` after each batch
            metrics_callback: Receives one BatchMetrics per batch

        Returns:
            All results computed; partial when a fault interrupted the run
        """
        if self._in_flight:
            self._report(
                ValidationInProgressError("full-grid validation already in progress"),
                "validate_all_rows",
            )
            return []

        self._in_flight = True
        results: list[ValidationResult] = []
        try:
            targets = [row for row in rows if not row.is_empty]
            total = len(targets)
            self.logger.debug(f"validate_all_rows: rows={total} batch_size={self.batch_size}")
            for offset in range(0, total, self.batch_size):
                batch = targets[offset:offset + self.batch_size]
                start_time = time.time()
                batch_results = await asyncio.gather(*(self._validate_row_async(row) for row in batch))
                end_time = time.time()
                for row_results in batch_results:
                    results.extend(row_results)
                if metrics_callback is not None:
                    metrics_callback(
                        BatchMetrics(
                            batch_size=len(batch),
                            elapsed_seconds=end_time - start_time,
                            start_time=start_time,
                            end_time=end_time,
                        )
                    )
                if progress is not None:
                    progress(offset + len(batch), total)
        except Exception as e:
            self._report(e, "validate_all_rows")
        finally:
            self._in_flight = False
        return results

    @property
    def is_validating(self) -> bool:
        return self._in_flight
