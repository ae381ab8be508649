from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Any

import pandas as pd

from ..io.tabular import frame_from_rows, frame_to_csv, records_from_frame, to_python_value
from ..logging.error_log import ErrorLogBuffer
from ..models.cell import Cell
from ..models.column import Column, ensure_unique_names
from ..models.config_models import GridConfig, GridSettings, RuleConfig
from ..models.events import CellChanged, DataChanged, DataChangeType, EventChannel
from ..models.row import Row
from ..models.validation import ValidationResult, ValidationRule
from ..models.validation_summary import BatchMetrics
from .clipboard import deserialize, serialize
from .component import Component
from .navigation import NavigationEngine
from .rules import compile_rule
from .sorting import SortDirection, SortEngine
from .validation import ValidationEngine

"""Grid facade: owns columns and rows and coordinates the engines.

Flow:
1. ``initialize`` fixes the columns (unique names) and creates the row floor
2. value writes revalidate the touched cell in real time (unless disabled)
3. loads, pastes and removals run as bulk updates and validate afterwards
4. every engine fault reaches ``error_occurred`` (and the error log, if any)

Row counts follow ``GridSettings.min_row_count``: loads auto-expand to the
data plus a small margin of empty rows, and removal paths backfill empty rows
so the grid never drops below the floor.
"""

__all__ = [
    "DataGrid",
    "GridNotInitializedError",
    "HAS_VALIDATION_ERRORS",
]

# pseudo column for remove_rows_by_condition: tests the row's error flag
HAS_VALIDATION_ERRORS = "HasValidationErrors"

ProgressCallback = Callable[[int, int], None]


class GridNotInitializedError(RuntimeError):
    """Raised (and reported) when a data operation runs before ``initialize``."""


class DataGrid(Component):
    component_name = "grid"

    def __init__(
        self,
        settings: GridSettings | None = None,
        logger: logging.Logger | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        super().__init__(logger)
        self.settings = settings or GridSettings()
        self.columns: list[Column] = []
        self.rows: list[Row] = []
        self._initialized = False
        self._bulk_depth = 0
        self._row_subscriptions: dict[int, list[Callable[[], None]]] = {}

        self.validation = ValidationEngine(
            logger=self.logger.getChild("validation"), batch_size=self.settings.validation_batch_size
        )
        self.navigation = NavigationEngine(logger=self.logger.getChild("navigation"))
        self.sorter = SortEngine(logger=self.logger.getChild("sorting"))

        self.cell_changed: EventChannel[CellChanged] = EventChannel("cell_changed", log=self.logger)
        self.data_changed: EventChannel[DataChanged] = EventChannel("data_changed", log=self.logger)
        # engine faults are re-published on the grid's own channel
        for engine in (self.validation, self.navigation, self.sorter):
            engine.error_occurred.subscribe(self.error_occurred.emit)

        self.error_log = error_log
        if error_log is not None:
            self.error_occurred.subscribe(error_log)

    @classmethod
    def from_config(
        cls,
        config: GridConfig,
        logger: logging.Logger | None = None,
        error_log: ErrorLogBuffer | None = None,
        row_count: int | None = None,
    ) -> DataGrid:
        """Create and initialize a grid from a loaded GridConfig."""
        grid = cls(settings=config.settings, logger=logger, error_log=error_log)
        grid.initialize(config.columns, rules=config.rules, row_count=row_count)
        return grid

    # --- state -----------------------------------------------------------------
    @property
    def is_initialized(self) -> bool:
        return self._initialized

    @property
    def editable_columns(self) -> list[Column]:
        return [c for c in self.columns if not c.is_special]

    @property
    def data_rows(self) -> list[Row]:
        return [row for row in self.rows if not row.is_empty]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def data_row_count(self) -> int:
        return sum(1 for row in self.rows if not row.is_empty)

    @property
    def has_validation_errors(self) -> bool:
        return any(row.has_validation_errors for row in self.rows if not row.is_empty)

    def get_column(self, name: str) -> Column | None:
        for column in self.columns:
            if column.name == name:
                return column
        return None

    def get_row(self, index: int) -> Row | None:
        if 0 <= index < len(self.rows):
            return self.rows[index]
        return None

    def get_cell(self, row_index: int, column_name: str) -> Cell | None:
        row = self.get_row(row_index)
        return row.get_cell(column_name) if row is not None else None

    def set_value(self, row_index: int, column_name: str, value: Any) -> None:
        """Write a value through the row (triggers real-time validation)."""
        row = self.get_row(row_index)
        if row is not None:
            row.set_value(column_name, value)

    # --- lifecycle --------------------------------------------------------------
    def initialize(
        self,
        columns: Iterable[Column],
        rules: Iterable[ValidationRule | RuleConfig] | None = None,
        row_count: int | None = None,
    ) -> None:
        """Fix the column set, register rules and create the initial empty rows.

        Raises:
            ValueError: If ``columns`` is None
        """
        if columns is None:
            raise ValueError("columns are required")
        if self._initialized:
            self.logger.warning("grid already initialized; initialize() ignored")
            return

        self.columns[:] = ensure_unique_names(columns)
        for rule in rules or []:
            self.add_validation_rule(rule)

        count = max(self.settings.min_row_count, row_count or 0)
        self.rows[:] = [self._create_row() for _ in range(count)]
        self.navigation.initialize(self.rows, self.columns)
        self._initialized = True
        self.logger.info(
            f"grid initialized: columns={len(self.columns)} rows={count} rules={self.validation.total_rule_count}"
        )
        self.data_changed.emit(DataChanged(DataChangeType.INITIALIZED, affected_rows=count))

    def reset(self) -> None:
        """Drop rules, rows and columns; the grid becomes uninitialized."""
        self.validation.clear_rules()
        for row in self.rows:
            self._detach_row(row)
        self.rows.clear()
        self.columns.clear()
        self.navigation.reset()
        self._initialized = False
        self.logger.info("grid reset")
        self.data_changed.emit(DataChanged(DataChangeType.RESET))

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise GridNotInitializedError("grid must be initialized first")

    # --- rules -----------------------------------------------------------------
    def add_validation_rule(self, rule: ValidationRule | RuleConfig) -> None:
        if isinstance(rule, RuleConfig):
            rule = compile_rule(rule)
        self.validation.add_rule(rule)

    def remove_validation_rule(self, column_name: str, rule_name: str) -> bool:
        return self.validation.remove_rule(column_name, rule_name)

    def clear_validation_rules(self, column_name: str | None = None) -> None:
        self.validation.clear_rules(column_name)

    # --- row plumbing ----------------------------------------------------------
    def _create_row(self) -> Row:
        row = Row.for_columns(self.columns)
        self._row_subscriptions[id(row)] = [
            cell.subscribe(partial(self._on_cell_property_changed, row)) for cell in row.data_cells()
        ]
        return row

    def _detach_row(self, row: Row) -> None:
        for unsubscribe in self._row_subscriptions.pop(id(row), []):
            unsubscribe()

    def _empty_rows_needed(self, data_row_count: int) -> int:
        return max(self.settings.auto_expand_margin, self.settings.min_row_count - data_row_count)

    def _backfill(self) -> int:
        """Append empty rows until the removal-path floor is met."""
        current_empty = sum(1 for row in self.rows if row.is_empty)
        needed = self._empty_rows_needed(self.data_row_count)
        added = 0
        for _ in range(current_empty, needed):
            self.rows.append(self._create_row())
            added += 1
        return added

    @contextmanager
    def bulk_update(self) -> Iterator[None]:
        """Suspend real-time validation and cell events for a block of writes."""
        self._bulk_depth += 1
        try:
            yield
        finally:
            self._bulk_depth -= 1

    def _on_cell_property_changed(self, row: Row, cell: Cell, property_name: str) -> None:
        if property_name != "value" or self._bulk_depth > 0:
            return
        try:
            if self.settings.realtime_validation:
                if row.is_empty:
                    row.clear_validation_errors()
                else:
                    self.validation.validate_cell(cell, row)
                row.update_validation_status()
            row_index = self.rows.index(row) if row in self.rows else -1
            self.cell_changed.emit(
                CellChanged(row=row, cell=cell, row_index=row_index, column_name=cell.column_name, value=cell.value)
            )
        except Exception as e:
            self._report(e, "on_cell_value_changed")

    # --- loading / export ---------------------------------------------------
    def load_records(self, records: Iterable[dict[str, Any]] | None, validate: bool = True) -> int:
        """Replace the rows with ``records`` (column name -> value).

        Unknown keys are ignored, missing keys leave the cell empty. The grid
        auto-expands to the loaded data plus a margin of empty rows, never
        below ``min_row_count``.

        Returns:
            Number of loaded data rows (0 on failure)
        """
        try:
            self._require_initialized()
            editable = self.editable_columns
            with self.bulk_update():
                new_rows: list[Row] = []
                for record in records or []:
                    row = self._create_row()
                    for column in editable:
                        if column.name in record:
                            cell = row.get_cell(column.name)
                            if cell is not None:
                                cell.load_value(to_python_value(record[column.name]))
                    new_rows.append(row)
                loaded = len(new_rows)
                target = max(self.settings.min_row_count, loaded + self.settings.auto_expand_margin)
                while len(new_rows) < target:
                    new_rows.append(self._create_row())
                for row in self.rows:
                    self._detach_row(row)
                self.rows[:] = new_rows

            if validate:
                for row in self.rows[:loaded]:
                    if not row.is_empty:
                        self.validation.validate_row(row)
            self.navigation.refresh()
            invalid = sum(1 for row in self.rows[:loaded] if not row.is_empty and row.has_validation_errors)
            self.logger.info(f"data loaded: rows={loaded} total_rows={len(self.rows)} invalid={invalid}")
            self.data_changed.emit(DataChanged(DataChangeType.LOADED, affected_rows=loaded))
            return loaded
        except Exception as e:
            self._report(e, "load_records")
            return 0

    def load_dataframe(self, df: pd.DataFrame, validate: bool = True) -> int:
        try:
            records = records_from_frame(df) if df is not None else []
        except Exception as e:
            self._report(e, "load_dataframe")
            return 0
        return self.load_records(records, validate=validate)

    def export_dataframe(self, include_valid_alerts: bool = False) -> pd.DataFrame:
        """Non-empty rows as a frame of typed values (``pd.NA`` = missing)."""
        try:
            return frame_from_rows(self.rows, self.columns, include_valid_alerts=include_valid_alerts)
        except Exception as e:
            self._report(e, "export_dataframe")
            return pd.DataFrame(columns=[c.name for c in self.editable_columns])

    def export_records(self, include_valid_alerts: bool = False) -> list[dict[str, Any]]:
        return records_from_frame(self.export_dataframe(include_valid_alerts=include_valid_alerts))

    def export_csv(self, include_valid_alerts: bool = False, path: Path | None = None) -> str:
        try:
            return frame_to_csv(self.export_dataframe(include_valid_alerts=include_valid_alerts), path)
        except Exception as e:
            self._report(e, "export_csv")
            return ""

    # --- validation ----------------------------------------------------------
    def validate_row(self, row: Row) -> list[ValidationResult]:
        return self.validation.validate_row(row)

    async def validate_all_rows(
        self,
        progress: ProgressCallback | None = None,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> list[ValidationResult]:
        return await self.validation.validate_all_rows(
            self.rows, progress=progress, metrics_callback=metrics_callback
        )

    async def validate_all(
        self,
        progress: ProgressCallback | None = None,
        metrics_callback: Callable[[BatchMetrics], None] | None = None,
    ) -> bool:
        """Validate every data row; True when no row carries errors."""
        results = await self.validate_all_rows(progress=progress, metrics_callback=metrics_callback)
        return all(r.is_valid for r in results) and not self.has_validation_errors

    # --- clipboard -------------------------------------------------------------
    async def paste(self, text: str | None) -> int:
        """Write clipboard text at the cursor and revalidate the grid.

        Rows are appended as needed; columns beyond the editable range are
        dropped.

        Returns:
            Number of pasted rows (0 when nothing was written)
        """
        try:
            self._require_initialized()
            if not text:
                return 0
            block = deserialize(text)
            if not block:
                return 0
            start_row = self.navigation.current_row_index
            start_column = self.navigation.current_column_index
            editable = self.editable_columns
            if start_row < 0 or start_column < 0 or start_column >= len(editable):
                return 0

            touched: list[Row] = []
            with self.bulk_update():
                while len(self.rows) < start_row + len(block):
                    self.rows.append(self._create_row())
                for i, values in enumerate(block):
                    row = self.rows[start_row + i]
                    for j, value in enumerate(values):
                        column_index = start_column + j
                        if column_index >= len(editable):
                            break
                        row.set_value(editable[column_index].name, value)
                    touched.append(row)

            for row in touched:
                if row.is_empty:
                    row.clear_validation_errors()
                    row.update_validation_status()
            await self.validation.validate_all_rows(self.rows)
            self.navigation.refresh()
            self.logger.debug(f"pasted {len(block)} row(s) at ({start_row},{start_column})")
            self.data_changed.emit(DataChanged(DataChangeType.PASTED, affected_rows=len(block)))
            return len(block)
        except Exception as e:
            self._report(e, "paste")
            return 0

    def copy_current_cell(self) -> str:
        cell = self.navigation.current_cell
        if cell is None or cell.value is None:
            return ""
        return str(cell.value)

    def copy_range(self, start_row: int, start_column: int, end_row: int, end_column: int) -> str:
        """Serialize the inclusive block of data cells (indices over editable columns)."""
        try:
            editable = self.editable_columns
            row_from, row_to = sorted((start_row, end_row))
            column_from, column_to = sorted((start_column, end_column))
            row_from, column_from = max(row_from, 0), max(column_from, 0)
            row_to = min(row_to, len(self.rows) - 1)
            column_to = min(column_to, len(editable) - 1)
            names = [c.name for c in editable[column_from:column_to + 1]]
            block = [
                [self.rows[i].get_value(name) for name in names]
                for i in range(row_from, row_to + 1)
            ]
            return serialize(block, self.settings.line_separator)
        except Exception as e:
            self._report(e, "copy_range")
            return ""

    # --- row removal ----------------------------------------------------------
    def delete_row(self, row: Row | int) -> bool:
        """Clear a row and move it behind the data rows."""
        try:
            target = self.get_row(row) if isinstance(row, int) else row
            if target is None or target not in self.rows:
                return False
            with self.bulk_update():
                target.clear()
                self.rows[:] = [r for r in self.rows if not r.is_empty] + [r for r in self.rows if r.is_empty]
            self.navigation.refresh()
            self.logger.debug("row deleted")
            self.data_changed.emit(DataChanged(DataChangeType.ROW_DELETED, affected_rows=1))
            return True
        except Exception as e:
            self._report(e, "delete_row")
            return False

    def clear_all_data(self) -> None:
        try:
            with self.bulk_update():
                for row in self.rows:
                    row.clear()
            self.logger.info("all data cleared")
            self.data_changed.emit(DataChanged(DataChangeType.CLEARED, affected_rows=len(self.rows)))
        except Exception as e:
            self._report(e, "clear_all_data")

    def _remove_rows(self, doomed: list[Row], operation: str) -> int:
        if doomed:
            doomed_ids = {id(r) for r in doomed}
            for row in doomed:
                self._detach_row(row)
            self.rows[:] = [r for r in self.rows if id(r) not in doomed_ids]
        added = self._backfill()
        self.navigation.refresh()
        self.logger.info(f"{operation}: removed={len(doomed)} backfilled={added} total_rows={len(self.rows)}")
        self.data_changed.emit(DataChanged(DataChangeType.ROWS_REMOVED, affected_rows=len(doomed)))
        return len(doomed)

    def remove_empty_rows(self) -> int:
        """Drop all empty rows, then backfill to the floor. Returns rows dropped."""
        try:
            doomed = [row for row in self.rows if row.is_empty]
            return self._remove_rows(doomed, "remove_empty_rows")
        except Exception as e:
            self._report(e, "remove_empty_rows")
            return 0

    def remove_rows_by_condition(self, column_name: str, predicate: Callable[[Any], bool]) -> int:
        """Remove data rows whose ``column_name`` value satisfies ``predicate``.

        The pseudo column ``HasValidationErrors`` hands the row's error flag
        to the predicate instead of a cell value.
        """
        try:
            doomed: list[Row] = []
            for row in self.data_rows:
                if column_name == HAS_VALIDATION_ERRORS:
                    if predicate(row.has_validation_errors):
                        doomed.append(row)
                    continue
                cell = row.get_cell(column_name)
                if cell is not None and predicate(cell.value):
                    doomed.append(row)
            return self._remove_rows(doomed, "remove_rows_by_condition")
        except Exception as e:
            self._report(e, "remove_rows_by_condition")
            return 0

    def remove_rows_by_custom_validation(self, rules: Iterable[ValidationRule]) -> int:
        """Remove data rows failing any of ``rules`` (a raising predicate fails)."""
        try:
            rule_list = list(rules or [])
            if not rule_list:
                return 0
            doomed: list[Row] = []
            for row in self.data_rows:
                for rule in rule_list:
                    cell = row.get_cell(rule.column_name)
                    if cell is None or not rule.should_apply(row):
                        continue
                    try:
                        ok = rule.validate(cell.value, row)
                    except Exception:
                        ok = False
                    if not ok:
                        doomed.append(row)
                        break
            return self._remove_rows(doomed, "remove_rows_by_custom_validation")
        except Exception as e:
            self._report(e, "remove_rows_by_custom_validation")
            return 0

    # --- sorting ---------------------------------------------------------------
    def sort(self, column_name: str, direction: SortDirection | str = SortDirection.ASCENDING) -> bool:
        """Reorder rows in place by a sortable data column; empty rows stay last."""
        column = self.get_column(column_name)
        if column is None or column.is_special or not column.sortable:
            self.logger.warning(f"sort refused: column={column_name} is unknown, special or not sortable")
            return False
        ordered = self.sorter.sort(self.rows, column_name, direction)
        self.rows[:] = ordered
        self.navigation.refresh()
        self.data_changed.emit(DataChanged(DataChangeType.SORTED, affected_rows=self.data_row_count))
        return True
