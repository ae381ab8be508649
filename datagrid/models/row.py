from __future__ import annotations

from collections.abc import Callable, Iterable, Iterator
from typing import Any

from .cell import Cell
from .column import VALID_ALERTS, Column, is_special_column
from .observable import Observable

"""Row model: an insertion-ordered mapping of column name to Cell.

Aggregate state (``is_empty``, ``has_validation_errors``) is recomputed
synchronously from the owned cells, so callers never observe a stale value.
"""

__all__ = [
    "Row",
    "is_blank",
]


def is_blank(value: Any) -> bool:
    """True for ``None`` and for values whose text is empty after trimming."""
    return value is None or str(value).strip() == ""


class Row(Observable):
    """One grid row. Notifies ``is_empty`` and ``has_validation_errors`` changes."""

    def __init__(self) -> None:
        super().__init__()
        self._cells: dict[str, Cell] = {}
        self._unsubscribers: dict[str, Callable[[], None]] = {}
        self._is_empty = True

    def __repr__(self) -> str:
        values = {name: cell.value for name, cell in self._cells.items() if not is_special_column(name)}
        return f"Row({values!r})"

    @classmethod
    def for_columns(cls, columns: Iterable[Column]) -> Row:
        """Create an empty row with one cell per column (special columns included)."""
        row = cls()
        for column in columns:
            initial = "" if column.name == VALID_ALERTS else None
            row.add_cell(column.name, Cell(column.name, initial, column.value_type))
        return row

    # --- cell access -------------------------------------------------
    @property
    def cells(self) -> dict[str, Cell]:
        return dict(self._cells)

    @property
    def column_names(self) -> list[str]:
        return list(self._cells)

    def data_cells(self) -> Iterator[Cell]:
        """Iterate the non-special cells in column order."""
        for name, cell in self._cells.items():
            if not is_special_column(name):
                yield cell

    def add_cell(self, column_name: str, cell: Cell) -> None:
        """Attach a cell under ``column_name``, replacing any previous one."""
        previous = self._unsubscribers.pop(column_name, None)
        if previous is not None:
            previous()
        self._cells[column_name] = cell
        self._unsubscribers[column_name] = cell.subscribe(self._on_cell_changed)
        self._refresh_empty()

    def get_cell(self, column_name: str) -> Cell | None:
        return self._cells.get(column_name)

    def get_value(self, column_name: str) -> Any:
        cell = self._cells.get(column_name)
        return cell.value if cell is not None else None

    def set_value(self, column_name: str, value: Any) -> None:
        """Write through to the named cell; unknown names are ignored."""
        cell = self._cells.get(column_name)
        if cell is not None:
            cell.value = value

    # --- aggregate state ---------------------------------------------
    @property
    def is_empty(self) -> bool:
        return self._is_empty

    @property
    def has_validation_errors(self) -> bool:
        return any(cell.has_validation_error for cell in self.data_cells())

    @property
    def validation_errors_text(self) -> str:
        parts = [
            f"{cell.column_name}: {cell.validation_errors_text}"
            for cell in self.data_cells()
            if cell.has_validation_error
        ]
        return "; ".join(parts)

    def _compute_empty(self) -> bool:
        return all(is_blank(cell.value) for cell in self.data_cells())

    def _refresh_empty(self) -> None:
        empty = self._compute_empty()
        if empty != self._is_empty:
            self._is_empty = empty
            self._notify("is_empty")

    def _on_cell_changed(self, cell: Cell, property_name: str) -> None:
        if is_special_column(cell.column_name):
            return
        if property_name == "value":
            self._refresh_empty()
        elif property_name == "validation_errors":
            self._notify("has_validation_errors")

    def update_validation_status(self) -> None:
        """Re-announce aggregate state and project errors into ``ValidAlerts``."""
        self._refresh_empty()
        alerts = self._cells.get(VALID_ALERTS)
        if alerts is not None:
            alerts.value = "" if self._is_empty else self.validation_errors_text
        self._notify("has_validation_errors")
        self._notify("validation_errors_text")

    def clear_validation_errors(self) -> None:
        for cell in self.data_cells():
            cell.set_validation_errors([])

    def clear(self) -> None:
        """Blank every non-special cell and drop all validation errors."""
        for cell in self.data_cells():
            cell.load_value(None)
            cell.set_validation_errors([])
        self.update_validation_status()

    def to_dict(self, include_special: bool = False) -> dict[str, Any]:
        return {
            name: cell.value
            for name, cell in self._cells.items()
            if include_special or not is_special_column(name)
        }
