from __future__ import annotations

import logging
from collections.abc import Callable

from ..models.cell import Cell
from ..models.column import Column
from ..models.events import EventChannel, NavigationChanged
from ..models.row import Row
from .component import Component

"""Cursor state machine over rows x editable columns.

The engine keeps references to the grid's row and column lists, so in-place
mutations (sort, paste, removals) are seen immediately; ``refresh()``
re-clamps the cursor afterwards. Editable columns are the non-special
columns in declaration order.

States: uninitialized ``(-1, -1)`` and positioned. Cell moves wrap across
row ends, and row moves wrap circularly over the whole grid. A move whose
target equals the current position emits no event. Faults are reported
through ``error_occurred`` and leave the position unchanged.
"""

__all__ = [
    "NavigationEngine",
    "UNSET",
]

UNSET = -1


class NavigationEngine(Component):
    component_name = "navigation"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        super().__init__(logger)
        self._rows: list[Row] = []
        self._columns: list[Column] = []
        self._row_index = UNSET
        self._column_index = UNSET
        self.navigation_changed: EventChannel[NavigationChanged] = EventChannel(
            "navigation_changed", log=self.logger
        )

    # --- state -----------------------------------------------------------
    @property
    def current_row_index(self) -> int:
        return self._row_index

    @property
    def current_column_index(self) -> int:
        return self._column_index

    @property
    def is_positioned(self) -> bool:
        return self._row_index != UNSET and self._column_index != UNSET

    @property
    def editable_columns(self) -> list[Column]:
        return [c for c in self._columns if not c.is_special]

    @property
    def row_count(self) -> int:
        return len(self._rows)

    @property
    def current_row(self) -> Row | None:
        if not self.is_positioned or self._row_index >= len(self._rows):
            return None
        return self._rows[self._row_index]

    @property
    def current_column(self) -> Column | None:
        editable = self.editable_columns
        if not self.is_positioned or self._column_index >= len(editable):
            return None
        return editable[self._column_index]

    @property
    def current_cell(self) -> Cell | None:
        return self._resolve_cell(self._row_index, self._column_index)

    def _resolve_cell(self, row_index: int, column_index: int) -> Cell | None:
        if row_index == UNSET or column_index == UNSET:
            return None
        editable = self.editable_columns
        if row_index >= len(self._rows) or column_index >= len(editable):
            return None
        return self._rows[row_index].get_cell(editable[column_index].name)

    def _set_position(self, row_index: int, column_index: int, *, force: bool = False) -> None:
        old_cell = self.current_cell
        new_cell = self._resolve_cell(row_index, column_index)
        if (row_index, column_index) == (self._row_index, self._column_index) and (
            not force or old_cell is new_cell
        ):
            return
        event = NavigationChanged(
            old_row_index=self._row_index,
            old_column_index=self._column_index,
            old_cell=old_cell,
            new_row_index=row_index,
            new_column_index=column_index,
            new_cell=new_cell,
        )
        self._row_index = row_index
        self._column_index = column_index
        self.logger.debug(f"navigation: ({event.old_row_index},{event.old_column_index}) -> ({row_index},{column_index})")
        self.navigation_changed.emit(event)

    def _guarded(self, operation: str, move: Callable[[], bool]) -> bool:
        try:
            return move()
        except Exception as e:
            self._report(e, operation)
            return False

    # --- transitions -------------------------------------------------------
    def initialize(self, rows: list[Row], columns: list[Column]) -> None:
        """Attach to the grid's lists and position at (0, 0) when possible."""
        if rows is None or columns is None:
            raise ValueError("rows and columns are required")
        self._set_position(UNSET, UNSET)
        self._rows = rows
        self._columns = columns
        if rows and self.editable_columns:
            self._set_position(0, 0)

    def reset(self) -> None:
        self._set_position(UNSET, UNSET)
        self._rows = []
        self._columns = []

    def refresh(self) -> None:
        """Re-clamp the cursor after the row or column lists changed in place."""

        def clamp() -> bool:
            editable_count = len(self.editable_columns)
            if not self._rows or editable_count == 0:
                self._set_position(UNSET, UNSET)
                return True
            if not self.is_positioned:
                return True
            row_index = min(self._row_index, len(self._rows) - 1)
            column_index = min(self._column_index, editable_count - 1)
            self._set_position(row_index, column_index, force=True)
            return True

        self._guarded("refresh", clamp)

    def move_to_cell(self, row_index: int, column_index: int) -> bool:
        """Position at the given cell; out-of-range targets are ignored (False)."""

        def move() -> bool:
            if not (0 <= row_index < len(self._rows)):
                return False
            if not (0 <= column_index < len(self.editable_columns)):
                return False
            self._set_position(row_index, column_index)
            return True

        return self._guarded("move_to_cell", move)

    def move_to_next_cell(self) -> bool:
        def move() -> bool:
            row_count, column_count = len(self._rows), len(self.editable_columns)
            if row_count == 0 or column_count == 0:
                return False
            if not self.is_positioned:
                self._set_position(0, 0)
                return True
            row_index, column_index = self._row_index, self._column_index + 1
            if column_index >= column_count:
                column_index = 0
                row_index = (row_index + 1) % row_count
            self._set_position(row_index, column_index)
            return True

        return self._guarded("move_to_next_cell", move)

    def move_to_previous_cell(self) -> bool:
        def move() -> bool:
            row_count, column_count = len(self._rows), len(self.editable_columns)
            if row_count == 0 or column_count == 0:
                return False
            if not self.is_positioned:
                self._set_position(row_count - 1, column_count - 1)
                return True
            row_index, column_index = self._row_index, self._column_index - 1
            if column_index < 0:
                column_index = column_count - 1
                row_index = (row_index - 1) % row_count
            self._set_position(row_index, column_index)
            return True

        return self._guarded("move_to_previous_cell", move)

    def move_to_next_row(self) -> bool:
        def move() -> bool:
            row_count = len(self._rows)
            if row_count == 0 or not self.editable_columns:
                return False
            if not self.is_positioned:
                self._set_position(0, 0)
                return True
            self._set_position((self._row_index + 1) % row_count, self._column_index)
            return True

        return self._guarded("move_to_next_row", move)

    def move_to_previous_row(self) -> bool:
        def move() -> bool:
            row_count = len(self._rows)
            if row_count == 0 or not self.editable_columns:
                return False
            if not self.is_positioned:
                self._set_position(row_count - 1, 0)
                return True
            self._set_position((self._row_index - 1) % row_count, self._column_index)
            return True

        return self._guarded("move_to_previous_row", move)
