from __future__ import annotations

from typing import Any

from .observable import Observable
from .value_types import ValueType, coerce_value

"""Cell model: one value slot of a row, keyed by its column name.

Edit lifecycle:
- ``start_editing()`` snapshots ``value`` into ``original_value``
- value writes while editing mark the cell dirty (trimmed comparison for text)
- ``commit()`` folds the value into the snapshot, ``cancel()`` rolls it back

``has_unsaved_changes`` is never true outside an edit session.
"""

__all__ = [
    "Cell",
    "values_equal",
]


def values_equal(a: Any, b: Any) -> bool:
    """Compare two cell values, ignoring surrounding whitespace on text."""
    if isinstance(a, str) and isinstance(b, str):
        return a.strip() == b.strip()
    return _same_value(a, b)


def _same_value(a: Any, b: Any) -> bool:
    if a is b:
        return True
    if type(a) is not type(b):
        return False
    try:
        return bool(a == b)
    except (TypeError, ValueError):
        return False


class Cell(Observable):
    """Single grid cell.

    Every mutating setter notifies observers with ``(cell, property_name)``.
    Property names used: ``value``, ``original_value``, ``is_editing``,
    ``has_unsaved_changes``, ``validation_errors``.
    """

    def __init__(
        self,
        column_name: str,
        value: Any = None,
        value_type: ValueType | str = ValueType.STRING,
    ) -> None:
        super().__init__()
        self._column_name = column_name
        self._value_type = ValueType.parse(value_type)
        self._value = value
        self._original_value = value
        self._is_editing = False
        self._has_unsaved_changes = False
        self._validation_errors: list[str] = []

    def __repr__(self) -> str:
        return f"Cell({self._column_name!r}, value={self._value!r})"

    @property
    def column_name(self) -> str:
        return self._column_name

    @property
    def value_type(self) -> ValueType:
        return self._value_type

    @property
    def value(self) -> Any:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        if _same_value(self._value, new_value):
            return
        if self._original_value is None and not self._is_editing:
            self._original_value = new_value
        self._value = new_value
        self._notify("value")
        self._refresh_unsaved()

    @property
    def original_value(self) -> Any:
        return self._original_value

    @property
    def is_editing(self) -> bool:
        return self._is_editing

    @property
    def has_unsaved_changes(self) -> bool:
        return self._has_unsaved_changes

    @property
    def validation_errors(self) -> list[str]:
        return list(self._validation_errors)

    @property
    def has_validation_error(self) -> bool:
        return bool(self._validation_errors)

    @property
    def validation_errors_text(self) -> str:
        return "; ".join(self._validation_errors)

    def _refresh_unsaved(self) -> None:
        dirty = self._is_editing and not values_equal(self._value, self._original_value)
        if dirty != self._has_unsaved_changes:
            self._has_unsaved_changes = dirty
            self._notify("has_unsaved_changes")

    def _set_editing(self, editing: bool) -> None:
        if editing != self._is_editing:
            self._is_editing = editing
            self._notify("is_editing")

    def start_editing(self) -> None:
        """Open an edit session, snapshotting the current value."""
        self._original_value = self._value
        self._notify("original_value")
        self._set_editing(True)
        self._refresh_unsaved()

    def commit(self) -> None:
        """Accept the edited value and close the edit session."""
        self._original_value = self._value
        self._notify("original_value")
        self._set_editing(False)
        self._refresh_unsaved()

    def cancel(self) -> None:
        """Restore the snapshot and close the edit session.

        A cell that is not being edited keeps its value. Errors are cleared
        when the rollback returns the cell to its pre-edit value.
        """
        was_dirty = self._has_unsaved_changes
        if self._is_editing and not _same_value(self._value, self._original_value):
            self._value = self._original_value
            self._notify("value")
        self._set_editing(False)
        self._refresh_unsaved()
        if was_dirty and not self._has_unsaved_changes:
            self.set_validation_errors([])

    def load_value(self, new_value: Any) -> None:
        """Set value and snapshot together; used by bulk loads."""
        self._original_value = new_value
        self._set_editing(False)
        if self._value is not new_value:
            self._value = new_value
            self._notify("value")
        self._refresh_unsaved()

    def set_validation_errors(self, errors: list[str]) -> None:
        if list(errors) == self._validation_errors:
            return
        self._validation_errors = list(errors)
        self._notify("validation_errors")

    def get_typed_value(self) -> Any:
        """Return the value converted to the declared type, ``None`` if impossible."""
        return coerce_value(self._value, self._value_type)
