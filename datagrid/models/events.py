from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from .cell import Cell
    from .row import Row
    from .validation import ValidationResult

"""Event channels and payloads exposed by the engines and the grid facade."""

__all__ = [
    "EventChannel",
    "NavigationChanged",
    "RowValidationCompleted",
    "CellChanged",
    "DataChangeType",
    "DataChanged",
]

T = TypeVar("T")

logger = logging.getLogger(__name__)


class EventChannel(Generic[T]):
    """Callback list; a raising handler is logged and the rest still run."""

    def __init__(self, name: str, *, log: logging.Logger | None = None) -> None:
        self.name = name
        self._handlers: list[Callable[[T], Any]] = []
        self._log = log or logger

    def subscribe(self, handler: Callable[[T], Any]) -> Callable[[], None]:
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def clear(self) -> None:
        self._handlers.clear()

    def __len__(self) -> int:
        return len(self._handlers)

    def emit(self, payload: T) -> None:
        for handler in list(self._handlers):
            try:
                handler(payload)
            except Exception as e:
                self._log.error(f"event handler failed: event={self.name} error={e}")


@dataclass(frozen=True)
class NavigationChanged:
    old_row_index: int
    old_column_index: int
    old_cell: Cell | None
    new_row_index: int
    new_column_index: int
    new_cell: Cell | None


@dataclass(frozen=True)
class RowValidationCompleted:
    row: Row
    results: list[ValidationResult] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return all(r.is_valid for r in self.results)


@dataclass(frozen=True)
class CellChanged:
    row: Row
    cell: Cell
    row_index: int
    column_name: str
    value: Any


class DataChangeType(Enum):
    INITIALIZED = "initialized"
    LOADED = "loaded"
    PASTED = "pasted"
    ROW_DELETED = "row_deleted"
    ROWS_REMOVED = "rows_removed"
    CLEARED = "cleared"
    SORTED = "sorted"
    RESET = "reset"


@dataclass(frozen=True)
class DataChanged:
    change_type: DataChangeType
    affected_rows: int = 0
