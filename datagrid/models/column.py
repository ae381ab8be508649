from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, replace

from .value_types import ValueType

"""Column model for the grid engine.

Columns are created once from a caller-supplied list when the grid is
initialized. Only the cosmetic width bounds change afterwards.

Two reserved names, ``DeleteAction`` and ``ValidAlerts``, mark special
columns: they take part in layout but never in validation, export,
sorting keys or emptiness checks.
"""

__all__ = [
    "Column",
    "DELETE_ACTION",
    "VALID_ALERTS",
    "SPECIAL_COLUMNS",
    "is_special_column",
    "ensure_unique_names",
]

DELETE_ACTION = "DeleteAction"
VALID_ALERTS = "ValidAlerts"
SPECIAL_COLUMNS = frozenset({DELETE_ACTION, VALID_ALERTS})


def is_special_column(name: str | None) -> bool:
    return name in SPECIAL_COLUMNS


@dataclass
class Column:
    """Named, typed grid column.

    Attributes:
        name: Unique column name (cell key inside every row)
        value_type: Declared type used for coercion and sorting
        min_width: Minimum display width
        max_width: Maximum display width
        resizable: Whether the presentation layer may resize it
        sortable: Whether the sort engine may order rows by it
        read_only: Whether the presentation layer allows editing
    """
    name: str
    value_type: ValueType = ValueType.STRING
    min_width: float = 80
    max_width: float = 300
    resizable: bool = True
    sortable: bool = True
    read_only: bool = False

    def __post_init__(self) -> None:
        self.value_type = ValueType.parse(self.value_type)

    @property
    def is_special(self) -> bool:
        return is_special_column(self.name)

    def resize(self, min_width: float, max_width: float) -> None:
        """Change the display width bounds (the only mutable part of a column)."""
        if min_width < 0 or max_width < min_width:
            raise ValueError(f"invalid width bounds for column '{self.name}': {min_width}..{max_width}")
        self.min_width = min_width
        self.max_width = max_width

    @classmethod
    def delete_action(cls) -> Column:
        return cls(
            name=DELETE_ACTION,
            value_type=ValueType.OBJECT,
            min_width=50,
            max_width=50,
            resizable=False,
            sortable=False,
            read_only=True,
        )

    @classmethod
    def valid_alerts(cls) -> Column:
        return cls(
            name=VALID_ALERTS,
            value_type=ValueType.STRING,
            min_width=150,
            max_width=400,
            resizable=True,
            sortable=False,
            read_only=True,
        )


def _unique_name(base_name: str, existing: set[str]) -> str:
    base = base_name if base_name and base_name.strip() else "Column"
    candidate = base
    counter = 1
    while candidate in existing:
        candidate = f"{base}_{counter}"
        counter += 1
    return candidate


def ensure_unique_names(columns: Iterable[Column]) -> list[Column]:
    """Return copies of the columns with blank names filled and clashes suffixed.

    ``["Name", "Name", ""]`` becomes ``["Name", "Name_1", "Column"]``.
    """
    processed: list[Column] = []
    existing: set[str] = set()
    for column in columns:
        name = _unique_name(column.name, existing)
        processed.append(replace(column, name=name))
        existing.add(name)
    return processed
