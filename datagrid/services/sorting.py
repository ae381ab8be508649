from __future__ import annotations

import logging
import math
import sys
from collections.abc import Sequence
from datetime import datetime
from enum import Enum
from typing import Any

import pandas as pd

from ..models.row import Row
from ..models.value_types import (
    DECIMAL_MIN,
    INT32_MIN,
    INT64_MIN,
    ValueType,
    matches_type,
    normalize_datetime,
    parse_text,
    text_for_type,
)
from .component import Component

"""Type-aware row sorting.

Only non-empty rows are ordered; empty rows always follow them in their
original order, whatever the direction. The sort key of a cell is its value
when it already has the column's declared type, otherwise the trimmed text
parsed as that type. Blank or unparsable values resolve to the type's sort
floor so that missing data gathers at one end. ``sorted`` is stable, also
with ``reverse=True``, so equal keys keep their relative order.
"""

__all__ = [
    "SortDirection",
    "SortEngine",
    "SORT_FLOORS",
    "sort_floor",
    "sort_key",
]


class SortDirection(Enum):
    ASCENDING = "ascending"
    DESCENDING = "descending"

    @classmethod
    def parse(cls, raw: SortDirection | str) -> SortDirection:
        if isinstance(raw, SortDirection):
            return raw
        key = str(raw).strip().lower()
        if key in ("asc", "ascending"):
            return cls.ASCENDING
        if key in ("desc", "descending"):
            return cls.DESCENDING
        raise ValueError(f"unknown sort direction: {raw!r}")


SORT_FLOORS: dict[ValueType, Any] = {
    ValueType.STRING: "",
    ValueType.OBJECT: "",
    ValueType.INTEGER: INT32_MIN,
    ValueType.LONG: INT64_MIN,
    ValueType.DECIMAL: DECIMAL_MIN,
    ValueType.FLOAT: -sys.float_info.max,
    ValueType.BOOLEAN: False,
    ValueType.DATETIME: datetime.min,
}


def sort_floor(value_type: ValueType) -> Any:
    return SORT_FLOORS[value_type]


def sort_key(value: Any, value_type: ValueType) -> Any:
    """Resolve the comparison key of one cell value."""
    floor = SORT_FLOORS[value_type]
    if value is None or value is pd.NaT:
        return floor
    if value_type in (ValueType.STRING, ValueType.OBJECT):
        return value.strip() if isinstance(value, str) else str(value).strip()
    if matches_type(value, value_type):
        if value_type is ValueType.DATETIME:
            return normalize_datetime(value)
        if value_type is ValueType.FLOAT and math.isnan(value):
            return floor
        if value_type is ValueType.DECIMAL and not value.is_finite():
            return floor
        return value
    text = text_for_type(value, value_type)
    if not text:
        return floor
    try:
        return parse_text(text, value_type)
    except ValueError:
        return floor


class SortEngine(Component):
    component_name = "sorting"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        super().__init__(logger)

    @staticmethod
    def _value_type_for(rows: Sequence[Row], column_name: str) -> ValueType:
        for row in rows:
            cell = row.get_cell(column_name)
            if cell is not None:
                return cell.value_type
        return ValueType.STRING

    def sort(
        self,
        rows: Sequence[Row],
        column_name: str,
        direction: SortDirection | str = SortDirection.ASCENDING,
    ) -> list[Row]:
        """Return the rows ordered by ``column_name``; empty rows last.

        On failure the fault is reported and the original order is returned.
        """
        try:
            direction = SortDirection.parse(direction)
            data_rows = [row for row in rows if not row.is_empty]
            empty_rows = [row for row in rows if row.is_empty]
            value_type = self._value_type_for(rows, column_name)
            ordered = sorted(
                data_rows,
                key=lambda row: sort_key(row.get_value(column_name), value_type),
                reverse=direction is SortDirection.DESCENDING,
            )
            self.logger.debug(
                f"sort: column={column_name} type={value_type.value} direction={direction.value} "
                f"rows={len(data_rows)} empty={len(empty_rows)}"
            )
            return ordered + empty_rows
        except Exception as e:
            self._report(e, "sort")
            return list(rows)
