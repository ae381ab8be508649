from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Any

import numpy as np
import pandas as pd

from ..models.column import VALID_ALERTS, Column
from ..models.row import Row

"""Tabular import/export adapters (pandas).

Import: a CSV or XLSX file becomes a DataFrame, and a DataFrame becomes a
list of plain records (missing markers -> None, numpy scalars -> Python).
Export: grid rows become a DataFrame limited to the data columns in
declaration order, holding each cell's typed value with ``pd.NA`` for
missing ones.
"""

__all__ = [
    "TabularFormatError",
    "read_table_file",
    "records_from_frame",
    "to_python_value",
    "frame_from_rows",
    "frame_to_csv",
    "SUPPORTED_SUFFIXES",
]

SUPPORTED_SUFFIXES = (".csv", ".xlsx")


class TabularFormatError(Exception):
    """Raised when an input file has an unsupported format."""


def read_table_file(path: Path, sheet: str | None = None) -> pd.DataFrame:
    """Read a CSV or XLSX file with its first row as header.

    Parameters
    ----------
    path: input file
    sheet: sheet name for XLSX (None = first sheet)
    """
    suffix = path.suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise TabularFormatError(f"unsupported file type: {path.name} (expected {', '.join(SUPPORTED_SUFFIXES)})")
    if not path.exists():
        raise FileNotFoundError(f"input file not found: {path}")
    if suffix == ".csv":
        df = pd.read_csv(path)
    else:
        df = pd.read_excel(path, sheet_name=sheet if sheet is not None else 0)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def to_python_value(value: Any) -> Any:
    """Map pandas/numpy missing markers to None and numpy scalars to Python scalars."""
    if value is None:
        return None
    if isinstance(value, (list, tuple, dict, set)):
        return value
    if pd.isna(value):
        return None
    if isinstance(value, pd.Timestamp):
        return value.to_pydatetime()
    if isinstance(value, np.generic):
        return value.item()
    return value


def records_from_frame(df: pd.DataFrame) -> list[dict[str, Any]]:
    """Convert a DataFrame to records with plain Python values."""
    columns = [str(c) for c in df.columns]
    records: list[dict[str, Any]] = []
    for raw in df.itertuples(index=False, name=None):
        records.append({col: to_python_value(val) for col, val in zip(columns, raw, strict=False)})
    return records


def frame_from_rows(
    rows: Iterable[Row], columns: Sequence[Column], include_valid_alerts: bool = False
) -> pd.DataFrame:
    """Build the export frame: non-empty rows, data columns, typed values."""
    names = [c.name for c in columns if not c.is_special]
    has_alerts = include_valid_alerts and any(c.name == VALID_ALERTS for c in columns)
    if has_alerts:
        names.append(VALID_ALERTS)

    data: list[list[Any]] = []
    for row in rows:
        if row.is_empty:
            continue
        values: list[Any] = []
        for name in names:
            cell = row.get_cell(name)
            if cell is None:
                values.append(pd.NA)
                continue
            if name == VALID_ALERTS:
                typed = cell.value if cell.value else None
            else:
                typed = cell.get_typed_value()
            values.append(pd.NA if typed is None else typed)
        data.append(values)
    return pd.DataFrame(data, columns=names, dtype=object)


def frame_to_csv(df: pd.DataFrame, path: Path | None = None) -> str:
    """Render the frame as CSV (no index); also writes it when ``path`` is given."""
    text = df.to_csv(index=False)
    if path is not None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return text
