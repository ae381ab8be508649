from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

"""Tab-delimited clipboard codec (spreadsheet copy/paste format).

Cells are separated by a horizontal tab and rows by a line separator. The
codec never raises: clipboard text is untrusted, so decoding degrades to a
1x1 grid holding the raw text and encoding degrades to an empty string.
"""

__all__ = [
    "serialize",
    "deserialize",
    "CELL_SEPARATOR",
]

CELL_SEPARATOR = "\t"

logger = logging.getLogger(__name__)


def _cell_text(value: Any) -> str:
    return "" if value is None else str(value)


def serialize(grid: Sequence[Sequence[Any]] | None, line_separator: str = "\n") -> str:
    """Join cells with tabs and rows with ``line_separator``; ``None`` cells become ``""``."""
    if not grid:
        return ""
    try:
        return line_separator.join(CELL_SEPARATOR.join(_cell_text(v) for v in row) for row in grid)
    except Exception as e:
        logger.warning(f"clipboard serialize failed: {e}")
        return ""


def deserialize(text: str | None) -> list[list[str]]:
    """Parse clipboard text into a rectangular grid.

    Line endings are normalized and trailing blank lines dropped. Ragged rows
    are padded with ``""`` to the widest line. A single line without a tab is
    a 1x1 grid holding the line verbatim.
    """
    if not text:
        return []
    try:
        lines = text.replace("\r\n", "\n").replace("\r", "\n").split("\n")
        while lines and lines[-1] == "":
            lines.pop()
        if not lines:
            return []
        if len(lines) == 1 and CELL_SEPARATOR not in lines[0]:
            return [[lines[0]]]
        split_lines = [line.split(CELL_SEPARATOR) for line in lines]
        width = max(len(cells) for cells in split_lines)
        return [cells + [""] * (width - len(cells)) for cells in split_lines]
    except Exception as e:
        logger.warning(f"clipboard deserialize failed, using raw text: {e}")
        return [[str(text)]]
