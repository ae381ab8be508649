from __future__ import annotations

import math
import re
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any

import pandas as pd

"""Declared column value types and text parsing shared by the typed getter and the sort engine.

Parsing mirrors what a spreadsheet user expects from a typed column: integers
are bounded to 32/64 bit, decimals and floats must be finite, booleans accept
yes/no/y/n/1/0 besides true/false, and date-times go through pandas so the
usual textual formats are understood. Aware date-times are normalized to naive
UTC so they stay comparable with each other and with ``datetime.min``.
"""

__all__ = [
    "ValueType",
    "INT32_MIN",
    "INT32_MAX",
    "INT64_MIN",
    "INT64_MAX",
    "DECIMAL_MIN",
    "TRUE_TEXTS",
    "FALSE_TEXTS",
    "matches_type",
    "normalize_datetime",
    "parse_text",
    "text_for_type",
    "coerce_value",
]

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1
INT64_MIN = -(2**63)
INT64_MAX = 2**63 - 1
# smallest value a 96-bit scaled decimal can hold
DECIMAL_MIN = Decimal("-79228162514264337593543950335")

TRUE_TEXTS = frozenset({"true", "1", "yes", "y"})
FALSE_TEXTS = frozenset({"false", "0", "no", "n"})

_INTEGER_TEXT = re.compile(r"^[+-]?\d+$")


class ValueType(Enum):
    """Value type a column declares for its cells."""
    STRING = "string"
    INTEGER = "integer"
    DECIMAL = "decimal"
    FLOAT = "float"
    LONG = "long"
    BOOLEAN = "boolean"
    DATETIME = "datetime"
    OBJECT = "object"

    @classmethod
    def parse(cls, raw: ValueType | str) -> ValueType:
        """Resolve a value type from its name or a common alias (``int``, ``date-time`` ...).

        Raises:
            ValueError: If the name is not a known value type
        """
        if isinstance(raw, ValueType):
            return raw
        key = str(raw).strip().lower().replace("-", "").replace("_", "")
        try:
            return _ALIASES[key]
        except KeyError:
            raise ValueError(f"unknown value type: {raw!r}") from None


_ALIASES: dict[str, ValueType] = {
    "string": ValueType.STRING,
    "str": ValueType.STRING,
    "text": ValueType.STRING,
    "integer": ValueType.INTEGER,
    "int": ValueType.INTEGER,
    "decimal": ValueType.DECIMAL,
    "float": ValueType.FLOAT,
    "double": ValueType.FLOAT,
    "long": ValueType.LONG,
    "boolean": ValueType.BOOLEAN,
    "bool": ValueType.BOOLEAN,
    "datetime": ValueType.DATETIME,
    "date": ValueType.DATETIME,
    "object": ValueType.OBJECT,
}


def matches_type(value: Any, value_type: ValueType) -> bool:
    """Return True when the runtime value already is of the declared type."""
    if value_type in (ValueType.INTEGER, ValueType.LONG):
        return isinstance(value, int) and not isinstance(value, bool)
    if value_type is ValueType.DECIMAL:
        return isinstance(value, Decimal)
    if value_type is ValueType.FLOAT:
        return isinstance(value, float)
    if value_type is ValueType.BOOLEAN:
        return isinstance(value, bool)
    if value_type is ValueType.DATETIME:
        return isinstance(value, datetime) and value is not pd.NaT
    if value_type is ValueType.STRING:
        return isinstance(value, str)
    return False


def normalize_datetime(value: datetime) -> datetime:
    """Return a plain naive datetime (UTC for aware input)."""
    if isinstance(value, pd.Timestamp):
        value = value.to_pydatetime()
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


def _parse_bounded_int(text: str, low: int, high: int) -> int:
    if not _INTEGER_TEXT.match(text):
        raise ValueError(f"not an integer: {text!r}")
    number = int(text)
    if number < low or number > high:
        raise ValueError(f"integer out of range: {text!r}")
    return number


def parse_text(text: str, value_type: ValueType) -> Any:
    """Parse trimmed, non-empty text according to the declared type.

    Raises:
        ValueError: If the text cannot be represented in the declared type
    """
    if value_type is ValueType.INTEGER:
        return _parse_bounded_int(text, INT32_MIN, INT32_MAX)
    if value_type is ValueType.LONG:
        return _parse_bounded_int(text, INT64_MIN, INT64_MAX)
    if value_type is ValueType.DECIMAL:
        try:
            number = Decimal(text)
        except InvalidOperation:
            raise ValueError(f"not a decimal: {text!r}") from None
        if not number.is_finite():
            raise ValueError(f"not a finite decimal: {text!r}")
        return number
    if value_type is ValueType.FLOAT:
        number = float(text)
        if math.isnan(number):
            raise ValueError(f"not a number: {text!r}")
        return number
    if value_type is ValueType.BOOLEAN:
        lowered = text.lower()
        if lowered in TRUE_TEXTS:
            return True
        if lowered in FALSE_TEXTS:
            return False
        raise ValueError(f"not a boolean: {text!r}")
    if value_type is ValueType.DATETIME:
        try:
            stamp = pd.to_datetime(text)
        except (ValueError, TypeError, OverflowError) as e:
            raise ValueError(f"not a date-time: {text!r}") from e
        if pd.isna(stamp):
            raise ValueError(f"not a date-time: {text!r}")
        return normalize_datetime(stamp)
    return text


def text_for_type(value: Any, value_type: ValueType) -> str:
    """Trimmed text of ``value`` ready for ``parse_text``; integral floats drop their ``.0`` for int columns."""
    if (
        value_type in (ValueType.INTEGER, ValueType.LONG)
        and isinstance(value, float)
        and value.is_integer()
    ):
        return str(int(value))
    return str(value).strip()


def coerce_value(value: Any, value_type: ValueType) -> Any:
    """Convert a cell value to its declared type, ``None`` when that is impossible."""
    if value is None:
        return None
    if value_type is ValueType.OBJECT:
        return value
    if matches_type(value, value_type):
        if value_type is ValueType.DATETIME:
            return normalize_datetime(value)
        if value_type is ValueType.FLOAT and math.isnan(value):
            return None
        return value
    if value_type is ValueType.STRING:
        return str(value)
    text = text_for_type(value, value_type)
    if not text:
        return None
    try:
        return parse_text(text, value_type)
    except ValueError:
        return None
