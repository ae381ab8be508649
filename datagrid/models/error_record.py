from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import UTC, datetime

"""ErrorRecord model for component error reporting.

Every engine reports operation faults as an ErrorRecord through its
``error_occurred`` channel instead of raising. The record keeps the original
exception in memory (``cause``) while its JSON Lines form carries only the
five fixed keys consumed by the error log.
"""

__all__ = [
    "ErrorRecord",
]

JSON_KEYS = ("timestamp", "component", "operation", "error_type", "message")


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        component: Reporting component (``validation``, ``navigation`` ...)
        operation: Operation tag, usually the public method name
        error_type: Exception class name of the cause
        message: Human readable description
        cause: Original exception, not serialized
    """
    timestamp: str  # ISO8601 UTC
    component: str
    operation: str
    error_type: str
    message: str
    cause: BaseException | None = field(default=None, compare=False, repr=False)

    @staticmethod
    def create(cause: BaseException, component: str, operation: str) -> ErrorRecord:
        """Create a record for ``cause`` with the current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            component=component,
            operation=operation,
            error_type=type(cause).__name__,
            message=str(cause),
            cause=cause,
        )

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines entry (fixed key set, no cause)."""
        return json.dumps({key: getattr(self, key) for key in JSON_KEYS}, ensure_ascii=False)
