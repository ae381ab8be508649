from __future__ import annotations

import logging

from ..models.error_record import ErrorRecord
from ..models.events import EventChannel

"""Shared error channel for the engines.

Operation faults are caught at the public method boundary, logged and
published as an ErrorRecord; the method then returns a safe default.
"""

__all__ = [
    "Component",
]


class Component:
    """Base for engines exposing an ``error_occurred`` channel."""

    component_name = "component"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or logging.getLogger(f"datagrid.{self.component_name}")
        self.error_occurred: EventChannel[ErrorRecord] = EventChannel("error_occurred", log=self.logger)

    def _report(self, cause: BaseException, operation: str) -> ErrorRecord:
        record = ErrorRecord.create(cause, self.component_name, operation)
        self.logger.error(f"{self.component_name}.{operation} failed: {record.error_type}: {record.message}")
        self.error_occurred.emit(record)
        return record
