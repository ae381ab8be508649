"""Domain models for the grid engine.

This package contains the entities (columns, cells, rows), validation value
objects, event payloads, settings and run summaries used by the services.
"""

from .cell import Cell
from .column import DELETE_ACTION, VALID_ALERTS, Column, ensure_unique_names, is_special_column
from .config_models import ConditionConfig, GridConfig, GridSettings, RuleConfig
from .error_record import ErrorRecord
from .events import (
    CellChanged,
    DataChanged,
    DataChangeType,
    EventChannel,
    NavigationChanged,
    RowValidationCompleted,
)
from .row import Row
from .validation import ValidationResult, ValidationRule
from .validation_summary import BatchMetrics, BatchStatsAccumulator, ValidationSummary
from .value_types import ValueType

__all__ = [
    # Entities
    "Cell",
    "Column",
    "Row",
    "ValueType",
    "DELETE_ACTION",
    "VALID_ALERTS",
    "ensure_unique_names",
    "is_special_column",
    # Validation
    "ValidationResult",
    "ValidationRule",
    # Events and errors
    "CellChanged",
    "DataChanged",
    "DataChangeType",
    "ErrorRecord",
    "EventChannel",
    "NavigationChanged",
    "RowValidationCompleted",
    # Configuration
    "ConditionConfig",
    "GridConfig",
    "GridSettings",
    "RuleConfig",
    # Metrics
    "BatchMetrics",
    "BatchStatsAccumulator",
    "ValidationSummary",
]
