from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .column import Column

"""Config dataclasses for the grid engine.

These are the typed results of ``datagrid.config.loader.load_config`` and can
also be built directly by a host application.
"""

__all__ = [
    "GridSettings",
    "ConditionConfig",
    "RuleConfig",
    "GridConfig",
    "RULE_KINDS",
    "CONDITION_OPS",
]

RULE_KINDS = ("required", "length", "numeric", "range", "pattern")
CONDITION_OPS = ("eq", "ne", "gt", "ge", "lt", "le", "empty", "not_empty")


@dataclass(frozen=True)
class GridSettings:
    """Process-wide grid behaviour.

    Attributes:
        min_row_count: Row floor kept after initialization, loads and removals
        validation_batch_size: Rows validated concurrently per batch
        debug: Enables DEBUG logging when applied through ``setup_logging``
        realtime_validation: Revalidate cells as their values change
        line_separator: Row separator used when serializing to the clipboard
    """
    min_row_count: int = 50
    validation_batch_size: int = 10
    debug: bool = False
    realtime_validation: bool = True
    line_separator: str = "\n"

    def __post_init__(self) -> None:
        if self.min_row_count < 1:
            raise ValueError(f"min_row_count must be >= 1 (got {self.min_row_count})")
        if self.validation_batch_size < 1:
            raise ValueError(f"validation_batch_size must be >= 1 (got {self.validation_batch_size})")
        if not self.line_separator:
            raise ValueError("line_separator must not be empty")

    @property
    def auto_expand_margin(self) -> int:
        """Extra empty rows kept below loaded data."""
        return min(10, self.min_row_count // 5)


@dataclass(frozen=True)
class ConditionConfig:
    """``when`` block of a declarative rule: compare another column's value."""
    column: str
    op: str
    value: Any = None


@dataclass(frozen=True)
class RuleConfig:
    """Declarative rule as written in the YAML config."""
    column: str
    kind: str  # one of RULE_KINDS
    message: str | None = None
    priority: int = 0
    name: str | None = None
    min: Any = None
    max: Any = None
    pattern: str | None = None
    when: ConditionConfig | None = None


@dataclass(frozen=True)
class GridConfig:
    """Root configuration object."""
    settings: GridSettings
    columns: list[Column]
    rules: list[RuleConfig] = field(default_factory=list)
