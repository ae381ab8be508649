from __future__ import annotations

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .row import Row

"""Validation rule and result value objects."""

__all__ = [
    "RulePredicate",
    "RowCondition",
    "ValidationRule",
    "ValidationResult",
]

RulePredicate = Callable[[Any, "Row"], bool]
RowCondition = Callable[["Row"], bool]


def _always(_row: Row) -> bool:
    return True


@dataclass
class ValidationRule:
    """A named predicate over one column's value.

    Attributes:
        column_name: Column the rule is registered under
        validate: ``(value, row) -> bool``; False marks the cell invalid
        error_message: Message recorded when the predicate fails
        apply_condition: ``row -> bool`` gate, the rule is skipped when False
        priority: Higher runs first; ties keep registration order
        rule_name: Unique per column; re-registering a name replaces the rule
    """
    column_name: str
    validate: RulePredicate
    error_message: str
    apply_condition: RowCondition = _always
    priority: int = 0
    rule_name: str = field(default_factory=lambda: uuid.uuid4().hex)

    def should_apply(self, row: Row) -> bool:
        # a failing condition does not disable the rule
        try:
            return bool(self.apply_condition(row))
        except Exception:
            return True


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    column_name: str
    error_messages: list[str] = field(default_factory=list)

    @staticmethod
    def success(column_name: str) -> ValidationResult:
        return ValidationResult(is_valid=True, column_name=column_name, error_messages=[])

    @staticmethod
    def failure(column_name: str, error_messages: list[str]) -> ValidationResult:
        return ValidationResult(is_valid=False, column_name=column_name, error_messages=list(error_messages))
