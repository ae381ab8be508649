from __future__ import annotations

from collections.abc import Callable
from typing import Any

"""Property change notification shared by Cell and Row.

Each entity keeps an explicit observer list and delivers
``(entity, property_name)`` on every mutating setter.
"""

__all__ = [
    "Observable",
    "PropertyObserver",
]

PropertyObserver = Callable[[Any, str], None]


class Observable:
    """Explicit observer list delivering ``(entity, property_name)`` notifications."""

    def __init__(self) -> None:
        self._observers: list[PropertyObserver] = []

    def subscribe(self, observer: PropertyObserver) -> Callable[[], None]:
        """Register an observer and return a callable that removes it again."""
        self._observers.append(observer)

        def unsubscribe() -> None:
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def _notify(self, property_name: str) -> None:
        # copy: observers may unsubscribe while being notified
        for observer in list(self._observers):
            observer(self, property_name)
