from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display for batch validation with tqdm (TTY only).

In non-TTY environments (CI, pipes) no bar is created so the log output
stays free of ANSI control sequences. The tracker is callable with
``(processed, total)`` and can be passed directly as the ``progress``
callback of ``ValidationEngine.validate_all_rows``.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Return True if stdout is a TTY and progress should be displayed."""
    return sys.stdout.isatty()


class ProgressTracker:
    """Row progress bar for validation runs."""

    def __init__(self, total_rows: int, *, description: str = "Validating rows") -> None:
        self.total_rows = total_rows
        self.description = description
        self.processed_rows = 0

        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def __call__(self, processed: int, total: int) -> None:
        self.update_to(processed, total)

    def update_to(self, processed: int, total: int | None = None) -> None:
        """Advance the bar to an absolute ``processed`` count."""
        if total is not None and total != self.total_rows:
            self.total_rows = total
            if self.pbar is not None:
                self.pbar.total = total
        delta = processed - self.processed_rows
        self.processed_rows = processed
        if self.enabled and self.pbar is not None and delta > 0:
            self.pbar.update(delta)

    def set_postfix(self, **kwargs: Any) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.set_postfix(**kwargs)

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
