from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display service with tqdm (TTY only).

Files of a batch run concurrently, so the bar advances in completion order,
not selection order; the postfix names the file that finished last and how
many have failed so far. Without a TTY (CI, redirected output) no bar is
created and only the counters are kept.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """Check if TTY output is enabled.

    Returns:
        True if stdout is a TTY and progress should be displayed, False otherwise
    """
    return sys.stdout.isatty()


def _open_bar(total: int, description: str) -> TqdmType[Any] | None:
    if not is_tty_enabled():
        return None
    return tqdm(
        total=total,
        desc=description,
        unit="file",
        disable=False,
        leave=True,
        position=0,
        ncols=80,
        ascii=True,
    )


class ProgressTracker:
    """Completion tracker for one batch of uploads.

    Passed to the orchestrator, which calls file_done() once per file as
    soon as that file's coroutine finishes.
    """

    def __init__(self, total_files: int, *, description: str = "Processing files") -> None:
        self.total_files = total_files
        self.description = description
        self.succeeded: list[str] = []
        self.failed: list[str] = []
        self.pbar = _open_bar(total_files, description)
        self.enabled = self.pbar is not None

    @property
    def completed(self) -> int:
        return len(self.succeeded) + len(self.failed)

    @property
    def remaining(self) -> int:
        return max(self.total_files - self.completed, 0)

    def file_done(self, file_name: str, success: bool = True) -> None:
        """Record that `file_name` finished, successfully or not."""
        (self.succeeded if success else self.failed).append(file_name)
        if self.pbar is not None:
            self.pbar.set_postfix(last=file_name, failed=len(self.failed))
            self.pbar.update(1)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
