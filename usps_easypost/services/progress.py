from __future__ import annotations

import sys
from pathlib import Path
from typing import Any

from tqdm import tqdm

from ..models.processing_result import FileStat

"""Per-file progress bar for an ingestion run (tqdm, TTY only).

The bar advances once per bill export and shows ok/failed/rows as postfix. Off a
TTY (CI, redirected output) no bar is drawn; the counters are still kept.
"""

__all__ = [
    "ProgressTracker",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProgressTracker:
    def __init__(self, total_files: int, *, description: str = "Processing bills") -> None:
        self.total_files = total_files
        self.description = description
        self.files_done = 0
        self.ok = 0
        self.failed = 0
        self.rows = 0

        self.pbar: Any = None
        if is_tty_enabled():
            self.pbar = tqdm(
                total=total_files,
                desc=description,
                unit="file",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    @property
    def enabled(self) -> bool:
        return self.pbar is not None

    def start_file(self, file_path: Path) -> None:
        if self.pbar is not None:
            self.pbar.set_description(f"{self.description} ({file_path.name})")

    def finish_file(self, stat: FileStat) -> None:
        self.files_done += 1
        if stat.succeeded:
            self.ok += 1
            self.rows += stat.staged_rows
        else:
            self.failed += 1
        if self.pbar is not None:
            self.pbar.set_postfix(ok=self.ok, failed=self.failed, rows=self.rows)
            self.pbar.update(1)
            self.pbar.set_description(self.description)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProgressTracker:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
