from __future__ import annotations

import statistics
from dataclasses import dataclass, field
from datetime import datetime

"""Run results: one FileStat per bill export, one ProcessingResult per run.

ProcessingResult feeds the SUMMARY line and the CLI exit code.
"""

STATUS_SUCCESS = "success"
STATUS_FAILED = "failed"


@dataclass(frozen=True)
class FileStat:
    file_name: str
    status: str  # success/failed
    staged_rows: int  # 失敗時は 0 (ロールバック済み)
    unique_bills: int
    account_mismatches: int  # 失敗ファイルでも検出済みの件数を保持
    elapsed_seconds: float
    total_batches: int = 0  # mock モードでは 0
    avg_batch_seconds: float = 0.0
    p95_batch_seconds: float = 0.0
    error: str | None = None

    @property
    def succeeded(self) -> bool:
        return self.status == STATUS_SUCCESS


@dataclass(frozen=True)
class ProcessingResult:
    success_files: int
    failed_files: int
    total_staged_rows: int
    total_bills: int
    total_mismatches: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    throughput_rows_per_sec: float
    file_stats: list[FileStat] | None = None
    files_found: int = 0  # scan 結果のファイル数 (SUMMARY の分母)

    @property
    def total_files(self) -> int:
        return self.success_files + self.failed_files

    @property
    def has_failures(self) -> bool:
        return self.failed_files > 0


@dataclass
class BatchStatsAccumulator:
    """Insert timings of one file's staging batches (fed by the loader's metrics callback)."""
    batch_times: list[float] = field(default_factory=list)

    def add_batch_time(self, elapsed_seconds: float) -> None:
        self.batch_times.append(elapsed_seconds)

    def get_stats(self) -> tuple[int, float, float]:
        """Return (total_batches, avg_batch_seconds, p95_batch_seconds)."""
        if not self.batch_times:
            return (0, 0.0, 0.0)
        if len(self.batch_times) == 1:
            only = self.batch_times[0]
            return (1, only, only)
        # quantiles(n=20) の 19 番目 = p95
        p95 = statistics.quantiles(self.batch_times, n=20, method="inclusive")[18]
        return (len(self.batch_times), statistics.mean(self.batch_times), p95)
