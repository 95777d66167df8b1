from __future__ import annotations

import logging
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from ..config.loader import IngestConfig
from ..db.batch_insert import BatchInsertError, BatchMetrics
from ..db.staging_loader import load_staging_plan
from ..errors import (
    AdapterError,
    DateParseError,
    FieldParseError,
    ReadError,
    ReaderConstructionError,
    StagingPlanError,
)
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.bill import BillUploadDetails
from ..models.processing_result import (
    STATUS_FAILED,
    STATUS_SUCCESS,
    BatchStatsAccumulator,
    FileStat,
    ProcessingResult,
)
from ..reader.records import SUPPORTED_FORMATS, record_reader_factory
from .adapter import CarrierAdapter, UspsEasyPostAdapter
from .progress import ProgressTracker

"""Service orchestration for bill ingestion.

Coordinates a whole run: scanning the source directory, running every bill file
through the carrier adapter (records -> bills -> validate -> staging plan), loading
the plan inside a per-file transaction, and aggregating the result.

A failing file never aborts the run; it is rolled back, logged to the error log and
counted as failed. Account mismatches are logged but do not fail the file.
"""

__all__ = [
    "ProcessingError",
    "build_adapter",
    "scan_bill_files",
    "process_all",
]

logger = logging.getLogger(__name__)

_ERROR_TYPES: list[tuple[type[Exception], str]] = [
    (ReaderConstructionError, "READER_ERROR"),
    (ReadError, "READ_ERROR"),
    (DateParseError, "DATE_PARSE_ERROR"),
    (FieldParseError, "FIELD_PARSE_ERROR"),
    (StagingPlanError, "STAGING_PLAN_ERROR"),
    (BatchInsertError, "LOAD_ERROR"),
    (OSError, "FILE_ERROR"),
]


class ProcessingError(Exception):
    """Base exception for fatal processing errors."""
    pass


def _error_type(exc: Exception) -> str:
    for cls, name in _ERROR_TYPES:
        if isinstance(exc, cls):
            return name
    return "ADAPTER_ERROR"


def build_adapter(config: IngestConfig, adapter_logger: logging.Logger | None = None) -> UspsEasyPostAdapter:
    factory = record_reader_factory(config.reader.format, **config.reader.factory_options())
    return UspsEasyPostAdapter(factory, logger=adapter_logger)


def scan_bill_files(directory: Path, fmt: str = "csv") -> list[Path]:
    """Scan directory for bill files of the configured format (non-recursive, sorted).

    Raises:
        ProcessingError: If directory doesn't exist or can't be read
    """
    if not directory.exists():
        raise ProcessingError(f"Directory not found: {directory}")

    if not directory.is_dir():
        raise ProcessingError(f"Path is not a directory: {directory}")

    suffixes = SUPPORTED_FORMATS.get(fmt)
    if suffixes is None:
        raise ProcessingError(f"Unsupported reader format: {fmt}")

    try:
        return sorted(p for p in directory.iterdir() if p.is_file() and p.suffix.lower() in suffixes)
    except OSError as e:
        raise ProcessingError(f"Error reading directory {directory}: {e}") from e


def process_all(
    config: IngestConfig,
    cursor: Any = None,
    adapter: CarrierAdapter | None = None,
) -> ProcessingResult:
    """Process all bill files in the configured directory.

    Args:
        config: Ingest configuration (directory, reader, expected account)
        cursor: Database cursor for transactions (None = mock mode, nothing is loaded)
        adapter: Carrier adapter; built from config when omitted

    Raises:
        ProcessingError: For fatal errors that prevent processing
    """
    start_time = datetime.now(UTC)
    error_log = ErrorLogBuffer()

    if adapter is None:
        try:
            adapter = build_adapter(config)
        except ReaderConstructionError as e:
            raise ProcessingError(f"Invalid configuration: {e}") from e

    file_paths = scan_bill_files(Path(config.source_directory), config.reader.format)

    file_stats: list[FileStat] = []

    with ProgressTracker(len(file_paths)) as progress:
        for file_path in file_paths:
            progress.start_file(file_path)
            upload = BillUploadDetails(account_number=config.account_number, file_name=file_path.name)
            stat = _process_single_file(file_path, adapter, upload, cursor, error_log)
            file_stats.append(stat)
            progress.finish_file(stat)

    total_rows = progress.rows
    total_bills = sum(s.unique_bills for s in file_stats if s.succeeded)
    total_mismatches = sum(s.account_mismatches for s in file_stats)

    try:
        path = error_log.flush()
        if path is not None:
            logger.info(f"error log written: {path}")
    except OSError as e:
        # エラーログ書き込み失敗で全体を失敗させない
        logger.warning(f"failed to write error log: {e}")

    end_time = datetime.now(UTC)
    elapsed_seconds = (end_time - start_time).total_seconds()
    throughput_rps = total_rows / elapsed_seconds if elapsed_seconds > 0 else 0.0

    return ProcessingResult(
        success_files=progress.ok,
        failed_files=progress.failed,
        total_staged_rows=total_rows,
        total_bills=total_bills,
        total_mismatches=total_mismatches,
        start_time=start_time,
        end_time=end_time,
        elapsed_seconds=elapsed_seconds,
        throughput_rows_per_sec=throughput_rps,
        file_stats=file_stats,
        files_found=len(file_paths),
    )


def _process_single_file(
    file_path: Path,
    adapter: CarrierAdapter,
    upload: BillUploadDetails,
    cursor: Any,
    error_log: ErrorLogBuffer,
) -> FileStat:
    """Run one bill file through the adapter and load it in its own transaction.

    Parsing happens before BEGIN; only the load itself runs inside the transaction,
    which is rolled back on any load failure.
    """
    file_start = datetime.now(UTC)
    batch_stats = BatchStatsAccumulator()
    mismatches = 0

    def _failed(exc: Exception) -> FileStat:
        error_type = _error_type(exc)
        row = getattr(exc, "row", None)
        if row is None:
            error_log.append(ErrorRecord.for_file(file_path.name, error_type, exc))
            logger.error(f"{file_path.name}: {error_type} {exc}")
        else:
            error_log.append(ErrorRecord.create(file_path.name, row, error_type, str(exc)))
            logger.error(f"{file_path.name}: {error_type} {exc} (row {row})")
        total_batches, avg_batch, p95_batch = batch_stats.get_stats()
        return FileStat(
            file_name=file_path.name,
            status=STATUS_FAILED,
            staged_rows=0,
            unique_bills=0,
            account_mismatches=mismatches,
            elapsed_seconds=(datetime.now(UTC) - file_start).total_seconds(),
            total_batches=total_batches,
            avg_batch_seconds=avg_batch,
            p95_batch_seconds=p95_batch,
            error=str(exc),
        )

    try:
        with file_path.open("rb") as stream:
            headers, rows = adapter.get_records(stream)
        bills = adapter.get_bills(headers, rows)
        plan = adapter.build_staging_plan(headers, rows)
    except (AdapterError, OSError) as e:
        return _failed(e)

    for err in adapter.validate(bills, upload):
        mismatches += 1
        error_log.append(ErrorRecord.for_file(file_path.name, "ACCOUNT_MISMATCH", err))

    if cursor is not None:
        def _on_batch(metrics: BatchMetrics) -> None:
            batch_stats.add_batch_time(metrics.elapsed_seconds)

        try:
            cursor.execute("BEGIN")
            load_staging_plan(cursor, plan, upload, metrics_callback=_on_batch)
            cursor.execute("COMMIT")
        except (AdapterError, BatchInsertError) as e:
            _rollback(cursor, file_path.name, error_log)
            return _failed(e)
        except Exception as e:
            # BEGIN/COMMIT 失敗など DB ドライバ由来の例外
            _rollback(cursor, file_path.name, error_log)
            return _failed(BatchInsertError(f"transaction failed: {e}"))

    total_batches, avg_batch, p95_batch = batch_stats.get_stats()
    logger.info(
        f"{file_path.name}: rows={plan.total_rows} bills={len(bills)} mismatches={mismatches}"
    )
    return FileStat(
        file_name=file_path.name,
        status=STATUS_SUCCESS,
        staged_rows=plan.total_rows,
        unique_bills=len(bills),
        account_mismatches=mismatches,
        elapsed_seconds=(datetime.now(UTC) - file_start).total_seconds(),
        total_batches=total_batches,
        avg_batch_seconds=avg_batch,
        p95_batch_seconds=p95_batch,
    )


def _rollback(cursor: Any, file_name: str, error_log: ErrorLogBuffer) -> None:
    try:
        cursor.execute("ROLLBACK")
    except Exception as rollback_e:
        # Record rollback failure but don't override original error
        error_log.append(ErrorRecord.for_file(file_name, "TRANSACTION_ROLLBACK_ERROR", rollback_e))
