from __future__ import annotations

import re
from datetime import UTC, datetime, timedelta

from usps_easypost.models.processing_result import ProcessingResult
from usps_easypost.services.summary import render_summary_line

SUMMARY_RE = re.compile(
    r"^SUMMARY files=\d+/\d+ success=\d+ failed=\d+ rows=\d+ bills=\d+ mismatches=\d+ "
    r"elapsed_sec=[0-9.]+ throughput_rps=[0-9.]+$"
)


def _result(**kw) -> ProcessingResult:
    start = datetime(2024, 3, 5, 10, 0, 0, tzinfo=UTC)
    base = dict(
        success_files=0,
        failed_files=0,
        total_staged_rows=0,
        total_bills=0,
        total_mismatches=0,
        start_time=start,
        end_time=start + timedelta(seconds=kw.get("elapsed_seconds", 0)),
        elapsed_seconds=0.0,
        throughput_rows_per_sec=0.0,
    )
    base.update(kw)
    return ProcessingResult(**base)


def test_render_summary_zero():
    line = render_summary_line(0, _result())
    assert line == (
        "SUMMARY files=0/0 success=0 failed=0 rows=0 bills=0 mismatches=0 "
        "elapsed_sec=0 throughput_rps=0"
    )
    assert SUMMARY_RE.match(line)


def test_render_summary_counts_and_numbers():
    line = render_summary_line(
        3,
        _result(
            success_files=2, failed_files=1, total_staged_rows=1500, total_bills=4,
            total_mismatches=1, elapsed_seconds=2.5, throughput_rows_per_sec=600.0,
        ),
    )
    assert line == (
        "SUMMARY files=3/3 success=2 failed=1 rows=1500 bills=4 mismatches=1 "
        "elapsed_sec=2.5 throughput_rps=600"
    )
    assert SUMMARY_RE.match(line)


def test_render_summary_small_elapsed_no_scientific_notation():
    line = render_summary_line(1, _result(success_files=1, elapsed_seconds=0.000123, throughput_rows_per_sec=1234.56789))
    assert "elapsed_sec=0.000123" in line
    assert "throughput_rps=1234.568" in line
    assert "e-" not in line


def test_render_summary_denominator_is_files_found():
    result = _result(success_files=2, failed_files=1, files_found=4)
    line = render_summary_line(result.files_found, result)
    assert line.startswith("SUMMARY files=3/4 success=2 failed=1 ")
