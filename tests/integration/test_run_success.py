from __future__ import annotations

import re
from pathlib import Path

import pandas as pd  # type: ignore
import pytest

from usps_easypost.cli import main as cli_main
from usps_easypost.logging.init import reset_logging

"""Integration test: successful run over several bill exports.

Runs the CLI end to end in mock mode (DISABLE_DB_CONNECT=1) on real CSV files and
on an Excel workbook, and checks the SUMMARY line against the staged rows and the
unique bills the files contain.
"""

SUMMARY_RE = re.compile(
    r"SUMMARY files=(\d+)/(\d+) success=(\d+) failed=(\d+) rows=(\d+) bills=(\d+) mismatches=(\d+) "
    r"elapsed_sec=[0-9.]+ throughput_rps=[0-9.]+"
)


@pytest.fixture
def two_csv_exports(temp_workdir: Path, write_config: Path, write_bill_csv, make_row) -> dict:
    write_bill_csv(
        "usps_2024_03_05.csv",
        [
            make_row(tracking_code="T1"),
            make_row(tracking_code="T2"),
            make_row(tracking_code="T3", from_zip="10001"),
        ],
    )
    write_bill_csv(
        "usps_2024_03_06.csv",
        [
            make_row(tracking_code="T4", created_at="3/6/24"),
            make_row(tracking_code="T5", created_at="3/6/24", insurance_fee="1.25"),
        ],
    )
    return {"expected_rows": 5, "expected_bills": 2 + 1, "expected_files": 2}


def test_cli_run_success_csv(two_csv_exports: dict, capsys):
    reset_logging()
    code = cli_main([])
    out = capsys.readouterr().out

    assert code == 0
    m = SUMMARY_RE.search(out)
    assert m is not None, out
    files_done, files_total, success, failed, rows, bills, mismatches = map(int, m.groups())
    assert files_done == files_total == two_csv_exports["expected_files"]
    assert success == 2 and failed == 0
    assert rows == two_csv_exports["expected_rows"]
    assert bills == two_csv_exports["expected_bills"]
    assert mismatches == 0
    assert "INFO usps_2024_03_05.csv: rows=3 bills=2 mismatches=0" in out


def test_cli_run_success_excel(temp_workdir: Path, bill_header, make_row, capsys):
    reset_logging()
    (temp_workdir / "config" / "ingest.yml").write_text(
        'source_directory: ./data\nreader:\n  format: excel\nupload:\n  account_number: "1001"\n',
        encoding="utf-8",
    )
    rows = [make_row(tracking_code="T1"), make_row(tracking_code="T2", created_at="3/7/24")]
    with pd.ExcelWriter(temp_workdir / "data" / "usps_march.xlsx", engine="openpyxl") as writer:
        pd.DataFrame(rows, columns=bill_header).to_excel(writer, sheet_name="Bills", index=False)
    # CSV は excel フォーマット設定時には対象外
    (temp_workdir / "data" / "ignored.csv").write_text("tracking_code\nX\n", encoding="utf-8")

    code = cli_main([])
    out = capsys.readouterr().out

    assert code == 0
    m = SUMMARY_RE.search(out)
    assert m is not None, out
    assert m.group(1) == "1"
    assert m.group(5) == "2"  # rows
    assert m.group(6) == "2"  # bills
