# Shared pytest fixtures
from __future__ import annotations
import csv
import tempfile
from collections.abc import Callable
from pathlib import Path
import pytest

BILL_HEADER = [
    "tracking_code",
    "created_at",
    "postage_label_created_at",
    "carrier_account_id",
    "from_zip",
    "service",
    "usps_zone",
    "rate",
    "label_fee",
    "postage_fee",
    "insurance_fee",
    "carbon_offset_fee",
    "weight",
    "length",
    "width",
    "height",
]


def bill_row(**overrides: str) -> list[str]:
    """One export row in BILL_HEADER order; keyword arguments override cells."""
    values = {
        "tracking_code": "9400100000000000000001",
        "created_at": "2024-03-05T14:22:10Z",
        "postage_label_created_at": "3/5/24",
        "carrier_account_id": "1001",
        "from_zip": "90210",
        "service": "GroundAdvantage",
        "usps_zone": "5",
        "rate": "12.5",
        "label_fee": "0.03",
        "postage_fee": "12.47",
        "insurance_fee": "",
        "carbon_offset_fee": "",
        "weight": "16.0",
        "length": "10",
        "width": "8",
        "height": "4",
    }
    values.update(overrides)
    return [values[c] for c in BILL_HEADER]


@pytest.fixture()
def bill_header() -> list[str]:
    return list(BILL_HEADER)

@pytest.fixture()
def make_row() -> Callable[..., list[str]]:
    return bill_row

@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p

@pytest.fixture()
def sample_config_yaml() -> str:
    return """source_directory: ./data
reader:
  format: csv
  encoding: utf-8-sig
  delimiter: ","
upload:
  account_number: "1001"
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""

@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "ingest.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg

@pytest.fixture()
def write_bill_csv(temp_workdir: Path) -> Callable[..., Path]:
    """Write a bill export CSV into data/ and return its path."""
    def _write(name: str, rows: list[list[str]], header: list[str] | None = None) -> Path:
        path = temp_workdir / "data" / name
        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.writer(f)
            writer.writerow(header or BILL_HEADER)
            writer.writerows(rows)
        return path
    return _write

@pytest.fixture(autouse=True)
def no_db_connect(monkeypatch):
    # CLI テストで実 DB へ接続しない
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
