from __future__ import annotations

from datetime import datetime

from usps_easypost.columns import BILL_DB_COLUMN_NAMES
from usps_easypost.reader.records import record_reader_factory
from usps_easypost.services.adapter import UspsEasyPostAdapter

"""Staging plan contract with the downstream loader.

Column names and row tuples correspond positionally; the table, batch name, chunk
size and sync procedure are fixed names known to the database side.
"""

EXPECTED_COLUMNS = (
    "tracking_code",
    "weight",
    "rate",
    "label_fee",
    "postage_fee",
    "usps_zone",
    "from_zip",
    "length",
    "width",
    "height",
    "postage_label_created_at",
    "insurance_fee",
    "carbon_offset_fee",
    "bill_date",
    "invoice_number",
    "service",
)

EXPECTED_TYPES = {
    "tracking_code": str,
    "weight": float,
    "rate": float,
    "label_fee": float,
    "postage_fee": float,
    "usps_zone": int,
    "from_zip": str,
    "length": float,
    "width": float,
    "height": float,
    "postage_label_created_at": datetime,
    "insurance_fee": float,
    "carbon_offset_fee": float,
    "bill_date": datetime,
    "invoice_number": str,
    "service": str,
}


def test_column_order_is_fixed():
    assert BILL_DB_COLUMN_NAMES == EXPECTED_COLUMNS
    assert "id" not in BILL_DB_COLUMN_NAMES


def test_row_values_typed_positionally(bill_header, make_row):
    adapter = UspsEasyPostAdapter(record_reader_factory("csv"))
    plan = adapter.build_staging_plan(bill_header, [make_row(), make_row(rate="", usps_zone="")])
    batch = plan.batches[0]
    for row in batch.rows:
        assert len(row) == len(EXPECTED_COLUMNS)
        for name, value in zip(batch.columns, row):
            assert type(value) is EXPECTED_TYPES[name], name


def test_fixed_names():
    adapter = UspsEasyPostAdapter(record_reader_factory("csv"))
    plan = adapter.build_staging_plan([], [])
    assert [(b.name, b.table, b.chunk_size) for b in plan.batches] == [
        ("usps_easypost_bill", "elt_stage.usps_easy_post_bill", 5000)
    ]
    assert [(s.name, list(s.after)) for s in plan.sprocs] == [
        ("elt_stage.usp_SyncUSPSEasyPost", ["usps_easypost_bill"])
    ]
