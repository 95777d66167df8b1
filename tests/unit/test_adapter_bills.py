from __future__ import annotations

import io
from datetime import UTC, datetime

import pytest

from usps_easypost.errors import DateParseError, ReadError, ReaderConstructionError
from usps_easypost.models.bill import BillDetails
from usps_easypost.parsing.fields import ZERO_DATE
from usps_easypost.reader.records import record_reader_factory
from usps_easypost.services.adapter import UspsEasyPostAdapter


@pytest.fixture()
def adapter() -> UspsEasyPostAdapter:
    return UspsEasyPostAdapter(record_reader_factory("csv"))


def test_get_records_reads_header_and_rows(adapter: UspsEasyPostAdapter):
    stream = io.BytesIO(b"tracking_code,carrier_account_id\nT1,1001\nT2,1001\n")
    header, rows = adapter.get_records(stream)
    assert header == ["tracking_code", "carrier_account_id"]
    assert rows == [["T1", "1001"], ["T2", "1001"]]


def test_get_records_wraps_factory_failure():
    def broken_factory(stream):
        raise ValueError("cannot sniff format")

    adapter = UspsEasyPostAdapter(broken_factory)
    with pytest.raises(ReaderConstructionError) as e:
        adapter.get_records(io.BytesIO(b"a\n"))
    assert "failed to create reader" in str(e.value)
    assert isinstance(e.value.__cause__, ValueError)


def test_get_records_propagates_read_error(adapter: UspsEasyPostAdapter):
    with pytest.raises(ReadError):
        adapter.get_records(io.BytesIO(b""))


def test_get_bills_invoice_id(adapter: UspsEasyPostAdapter, bill_header, make_row):
    bills = adapter.get_bills(bill_header, [make_row(created_at="2024-03-05T00:00:00Z")])
    assert bills == [
        BillDetails(
            invoice_id="1001-2024-03-05",
            invoice_date=datetime(2024, 3, 5, tzinfo=UTC),
            warehouse_zip="90210",
            account_no="1001",
        )
    ]
    assert len(bills[0].invoice_id) <= 40


def test_get_bills_deduplicates_preserving_first_seen_order(adapter, bill_header, make_row):
    rows = [
        make_row(carrier_account_id="B", created_at="3/6/24"),
        make_row(carrier_account_id="A", created_at="3/5/24"),
        make_row(carrier_account_id="B", created_at="3/6/24", tracking_code="other"),
        make_row(carrier_account_id="A", created_at="3/5/24", from_zip="10001"),
        make_row(carrier_account_id="A", created_at="3/5/24"),
    ]
    bills = adapter.get_bills(bill_header, rows)
    assert [(b.invoice_id, b.warehouse_zip) for b in bills] == [
        ("B-2024-03-06", "90210"),
        ("A-2024-03-05", "90210"),
        ("A-2024-03-05", "10001"),
    ]
    assert len(set(bills)) == len(bills)


def test_get_bills_same_day_different_time_is_a_different_bill(adapter, bill_header, make_row):
    # invoice_date は時刻込みでタプル比較される
    rows = [
        make_row(created_at="2024-03-05T01:00:00Z"),
        make_row(created_at="2024-03-05T02:00:00Z"),
    ]
    bills = adapter.get_bills(bill_header, rows)
    assert len(bills) == 2
    assert {b.invoice_id for b in bills} == {"1001-2024-03-05"}


def test_get_bills_empty_date_uses_zero_date(adapter, bill_header, make_row):
    bills = adapter.get_bills(bill_header, [make_row(created_at="")])
    assert bills[0].invoice_date == ZERO_DATE
    assert bills[0].invoice_id == "1001-0001-01-01"


def test_get_bills_missing_columns_are_tolerated(adapter):
    bills = adapter.get_bills(["created_at"], [["3/5/24"]])
    assert bills == [
        BillDetails(
            invoice_id="-2024-03-05",
            invoice_date=datetime(2024, 3, 5, tzinfo=UTC),
            warehouse_zip="",
            account_no="",
        )
    ]


def test_get_bills_invalid_date_aborts_batch(adapter, bill_header, make_row):
    rows = [make_row(), make_row(created_at="yesterday")]
    with pytest.raises(DateParseError) as e:
        adapter.get_bills(bill_header, rows)
    assert e.value.column == "created_at"
    assert e.value.value == "yesterday"
    assert e.value.row == 2


def test_get_bills_empty_rows(adapter, bill_header):
    assert adapter.get_bills(bill_header, []) == []
