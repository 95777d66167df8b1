from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from datetime import datetime
from typing import Any, BinaryIO

from .. import columns
from ..errors import AccountMismatchError, DateParseError, FieldParseError, ReaderConstructionError
from ..models.bill import BillDetails, BillUploadDetails
from ..models.staging_plan import SprocCall, StagingBatch, StagingPlan, no_params
from ..parsing.fields import date_field, float_field, int_field
from ..reader.header_index import HeaderIndex, build_header_index, val
from ..reader.records import RecordReaderFactory, Records
from ..util.ordered_set import OrderedSet

"""Carrier adapter interface and the USPS / EasyPost adapter.

An adapter turns one uploaded carrier export into:
- the unique bills it contains (get_bills), checked against the upload (validate)
- a staging plan for the downstream loader (build_staging_plan)

Parse errors abort the whole batch and name the offending column. Validation is
collect-all and never raises.
"""

__all__ = [
    "CarrierAdapter",
    "UspsEasyPostAdapter",
    "BATCH_NAME",
    "STAGING_TABLE",
    "CHUNK_SIZE",
    "SYNC_PROCEDURE",
]

BATCH_NAME = "usps_easypost_bill"
STAGING_TABLE = "elt_stage.usps_easy_post_bill"
CHUNK_SIZE = 5000
SYNC_PROCEDURE = "elt_stage.usp_SyncUSPSEasyPost"


@contextmanager
def _at_row(n: int) -> Iterator[None]:
    """Tag parse errors raised inside the block with the 1-based data row."""
    try:
        yield
    except (DateParseError, FieldParseError) as e:
        e.row = n
        raise


class CarrierAdapter(ABC):
    """Common interface every carrier-specific adapter implements."""

    @abstractmethod
    def get_records(self, stream: BinaryIO) -> Records:
        ...

    @abstractmethod
    def get_bills(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> list[BillDetails]:
        ...

    @abstractmethod
    def build_staging_plan(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> StagingPlan:
        ...

    @abstractmethod
    def validate(
        self, bills: Sequence[BillDetails], upload_details: BillUploadDetails
    ) -> list[AccountMismatchError]:
        ...


class UspsEasyPostAdapter(CarrierAdapter):
    """Adapter for the USPS bill export produced by EasyPost."""

    def __init__(
        self,
        record_reader_factory: RecordReaderFactory,
        logger: logging.Logger | None = None,
    ) -> None:
        self.record_reader_factory = record_reader_factory
        self.logger = logger or logging.getLogger(__name__)

    def get_records(self, stream: BinaryIO) -> Records:
        try:
            reader = self.record_reader_factory(stream)
        except ReaderConstructionError:
            raise
        except Exception as e:
            raise ReaderConstructionError(f"failed to create reader: {e}") from e
        return reader.read()

    def get_bills(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> list[BillDetails]:
        hidx = build_header_index(headers)
        unique: OrderedSet[BillDetails] = OrderedSet()
        for n, row in enumerate(rows, start=1):
            with _at_row(n):
                created_at = date_field(row, hidx, columns.CREATED_AT)
            unique.add(
                BillDetails(
                    invoice_id=self._build_invoice_number(row, hidx, created_at),
                    invoice_date=created_at,
                    warehouse_zip=val(row, hidx, columns.FROM_ZIP),
                    account_no=val(row, hidx, columns.CARRIER_ACCOUNT_ID),
                )
            )
        return unique.values()

    def build_staging_plan(self, headers: Sequence[str], rows: Sequence[Sequence[str]]) -> StagingPlan:
        hidx = build_header_index(headers)
        records = []
        for n, row in enumerate(rows, start=1):
            with _at_row(n):
                records.append(self._extract_bill_record(row, hidx))
        return StagingPlan(
            batches=[
                StagingBatch(
                    name=BATCH_NAME,
                    table=STAGING_TABLE,
                    columns=columns.BILL_DB_COLUMN_NAMES,
                    rows=records,
                    chunk_size=CHUNK_SIZE,
                )
            ],
            sprocs=[
                SprocCall(name=SYNC_PROCEDURE, after=[BATCH_NAME], params=no_params),
            ],
        )

    def validate(
        self, bills: Sequence[BillDetails], upload_details: BillUploadDetails
    ) -> list[AccountMismatchError]:
        errors: list[AccountMismatchError] = []
        expected = upload_details.account_number
        for bill in bills:
            # 空のアカウント番号は不一致扱いしない
            if bill.account_no == "":
                continue
            if bill.account_no != expected:
                self.logger.warning(
                    "account number mismatch: in bill=%s, given=%s", bill.account_no, expected
                )
                errors.append(AccountMismatchError(expected=expected, found=bill.account_no))
        return errors

    def _build_invoice_number(self, row: Sequence[str], hidx: HeaderIndex, created_at: datetime) -> str:
        # YYYY-MM-DD keeps invoice_number under 40 chars
        account = val(row, hidx, columns.CARRIER_ACCOUNT_ID)
        return f"{account}-{created_at.date().isoformat()}"

    def _extract_bill_record(self, row: Sequence[str], hidx: HeaderIndex) -> tuple[Any, ...]:
        rate = float_field(row, hidx, columns.RATE)
        label_fee = float_field(row, hidx, columns.LABEL_FEE)
        postage_fee = float_field(row, hidx, columns.POSTAGE_FEE)
        insurance_fee = float_field(row, hidx, columns.INSURANCE_FEE)
        carbon_offset_fee = float_field(row, hidx, columns.CARBON_OFFSET_FEE)

        weight = float_field(row, hidx, columns.WEIGHT)
        length = float_field(row, hidx, columns.LENGTH)
        width = float_field(row, hidx, columns.WIDTH)
        height = float_field(row, hidx, columns.HEIGHT)

        usps_zone = int_field(row, hidx, columns.USPS_ZONE)

        bill_date = date_field(row, hidx, columns.CREATED_AT)
        postage_label_created_at = date_field(row, hidx, columns.POSTAGE_LABEL_CREATED_AT)

        # Order must match columns.BILL_DB_COLUMN_NAMES
        return (
            val(row, hidx, columns.TRACKING_CODE),
            weight,
            rate,
            label_fee,
            postage_fee,
            usps_zone,
            val(row, hidx, columns.FROM_ZIP),
            length,
            width,
            height,
            postage_label_created_at,
            insurance_fee,
            carbon_offset_fee,
            bill_date,
            self._build_invoice_number(row, hidx, bill_date),
            val(row, hidx, columns.SERVICE),
        )
