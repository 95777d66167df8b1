from __future__ import annotations

"""Column names of the USPS / EasyPost billing export and the staging table.

Export columns are referenced by name through the header index; the order of the
export file itself is irrelevant. ``BILL_DB_COLUMN_NAMES`` on the other hand is
positional: every staged row tuple must line up with it exactly.
"""

__all__ = [
    "TRACKING_CODE",
    "RATE",
    "LABEL_FEE",
    "POSTAGE_FEE",
    "INSURANCE_FEE",
    "CARBON_OFFSET_FEE",
    "WEIGHT",
    "LENGTH",
    "WIDTH",
    "HEIGHT",
    "FROM_ZIP",
    "USPS_ZONE",
    "CREATED_AT",
    "POSTAGE_LABEL_CREATED_AT",
    "SERVICE",
    "CARRIER_ACCOUNT_ID",
    "BILL_DB_COLUMN_NAMES",
]

TRACKING_CODE = "tracking_code"
RATE = "rate"
LABEL_FEE = "label_fee"
POSTAGE_FEE = "postage_fee"
INSURANCE_FEE = "insurance_fee"
CARBON_OFFSET_FEE = "carbon_offset_fee"
WEIGHT = "weight"
LENGTH = "length"
WIDTH = "width"
HEIGHT = "height"
FROM_ZIP = "from_zip"
USPS_ZONE = "usps_zone"
CREATED_AT = "created_at"
POSTAGE_LABEL_CREATED_AT = "postage_label_created_at"
SERVICE = "service"
CARRIER_ACCOUNT_ID = "carrier_account_id"

# elt_stage.usps_easy_post_bill 挿入列 (id は IDENTITY 列なので含めない)
BILL_DB_COLUMN_NAMES: tuple[str, ...] = (
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
