from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Bill identity models.

BillDetails identifies one unique bill inside an uploaded export. Instances are frozen
and hashable so that deduplication is by structural equality of all four fields.
"""

__all__ = [
    "BillDetails",
    "BillUploadDetails",
]


@dataclass(frozen=True)
class BillDetails:
    """Identity of one bill (invoice) drawn from the export rows.

    Two rows belong to the same bill when all four fields are equal.
    """
    invoice_id: str  # "{carrier_account_id}-{YYYY-MM-DD}"
    invoice_date: datetime
    warehouse_zip: str  # from_zip 列そのまま
    account_no: str  # carrier_account_id 列そのまま (空文字あり)


@dataclass(frozen=True)
class BillUploadDetails:
    """Metadata supplied together with an uploaded bill file."""
    account_number: str  # 期待されるキャリアアカウント番号
    file_name: str = ""
    carrier: str = "usps_easypost"
