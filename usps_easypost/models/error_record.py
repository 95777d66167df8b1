from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""One entry of the per-run error log (JSON Lines).

Keys are fixed to timestamp, file, row, error_type, message; the bundled schema
usps_easypost/logging/error_log_schema.json rejects anything else.
"""

__all__ = [
    "FILE_LEVEL_ROW",
    "ErrorRecord",
]

# 行を特定できない (ファイル単位の) エラー
FILE_LEVEL_ROW = -1


def _utc_now() -> str:
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


@dataclass(frozen=True)
class ErrorRecord:
    """Error log entry for one bill export.

    Attributes:
        timestamp: ISO8601 UTC with 'Z' suffix
        file: Bill export file name (no directory)
        row: 1-based data row (header and blank rows excluded) of a date or
            field parse error, or FILE_LEVEL_ROW for reader, load and
            account-mismatch findings that concern the whole file
        error_type: UPPER_SNAKE classification (READ_ERROR, ACCOUNT_MISMATCH, ...)
        message: Human-readable description
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @classmethod
    def create(cls, file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        return cls(timestamp=_utc_now(), file=file, row=row, error_type=error_type, message=message)

    @classmethod
    def for_file(cls, file: str, error_type: str, exc: BaseException | str) -> ErrorRecord:
        """File-level record; an exception is logged by its message."""
        return cls.create(file, FILE_LEVEL_ROW, error_type, str(exc))

    def to_json_line(self) -> str:
        # 非 ASCII のファイル名 / メッセージはそのまま出力
        return json.dumps(asdict(self), ensure_ascii=False)
