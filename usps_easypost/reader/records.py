from __future__ import annotations

import io
from abc import ABC, abstractmethod
from collections.abc import Callable
from datetime import datetime
from typing import Any, BinaryIO

import pandas as pd

from ..errors import ReadError, ReaderConstructionError

"""Record readers: raw byte stream -> (header, rows).

1行目をヘッダ行として扱い、2行目以降をデータ行とする。
All cells come back as strings. NA conversion is disabled so that an empty cell stays
"" (the tolerant parsers downstream depend on that) and a literal "NA" or "null" in
the export is not silently turned into a missing value. Rows that are blank in every
cell are dropped.
"""

__all__ = [
    "Records",
    "RecordReader",
    "RecordReaderFactory",
    "CsvRecordReader",
    "ExcelRecordReader",
    "record_reader_factory",
    "SUPPORTED_FORMATS",
]

Records = tuple[list[str], list[list[str]]]


class RecordReader(ABC):
    """Reads one tabular stream. Instances are single use."""

    def __init__(self, stream: BinaryIO) -> None:
        if stream is None or not hasattr(stream, "read"):
            raise ReaderConstructionError(
                f"expected a readable binary stream, got {type(stream).__name__}"
            )
        self._stream = stream

    @abstractmethod
    def _read_frame(self) -> pd.DataFrame:
        """Return the raw frame (header included as first row, no pandas header)."""

    def read(self) -> Records:
        try:
            df = self._read_frame()
        except ReadError:
            raise
        except pd.errors.EmptyDataError as e:
            raise ReadError("stream contains no header row") from e
        except Exception as e:
            raise ReadError(f"failed to parse records: {e}") from e

        if df.shape[0] < 1:
            raise ReadError("stream contains no header row")

        cells = [[_cell_to_str(v) for v in raw] for raw in df.itertuples(index=False, name=None)]
        header = [c.strip() for c in cells[0]]
        rows = [r for r in cells[1:] if any(c != "" for c in r)]
        return header, rows


class CsvRecordReader(RecordReader):
    def __init__(self, stream: BinaryIO, encoding: str = "utf-8-sig", delimiter: str = ",") -> None:
        super().__init__(stream)
        if len(delimiter) != 1:
            raise ReaderConstructionError(f"delimiter must be a single character: {delimiter!r}")
        self.encoding = encoding
        self.delimiter = delimiter

    def _read_frame(self) -> pd.DataFrame:
        df = pd.read_csv(
            self._stream,
            header=None,
            dtype=str,
            sep=self.delimiter,
            encoding=self.encoding,
            keep_default_na=False,
            na_filter=False,
            skip_blank_lines=True,
        )
        # 列数不足の行は pandas が NaN で埋めるため空文字へ
        return df.fillna("")


class ExcelRecordReader(RecordReader):
    def __init__(self, stream: BinaryIO, sheet_name: str | int = 0) -> None:
        super().__init__(stream)
        self.sheet_name = sheet_name

    def _read_frame(self) -> pd.DataFrame:
        # openpyxl は seek 可能なバッファが必要
        buf = io.BytesIO(self._stream.read())
        return pd.read_excel(buf, sheet_name=self.sheet_name, header=None, dtype=object)


def _cell_to_str(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, datetime):  # pd.Timestamp も含む
        if value.tzinfo is None:
            return value.strftime("%Y-%m-%dT%H:%M:%SZ")
        return value.isoformat()
    if pd.isna(value):
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


RecordReaderFactory = Callable[[BinaryIO], RecordReader]

SUPPORTED_FORMATS: dict[str, tuple[str, ...]] = {
    "csv": (".csv",),
    "excel": (".xlsx",),
}


def record_reader_factory(fmt: str = "csv", **options: Any) -> RecordReaderFactory:
    """Return a factory creating readers of the given format.

    Parameters
    ----------
    fmt: "csv" または "excel"
    options: reader 固有オプション (csv: encoding / delimiter, excel: sheet_name)
    """
    if fmt == "csv":
        reader_cls: type[RecordReader] = CsvRecordReader
    elif fmt == "excel":
        reader_cls = ExcelRecordReader
    else:
        raise ReaderConstructionError(f"unsupported reader format: {fmt!r}")

    def factory(stream: BinaryIO) -> RecordReader:
        return reader_cls(stream, **options)

    return factory
