from __future__ import annotations

import math
import re
from collections.abc import Sequence
from datetime import UTC, datetime, timedelta, timezone

from ..errors import DateParseError, FieldParseError
from ..reader.header_index import HeaderIndex, val

"""Tolerant field parsing.

Policy for every numeric and date column: an empty cell is "missing" and yields the
zero value without error, a non-empty cell that does not parse is a hard error naming
the column.

Dates are tried as RFC 3339 first and as the compact M/D/YY export format second.
RFC 3339 must come first; it is unambiguous whenever it matches.
"""

__all__ = [
    "ZERO_DATE",
    "parse_date",
    "parse_float",
    "parse_int",
    "date_field",
    "float_field",
    "int_field",
]

# Zero value for a missing date (0001-01-01T00:00:00Z)
ZERO_DATE = datetime(1, 1, 1, tzinfo=UTC)

_RFC3339 = re.compile(
    r"(?P<date>\d{4}-\d{2}-\d{2})[Tt]"
    r"(?P<time>\d{2}:\d{2}:\d{2})(?:\.(?P<frac>\d{1,9}))?"
    r"(?P<tz>[Zz]|[+-]\d{2}:\d{2})",
    re.ASCII,
)
_COMPACT_FORMAT = "%m/%d/%y"
_COMPACT = re.compile(r"\d{1,2}/\d{1,2}/\d{2}", re.ASCII)

# ASCII のみ。前後の空白, 桁区切り "_", 全角数字は不正値
_FLOAT = re.compile(
    r"[+-]?(?:(?:[0-9]+(?:\.[0-9]*)?|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf|infinity|nan)",
    re.ASCII | re.IGNORECASE,
)
_INT = re.compile(r"[+-]?[0-9]+", re.ASCII)
_INT64_MIN, _INT64_MAX = -(2**63), 2**63 - 1


def _parse_rfc3339(value: str) -> datetime | None:
    m = _RFC3339.fullmatch(value)
    if m is None:
        return None
    try:
        base = datetime.strptime(f"{m['date']}T{m['time']}", "%Y-%m-%dT%H:%M:%S")
    except ValueError:
        return None
    frac = m["frac"]
    micros = int(frac[:6].ljust(6, "0")) if frac else 0
    tz = m["tz"]
    if tz in ("Z", "z"):
        tzinfo = UTC
    else:
        sign = 1 if tz[0] == "+" else -1
        hours, minutes = int(tz[1:3]), int(tz[4:6])
        if hours > 23 or minutes > 59:
            return None
        tzinfo = timezone(sign * timedelta(hours=hours, minutes=minutes))
    return base.replace(microsecond=micros, tzinfo=tzinfo)


def _parse_compact(value: str) -> datetime | None:
    # strptime の %y は 69-99 -> 19xx, 00-68 -> 20xx
    if _COMPACT.fullmatch(value) is None:
        return None
    try:
        return datetime.strptime(value, _COMPACT_FORMAT).replace(tzinfo=UTC)
    except ValueError:
        return None


def parse_date(value: str, column: str) -> datetime:
    """Parse a date cell.

    Returns ZERO_DATE for an empty string. Raises DateParseError(column, value) when
    the value is neither RFC 3339 nor M/D/YY.
    """
    if value == "":
        return ZERO_DATE
    parsed = _parse_rfc3339(value)
    if parsed is None:
        parsed = _parse_compact(value)
    if parsed is None:
        raise DateParseError(column, value)
    return parsed


def parse_float(value: str, column: str) -> float:
    if value == "":
        return 0.0
    if _FLOAT.fullmatch(value) is None:
        raise FieldParseError(column, ValueError(f"invalid number {value!r}"))
    parsed = float(value)
    # 1e999 のような桁あふれは inf と書かれた値以外エラー
    if math.isinf(parsed) and "inf" not in value.lower():
        raise FieldParseError(column, ValueError(f"value out of range {value!r}"))
    return parsed


def parse_int(value: str, column: str) -> int:
    if value == "":
        return 0
    if _INT.fullmatch(value) is None:
        raise FieldParseError(column, ValueError(f"invalid integer {value!r}"))
    parsed = int(value)
    if not _INT64_MIN <= parsed <= _INT64_MAX:
        raise FieldParseError(column, ValueError(f"value out of range {value!r}"))
    return parsed


def date_field(row: Sequence[str], hidx: HeaderIndex, column: str) -> datetime:
    return parse_date(val(row, hidx, column), column)


def float_field(row: Sequence[str], hidx: HeaderIndex, column: str) -> float:
    return parse_float(val(row, hidx, column), column)


def int_field(row: Sequence[str], hidx: HeaderIndex, column: str) -> int:
    return parse_int(val(row, hidx, column), column)
