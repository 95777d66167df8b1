from __future__ import annotations

from collections.abc import Sequence

"""Header-indexed row access.

The header index is built once per batch from the header row and maps a column name
to its position. Lookups never fail: a column missing from the header, or a row
shorter than the header, reads as an empty string.
"""

__all__ = [
    "HeaderIndex",
    "build_header_index",
    "val",
]

HeaderIndex = dict[str, int]


def build_header_index(headers: Sequence[str]) -> HeaderIndex:
    """Map column name -> position. Names are whitespace/BOM stripped; the first
    occurrence of a duplicated name wins."""
    idx: HeaderIndex = {}
    for pos, name in enumerate(headers):
        key = str(name).lstrip("\ufeff").strip()
        idx.setdefault(key, pos)
    return idx


def val(row: Sequence[str], hidx: HeaderIndex, column: str) -> str:
    pos = hidx.get(column)
    if pos is None or pos >= len(row):
        return ""
    return row[pos]
