from __future__ import annotations

"""Adapter error taxonomy.

Parse-time errors (reader, date, field) abort the current batch and propagate to the
caller with the originating column named. ``AccountMismatchError`` is never raised by
the adapter: validation collects instances and returns them.
"""

__all__ = [
    "AdapterError",
    "ReaderConstructionError",
    "ReadError",
    "DateParseError",
    "FieldParseError",
    "AccountMismatchError",
    "StagingPlanError",
]


class AdapterError(Exception):
    """Base class for all carrier adapter errors."""


class ReaderConstructionError(AdapterError):
    """Raised when a record reader cannot be created for the given stream."""


class ReadError(AdapterError):
    """Raised when the tabular data in the stream cannot be parsed."""


class DateParseError(AdapterError):
    """Raised when a non-empty date cell matches neither supported format."""

    row: int | None = None  # 1-based data row, set by the adapter

    def __init__(self, column: str, value: str) -> None:
        self.column = column
        self.value = value
        super().__init__(f"header {column!r}: invalid date {value!r}")


class FieldParseError(AdapterError):
    """Raised when a non-empty numeric cell cannot be parsed."""

    row: int | None = None

    def __init__(self, column: str, cause: Exception) -> None:
        self.column = column
        self.cause = cause
        super().__init__(f"parse {column}: {cause}")


class AccountMismatchError(AdapterError):
    """Bill account number differs from the account given with the upload."""

    def __init__(self, expected: str, found: str) -> None:
        self.expected = expected
        self.found = found
        super().__init__(f"account number mismatch: in bill={found}, given={expected}")


class StagingPlanError(AdapterError):
    """Raised when a staging plan is inconsistent (e.g. sproc after unknown batch)."""
