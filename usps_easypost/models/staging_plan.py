from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import Any

from .bill import BillUploadDetails

"""Staging plan models.

A StagingPlan is the hand-off artifact between a carrier adapter and the loader:
named row batches destined for staging tables, followed by stored-procedure calls
that run once the batches they depend on have been loaded.
"""

__all__ = [
    "StagingBatch",
    "SprocCall",
    "StagingPlan",
    "no_params",
]


def no_params(upload: BillUploadDetails) -> list[Any]:
    """Parameter builder for stored procedures that take no arguments."""
    return []


@dataclass(frozen=True)
class StagingBatch:
    """A named, chunked set of rows destined for one table.

    ``columns`` and every tuple in ``rows`` correspond positionally.
    """
    name: str
    table: str
    columns: Sequence[str]
    rows: list[tuple[Any, ...]]
    chunk_size: int


@dataclass(frozen=True)
class SprocCall:
    """Stored procedure invocation scheduled after the named batches."""
    name: str
    after: Sequence[str]
    params: Callable[[BillUploadDetails], list[Any]] = no_params


@dataclass(frozen=True)
class StagingPlan:
    batches: list[StagingBatch] = field(default_factory=list)
    sprocs: list[SprocCall] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return sum(len(b.rows) for b in self.batches)

    def batch(self, name: str) -> StagingBatch | None:
        for b in self.batches:
            if b.name == name:
                return b
        return None
