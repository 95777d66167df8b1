from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from ..errors import StagingPlanError
from ..models.bill import BillUploadDetails
from ..models.staging_plan import SprocCall, StagingPlan
from .batch_insert import BatchInsertError, BatchMetrics, batch_insert

"""Staging plan loader.

Executes a StagingPlan on a psycopg2 cursor: every batch is inserted in chunks of its
chunk_size, then each stored procedure is called once all batches named in its
``after`` list are loaded. Transaction boundaries (BEGIN/COMMIT/ROLLBACK) belong to
the caller.
"""

__all__ = [
    "LoadResult",
    "load_staging_plan",
    "check_plan",
]

logger = logging.getLogger(__name__)


@dataclass
class LoadResult:
    inserted_rows: dict[str, int] = field(default_factory=dict)  # batch name -> rows
    sprocs_called: list[str] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return sum(self.inserted_rows.values())


def check_plan(plan: StagingPlan) -> None:
    """Raise StagingPlanError if a sproc depends on a batch the plan does not contain."""
    names = [b.name for b in plan.batches]
    if len(set(names)) != len(names):
        raise StagingPlanError(f"duplicate batch names in plan: {names}")
    for sproc in plan.sprocs:
        unknown = [a for a in sproc.after if a not in names]
        if unknown:
            raise StagingPlanError(f"sproc {sproc.name} runs after unknown batches: {unknown}")


def _call_sproc(cursor: Any, sproc: SprocCall, upload: BillUploadDetails) -> None:
    params = list(sproc.params(upload))
    placeholders = ",".join(["%s"] * len(params))
    try:
        cursor.execute(f"CALL {sproc.name}({placeholders})", params)
    except Exception as e:
        raise BatchInsertError(f"call {sproc.name} failed: {e}") from e


def load_staging_plan(
    cursor: Any,
    plan: StagingPlan,
    upload_details: BillUploadDetails,
    metrics_callback: Callable[[BatchMetrics], None] | None = None,
) -> LoadResult:
    check_plan(plan)
    result = LoadResult()
    pending = list(plan.sprocs)

    for batch in plan.batches:
        res = batch_insert(
            cursor,
            table=batch.table,
            columns=batch.columns,
            rows=batch.rows,
            page_size=batch.chunk_size,
            metrics_callback=metrics_callback,
        )
        result.inserted_rows[batch.name] = res.inserted_rows
        logger.debug(f"staged batch={batch.name} table={batch.table} rows={res.inserted_rows}")

        # 依存バッチが揃った sproc から順に実行 (plan 内の宣言順を維持)
        ready = [s for s in pending if all(a in result.inserted_rows for a in s.after)]
        for sproc in ready:
            _call_sproc(cursor, sproc, upload_details)
            result.sprocs_called.append(sproc.name)
            pending.remove(sproc)

    # after が空の sproc はバッチ無しのプランでもここで実行
    for sproc in pending:
        _call_sproc(cursor, sproc, upload_details)
        result.sprocs_called.append(sproc.name)

    return result
