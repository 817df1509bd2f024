from __future__ import annotations

import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

from psycopg2.extras import execute_values

"""Multi-row INSERT helper for the buffer-then-commit path.

Rows are sent with psycopg2.extras.execute_values, `page_size` rows per
statement. The helper never commits or rolls back: PostgresStore.insert_batch
owns the transaction so that every page lands or none does.
"""


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    elapsed_seconds: float = 0.0
    pages: int = 0  # execute_values statements issued


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = 1000,
) -> InsertResult:
    """Insert `rows` into `table` on the caller's cursor.

    `table` must already be a quoted identifier; column names are quoted here.

    Raises:
        BatchInsertError: any driver error (the caller rolls back)
    """
    values = list(rows)
    if not values:
        return InsertResult(inserted_rows=0)
    if page_size < 1:
        raise BatchInsertError(f"page_size must be >= 1, got {page_size}")

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"

    started = time.perf_counter()
    try:
        execute_values(cursor, sql, values, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e).strip()) from e

    return InsertResult(
        inserted_rows=len(values),
        elapsed_seconds=time.perf_counter() - started,
        pages=-(-len(values) // page_size),
    )
