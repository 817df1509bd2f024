from __future__ import annotations

import logging
import re
import threading
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

import psycopg2

from .batch_insert import BatchInsertError, batch_insert

"""PostgreSQL store used by the importer and the exporter.

Every public method borrows its own connection from a psycopg2
ThreadedConnectionPool, so row tasks running on different threads can call
exists_by_field / insert concurrently. The pool raises PoolError instead of
waiting when it is exhausted; a BoundedSemaphore sized to the pool's maximum
makes callers wait for a free connection instead.
"""

logger = logging.getLogger(__name__)

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")
_SORT_DIRECTIONS = {"asc": "ASC", "desc": "DESC"}


class StoreError(Exception):
    """Store read or write failure."""


def _ident(name: str) -> str:
    if not _IDENT_RE.match(name):
        raise StoreError(f"invalid identifier: {name!r}")
    return f'"{name}"'


@dataclass(frozen=True)
class ListFilter:
    """Filters for find_all (export listing).

    username / email match as substrings. The created_at range applies only when
    both bounds are given. sort is "col:dir,col:dir" (default id DESC).
    limit=None returns every matching row; otherwise page is 1-based.
    """
    username: str | None = None
    email: str | None = None
    start_date: str | None = None
    end_date: str | None = None
    sort: str | None = None
    limit: int | None = None
    page: int = 1


def _order_by(sort: str | None, allowed: Sequence[str]) -> str:
    clauses: list[str] = []
    for part in (sort or "").split(","):
        col, _, direction = part.strip().partition(":")
        if not col or not direction:
            continue
        if col not in allowed:
            raise StoreError(f"cannot sort by unknown column: {col!r}")
        d = _SORT_DIRECTIONS.get(direction.strip().lower())
        if d is None:
            raise StoreError(f"invalid sort direction: {direction!r}")
        clauses.append(f"{_ident(col)} {d}")
    return ", ".join(clauses) if clauses else '"id" DESC'


class PostgresStore:
    def __init__(self, pool: Any, max_connections: int, page_size: int = 1000) -> None:
        self._pool = pool
        self._slots = threading.BoundedSemaphore(max_connections)
        self._page_size = page_size

    @contextmanager
    def _connection(self) -> Iterator[Any]:
        with self._slots:
            try:
                conn = self._pool.getconn()
            except psycopg2.Error as e:
                raise StoreError(f"cannot get connection: {e}") from e
            try:
                yield conn
            finally:
                # 失敗時の rollback は putconn に任せる (切断済み接続は pool が破棄)
                self._pool.putconn(conn)

    def exists_by_field(self, table: str, field: str, value: Any) -> bool:
        sql = f"SELECT EXISTS(SELECT 1 FROM {_ident(table)} WHERE {_ident(field)} = %s)"
        with self._connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, (value,))
                    row = cur.fetchone()
                conn.rollback()
            except psycopg2.Error as e:
                raise StoreError(f"existence check failed on {table}.{field}: {e}") from e
        return bool(row and row[0])

    def insert(self, table: str, record: Any) -> None:
        """Insert one record in its own transaction."""
        row = record.as_row()
        columns = list(row)
        cols_sql = ",".join(_ident(c) for c in columns)
        placeholders = ",".join(["%s"] * len(columns))
        sql = f"INSERT INTO {_ident(table)} ({cols_sql}) VALUES ({placeholders})"
        with self._connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, [row[c] for c in columns])
                conn.commit()
            except psycopg2.Error as e:
                raise StoreError(str(e).strip()) from e

    def insert_batch(self, table: str, records: Sequence[Any]) -> int:
        """Insert all records in one transaction (all-or-nothing).

        Returns:
            number of inserted rows

        Raises:
            StoreError: any failure; nothing is committed in that case
        """
        if not records:
            return 0
        columns = list(records[0].as_row())
        for c in columns:
            _ident(c)
        rows = []
        for r in records:
            values = r.as_row()
            rows.append([values[c] for c in columns])
        with self._connection() as conn:
            try:
                with conn.cursor() as cur:
                    result = batch_insert(
                        cur, _ident(table), columns, rows, page_size=self._page_size
                    )
                conn.commit()
            except (BatchInsertError, psycopg2.Error) as e:
                raise StoreError(f"batch insert into {table} failed: {e}") from e
        logger.debug(
            "table=%s batch inserted_rows=%d pages=%d elapsed=%.3fs",
            table,
            result.inserted_rows,
            result.pages,
            result.elapsed_seconds,
        )
        return result.inserted_rows

    def find_all(
        self, table: str, columns: Sequence[str], list_filter: ListFilter | None = None
    ) -> list[dict[str, Any]]:
        f = list_filter or ListFilter()
        filters: list[str] = []
        args: list[Any] = []
        if f.username:
            filters.append('"username" LIKE %s')
            args.append(f"%{f.username}%")
        if f.email:
            filters.append('"email" LIKE %s')
            args.append(f"%{f.email}%")
        if f.start_date and f.end_date:
            filters.append('"created_at" BETWEEN %s AND %s')
            args.extend([f.start_date, f.end_date])

        cols_sql = ", ".join(_ident(c) for c in columns)
        sql = f"SELECT {cols_sql} FROM {_ident(table)}"
        if filters:
            sql += " WHERE " + " AND ".join(filters)
        sql += " ORDER BY " + _order_by(f.sort, columns)
        if f.limit is not None:
            page = max(f.page, 1)
            sql += " LIMIT %s OFFSET %s"
            args.extend([f.limit, (page - 1) * f.limit])

        with self._connection() as conn:
            try:
                with conn.cursor() as cur:
                    cur.execute(sql, args)
                    fetched = cur.fetchall()
                conn.rollback()
            except psycopg2.Error as e:
                raise StoreError(f"listing {table} failed: {e}") from e
        return [dict(zip(columns, r, strict=False)) for r in fetched]
