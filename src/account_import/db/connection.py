from __future__ import annotations

import os
from collections.abc import Iterator
from contextlib import contextmanager

import psycopg2
from psycopg2.pool import ThreadedConnectionPool

from account_import.models.config_models import AppConfig, DatabaseConfig

from .store import PostgresStore, StoreError

"""Connection pool setup.

接続情報の解決優先順位:
    1. `.env` で読み込まれた環境変数 (CLI 起動時に override 読み込み済み)
       - DATABASE_URL / PGDSN があれば DSN 全体をそのまま使用
       - 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    2. config/import.yml の database セクション (不足分のフォールバック)
"""


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def open_store(cfg: AppConfig) -> Iterator[PostgresStore]:  # pragma: no cover (thin wrapper)
    """Create a ThreadedConnectionPool and yield a PostgresStore over it."""
    db = cfg.database
    try:
        pool = ThreadedConnectionPool(db.pool_min, db.pool_max, resolve_dsn(db))
    except psycopg2.Error as e:
        raise StoreError(f"connection failed: {e}") from e
    try:
        yield PostgresStore(pool, max_connections=db.pool_max, page_size=cfg.settings.page_size)
    finally:
        pool.closeall()
