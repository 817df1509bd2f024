# Shared pytest fixtures
from __future__ import annotations

import tempfile
import threading
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from account_import.db.store import StoreError
from account_import.logging.init import reset_logging


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
  pool_min: 1
  pool_max: 4
import:
  commit_policy: buffer_then_commit
  bcrypt_rounds: 4
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


def make_xlsx(path: Path, rows: list[list[object]], sheet_name: str = "Sheet1") -> Path:
    """Write rows (header first) as a single-sheet workbook."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return path


def fast_hasher(password: str) -> str:
    return f"hashed:{password}"


class FakeStore:
    """Thread-safe in-memory stand-in for PostgresStore."""

    def __init__(self, existing: dict[tuple[str, str], set[str]] | None = None) -> None:
        self.existing = existing or {}
        self.inserted: list[tuple[str, Any]] = []
        self.batches: list[tuple[str, list[Any]]] = []
        self.rows: dict[str, list[dict[str, Any]]] = {}
        self.listed: list[tuple[str, list[str], Any]] = []
        self.fail_exists = False
        self.fail_insert_for: set[str] = set()  # usernames whose insert fails
        self.fail_batch = False
        self.exists_calls = 0
        self._lock = threading.Lock()

    def exists_by_field(self, table: str, field: str, value: Any) -> bool:
        with self._lock:
            self.exists_calls += 1
        if self.fail_exists:
            raise StoreError("connection reset")
        return value in self.existing.get((table, field), set())

    def insert(self, table: str, record: Any) -> None:
        if record.username in self.fail_insert_for:
            raise StoreError(f"duplicate key value violates unique constraint ({record.username})")
        with self._lock:
            self.inserted.append((table, record))

    def insert_batch(self, table: str, records: list[Any]) -> int:
        if self.fail_batch:
            raise StoreError(f"batch insert into {table} failed: deadlock detected")
        with self._lock:
            self.batches.append((table, list(records)))
        return len(records)

    def find_all(self, table: str, columns: list[str], list_filter: Any = None) -> list[dict[str, Any]]:
        self.listed.append((table, list(columns), list_filter))
        return [{c: r.get(c) for c in columns} for r in self.rows.get(table, [])]


@pytest.fixture()
def fake_store() -> FakeStore:
    return FakeStore()


@pytest.fixture()
def store_factory():
    return FakeStore


@pytest.fixture()
def xlsx_factory():
    return make_xlsx


@pytest.fixture()
def hasher():
    return fast_hasher
