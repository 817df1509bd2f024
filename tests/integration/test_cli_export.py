from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from unittest.mock import patch

from openpyxl import load_workbook

from account_import.cli.__main__ import main as cli_main


def test_export_customers(write_config, temp_workdir: Path, fake_store, capsys):
    fake_store.rows["customers"] = [
        {
            "id": 7,
            "username": "bob",
            "email": "b@x",
            "phone": "0812",
            "address": "Jakarta",
            "created_at": datetime(2024, 2, 3, 4, 5, 6),
        }
    ]

    @contextmanager
    def _open_store(cfg):
        yield fake_store

    with patch("account_import.cli.__main__.open_store", _open_store):
        code = cli_main([
            "export", "customers",
            "--email", "@x",
            "--start-date", "2024-01-01", "--end-date", "2024-12-31",
            "--sort", "username:asc",
            "--limit", "50", "--page", "2",
            "--out", "exports",
        ])
    out = capsys.readouterr().out

    assert code == 0
    assert "SUMMARY entity=customers exported=1 file=exports" in out
    _, _, lf = fake_store.listed[0]
    assert (lf.email, lf.start_date, lf.end_date, lf.sort, lf.limit, lf.page) == (
        "@x", "2024-01-01", "2024-12-31", "username:asc", 50, 2,
    )
    (path,) = Path("exports").glob("customer_*.xlsx")
    ws = load_workbook(path)["Customer"]
    assert [c.value for c in ws[2]] == [7, "bob", "b@x", "0812", "Jakarta", "2024-02-03"]


def test_export_bad_sort_is_fatal(write_config, capsys):
    from account_import.db.store import StoreError

    class _Store:
        def find_all(self, table, columns, list_filter=None):
            raise StoreError("cannot sort by unknown column: 'password'")

    @contextmanager
    def _open_store(cfg):
        yield _Store()

    with patch("account_import.cli.__main__.open_store", _open_store):
        code = cli_main(["export", "users", "--sort", "password:asc"])
    assert code == 1
    assert "ERROR store: cannot sort by unknown column" in capsys.readouterr().out
