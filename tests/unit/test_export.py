from __future__ import annotations

from datetime import datetime
from pathlib import Path

from openpyxl import load_workbook

from account_import.db.store import ListFilter
from account_import.models.records import ENTITIES
from account_import.services.export import export_records


def test_export_users(fake_store, tmp_path: Path):
    fake_store.rows["users"] = [
        {
            "id": 2,
            "username": "bob",
            "email": "b@x",
            "created_at": datetime(2024, 3, 1, 9, 30),
            "updated_at": datetime(2024, 3, 2, 10, 0),
        },
        {"id": 1, "username": "alice", "email": "a@x", "created_at": None, "updated_at": None},
    ]
    lf = ListFilter(username="b", sort="username:asc")
    result = export_records(
        fake_store, ENTITIES["users"], tmp_path, lf, now=datetime(2024, 5, 1, 13, 4, 5)
    )

    assert result.rows == 2
    assert result.path == tmp_path / "user_2024-05-01_130405.xlsx"
    table, columns, passed = fake_store.listed[0]
    assert table == "users"
    assert columns == ["id", "username", "email", "created_at", "updated_at"]
    assert passed is lf

    wb = load_workbook(result.path)
    ws = wb["Users"]
    assert [c.value for c in ws[1]] == ["ID", "Username", "Email", "CreatedAt", "UpdatedAt"]
    assert [c.value for c in ws[2]] == [2, "bob", "b@x", "2024-03-01", "2024-03-02"]
    header = ws["A1"]
    assert header.font.name == "Calibri"
    assert header.font.sz == 12
    assert header.fill.fgColor.rgb == "FFFFFF00"
    assert ws["B2"].font.name == "Calibri"


def test_export_customers_empty(fake_store, tmp_path: Path):
    result = export_records(fake_store, ENTITIES["customers"], tmp_path / "out")
    assert result.rows == 0
    assert result.path.name.startswith("customer_")
    ws = load_workbook(result.path)["Customer"]
    assert [c.value for c in ws[1]] == ["ID", "Username", "Email", "Phone", "Address", "CreatedAt"]
    assert ws.max_row == 1
