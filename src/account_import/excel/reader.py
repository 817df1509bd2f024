from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import IO

from openpyxl import load_workbook

from account_import.models.row_data import RowData

"""Spreadsheet reader.

The first sheet of the workbook is imported. Line 1 is the header row, every
following line is a data row. All cells are converted to trimmed strings; rows
whose cells are all empty are dropped, the remaining rows keep their original
line numbers.

openpyxl is read directly (not through pandas.read_excel) because the pandas
parser silently drops blank lines, which would shift every row number after a
blank row in the error report.
"""

__all__ = [
    "SpreadsheetError",
    "SheetData",
    "read_sheet",
]


class SpreadsheetError(Exception):
    """Raised when the workbook cannot be opened or has no header row."""


@dataclass
class SheetData:
    sheet_name: str
    header: list[str]
    rows: list[RowData]  # data rows only, blank rows removed


def _to_cell(value: object) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value).upper()
    if isinstance(value, float) and value.is_integer():
        # Excel は数値を float で保持: 電話番号等 "812345.0" を避ける
        return str(int(value))
    if isinstance(value, datetime | date):
        return value.isoformat()
    return str(value).strip()


def read_sheet(source: Path | IO[bytes]) -> SheetData:
    """Read the first sheet of an .xlsx workbook.

    Parameters
    ----------
    source: workbook path or binary stream (e.g. an uploaded file)

    Raises
    ------
    SpreadsheetError: unreadable workbook or empty first sheet
    """
    try:
        wb = load_workbook(source, read_only=True, data_only=True)
    except Exception as e:
        raise SpreadsheetError(f"cannot read workbook: {e}") from e

    try:
        ws = wb.worksheets[0]
        values = [list(r) for r in ws.iter_rows(values_only=True)]
        name = ws.title
    finally:
        wb.close()

    header = [_to_cell(v) for v in values[0]] if values else []
    # read_only は全行を sheet の最大列幅で返す: 末尾の空ヘッダは列に数えない
    while header and not header[-1]:
        header.pop()
    if not header:
        raise SpreadsheetError(f"sheet '{name}' has no header row")

    width = len(header)
    rows: list[RowData] = []
    for line, raw in enumerate(values[1:], start=2):
        cells = [_to_cell(v) for v in raw]
        # 固定幅: ヘッダ幅に合わせて切り詰め / 空文字で補完
        cells = (cells + [""] * width)[:width]
        row = RowData(row_number=line, cells=tuple(cells))
        if row.is_blank:
            continue
        rows.append(row)
    return SheetData(sheet_name=name, header=header, rows=rows)
