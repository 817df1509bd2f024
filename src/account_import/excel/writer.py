from __future__ import annotations

from pathlib import Path

import pandas as pd
from openpyxl.styles import Font, PatternFill

"""Styled single-sheet .xlsx writer used by the exporter.

Header row: Calibri 12 bold on a solid yellow fill. Data rows: Calibri 12.
"""

HEADER_FONT = Font(name="Calibri", size=12, bold=True)
DATA_FONT = Font(name="Calibri", size=12)
HEADER_FILL = PatternFill(fill_type="solid", start_color="FFFFFF00", end_color="FFFFFF00")


def write_styled_sheet(df: pd.DataFrame, path: Path, sheet_name: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with pd.ExcelWriter(path, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=sheet_name, index=False)
        ws = writer.sheets[sheet_name]
        for cell in ws[1]:
            cell.font = HEADER_FONT
            cell.fill = HEADER_FILL
        for row in ws.iter_rows(min_row=2):
            for cell in row:
                cell.font = DATA_FONT
    return path
