from __future__ import annotations

from dataclasses import dataclass

"""RowData model for the spreadsheet importer.

RowData represents a single data row of a sheet after reading: the 1-based
spreadsheet line it came from and its cells as trimmed strings in column order.
"""

__all__ = [
    "RowData",
]


@dataclass(frozen=True)
class RowData:
    """One data row of a sheet (header excluded).

    The row_number is the spreadsheet line number: the header is line 1, so the
    first data row is line 2.
    """
    row_number: int  # spreadsheet line (1-based, header = 1)
    cells: tuple[str, ...]  # trimmed cell strings in column order

    def cell(self, index: int) -> str:
        """Return the cell at column `index`, or "" when the row is narrower."""
        if 0 <= index < len(self.cells):
            return self.cells[index]
        return ""

    @property
    def is_blank(self) -> bool:
        return all(c == "" for c in self.cells)
