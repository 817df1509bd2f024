from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any

import pandas as pd

from ..db.store import ListFilter
from ..excel.writer import write_styled_sheet
from ..models.records import EntitySpec

logger = logging.getLogger(__name__)

"""Export stored users / customers to a styled .xlsx.

File name: `<prefix>_YYYY-MM-DD_HHMMSS.xlsx` (user_..., customer_...), one sheet,
header from the entity's export columns, dates written as YYYY-MM-DD.
"""

FILE_TIMESTAMP_FMT = "%Y-%m-%d_%H%M%S"
DATE_FMT = "%Y-%m-%d"


@dataclass(frozen=True)
class ExportResult:
    entity: str
    path: Path
    rows: int


def _format_value(value: Any) -> Any:
    if isinstance(value, datetime | date):
        return value.strftime(DATE_FMT)
    return value


def export_records(
    store: Any,
    entity: EntitySpec,
    out_dir: Path,
    list_filter: ListFilter | None = None,
    now: datetime | None = None,
) -> ExportResult:
    """Query the store and write the matching records.

    Raises:
        StoreError: listing failed
    """
    headers = [h for h, _ in entity.export_columns]
    columns = [c for _, c in entity.export_columns]
    records = store.find_all(entity.table, columns, list_filter)

    data = [[_format_value(r.get(c)) for c in columns] for r in records]
    df = pd.DataFrame(data, columns=headers)

    stamp = (now or datetime.now()).strftime(FILE_TIMESTAMP_FMT)
    path = out_dir / f"{entity.export_prefix}_{stamp}.xlsx"
    write_styled_sheet(df, path, sheet_name=entity.export_sheet)
    logger.debug("entity=%s exported rows=%d path=%s", entity.name, len(df), path)
    return ExportResult(entity=entity.name, path=path, rows=len(df))
