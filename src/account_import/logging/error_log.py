from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from account_import.models.error_record import ErrorRecord
from account_import.models.validation_report import ValidationReport

"""Error log generation & buffering.

- JSON Lines with a fixed key set (no extra keys)
- One file per process start: `logs/errors-YYYYMMDD-HHMMSS.log` (UTC), created
  on first flush
- Records are buffered and written in one go by flush()
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines.

    Only the importer's coordinating thread appends (after the row tasks have
    joined), so no locking is done here.
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._logs_dir = logs_dir or LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def extend_from_report(self, file: str, entity: str, report: ValidationReport) -> None:
        for err in report:
            self._records.append(ErrorRecord.from_field_error(file, entity, err))

    def __len__(self) -> int:
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the log file.

        Returns:
            The log file path, or None when there was nothing to write (no file
            is created in that case).
        """
        if not self._records:
            return None
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
