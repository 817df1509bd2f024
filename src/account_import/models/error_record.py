from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

from .validation_report import FieldError

"""ErrorRecord model for error logging.

This module defines the ErrorRecord dataclass written to the JSON Lines error
log. It supports row=-1 as a sentinel value for file-level errors (unreadable
spreadsheet, store failure) where no specific row applies.
"""

__all__ = [
    "ErrorRecord",
    "FILE_LEVEL",
]

FILE_LEVEL = "<FILE_LEVEL>"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: spreadsheet file name being imported
        entity: target entity (users / customers)
        row: spreadsheet line number. Use -1 for file-level errors
        field: offending field, or "<FILE_LEVEL>"
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: human readable message
    """
    timestamp: str  # ISO8601 UTC
    file: str
    entity: str
    row: int  # 行番号。不明な場合 -1 許容
    field: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(
        file: str, entity: str, row: int, field: str, error_type: str, message: str
    ) -> ErrorRecord:
        """Create a new ErrorRecord with current UTC timestamp."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            entity=entity,
            row=row,
            field=field,
            error_type=error_type,
            message=message,
        )

    @staticmethod
    def from_field_error(file: str, entity: str, error: FieldError) -> ErrorRecord:
        return ErrorRecord.create(
            file=file,
            entity=entity,
            row=error.row,
            field=error.field,
            error_type=error.error_type,
            message=error.message,
        )

    @staticmethod
    def file_level(file: str, entity: str, error_type: str, message: str) -> ErrorRecord:
        return ErrorRecord.create(file, entity, -1, FILE_LEVEL, error_type, message)

    def to_json_line(self) -> str:
        """Serialize to one JSON Lines entry (fixed key set, no extras)."""
        return json.dumps(asdict(self), ensure_ascii=False)
