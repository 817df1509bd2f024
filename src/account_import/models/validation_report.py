from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any

"""Per-row outcomes and the aggregated ValidationReport.

Row tasks never touch a shared report. Each task returns a RowOutcome holding
its own FieldError list, and the importer merges all outcomes into one
ValidationReport after every task has finished. Merging happens on a single
thread, so the report itself needs no locking.
"""

__all__ = [
    "ErrorType",
    "FieldError",
    "RowOutcome",
    "ValidationReport",
]


class ErrorType:
    """error_type values used in FieldError and the JSON Lines error log."""
    REQUIRED = "REQUIRED"
    NOT_UNIQUE = "NOT_UNIQUE"
    ALREADY_TAKEN = "ALREADY_TAKEN"
    INSERT_FAILED = "INSERT_FAILED"


@dataclass(frozen=True)
class FieldError:
    field: str
    row: int  # spreadsheet line
    error_type: str
    message: str


@dataclass
class RowOutcome:
    """Result of one row task."""
    row: int
    errors: list[FieldError] = field(default_factory=list)
    record: Any | None = None  # materialized record when the row passed every check
    inserted: bool = False  # per_row policy only

    @property
    def accepted(self) -> bool:
        return not self.errors


class ValidationReport:
    """field name -> ordered error messages, each tagged with its row number."""

    def __init__(self) -> None:
        self._entries: dict[str, list[FieldError]] = {}

    def add(self, error: FieldError) -> None:
        self._entries.setdefault(error.field, []).append(error)

    def merge(self, outcomes: Iterable[RowOutcome]) -> None:
        # 行番号順に統合 (完了順に依存しない)
        for outcome in sorted(outcomes, key=lambda o: o.row):
            for err in outcome.errors:
                self.add(err)

    def __bool__(self) -> bool:
        return bool(self._entries)

    def __len__(self) -> int:
        return sum(len(v) for v in self._entries.values())

    def __iter__(self) -> Iterator[FieldError]:
        for errs in self._entries.values():
            yield from errs

    @property
    def fields(self) -> list[str]:
        return list(self._entries)

    def for_field(self, field_name: str) -> list[FieldError]:
        return list(self._entries.get(field_name, []))

    def rows(self) -> set[int]:
        return {e.row for e in self}

    def to_dict(self) -> dict[str, list[str]]:
        """Plain mapping suitable for a JSON error body."""
        return {f: [e.message for e in errs] for f, errs in self._entries.items()}
