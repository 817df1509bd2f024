from __future__ import annotations

from typing import Any

from account_import.models.row_data import RowData
from account_import.models.rule_table import RuleTable, RuleTag
from account_import.models.validation_report import ErrorType, FieldError

from .uniqueness import UniquenessTracker

"""Row checks: rule evaluation and store uniqueness.

evaluate_rules applies each column's tags in order:

- required: trimmed cell empty -> error, evaluation continues with the next
  columns so every missing field of the row is reported
- unique: value already claimed in this run -> error, evaluation of the row
  stops immediately; otherwise the value is claimed right away

check_store runs only for rows that passed evaluate_rules and stops at the first
unique field whose value already exists in the store.
"""

__all__ = [
    "evaluate_rules",
    "check_store",
]


def evaluate_rules(row: RowData, rules: RuleTable, tracker: UniquenessTracker) -> list[FieldError]:
    errors: list[FieldError] = []
    n = row.row_number
    for col in rules:
        value = row.cell(col.index)
        for tag in col.rules:
            if tag is RuleTag.REQUIRED:
                if not value.strip():
                    errors.append(
                        FieldError(col.field, n, ErrorType.REQUIRED, f"{col.field} row {n} is required")
                    )
            elif tag is RuleTag.UNIQUE:
                # 空値は required 側の責務 (重複扱いしない)
                if not value.strip():
                    continue
                if not tracker.claim(col.field, value):
                    errors.append(
                        FieldError(
                            col.field,
                            n,
                            ErrorType.NOT_UNIQUE,
                            f"{col.field} '{value}' is not unique row {n}",
                        )
                    )
                    return errors
    return errors


def check_store(row: RowData, rules: RuleTable, store: Any, table: str) -> list[FieldError]:
    """Reject the row when a unique value is already persisted.

    Raises:
        StoreError: propagated from the store (read failure is fatal)
    """
    n = row.row_number
    for col in rules.unique_columns():
        value = row.cell(col.index)
        if not value.strip():
            continue
        if store.exists_by_field(table, col.field, value):
            return [
                FieldError(
                    col.field,
                    n,
                    ErrorType.ALREADY_TAKEN,
                    f"{col.field} '{value}' already taken row {n}",
                )
            ]
    return []
