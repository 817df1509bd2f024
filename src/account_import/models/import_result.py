from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from .validation_report import ValidationReport

"""ImportResult domain model and ImportStatus enum.

ImportResult is what SheetImporter.run returns for a completed run: either
SUCCESS (every row accepted and committed) or REJECTED (the ValidationReport is
non-empty). Fatal conditions (unreadable spreadsheet, store failure) are raised
as exceptions instead and never produce an ImportResult.
"""


class ImportStatus(Enum):
    """Outcome of an import run.

    - SUCCESS: all rows passed; records committed (or dry run)
    - REJECTED: at least one row failed validation; see report
    """
    SUCCESS = "success"
    REJECTED = "rejected"


class CommitPolicy(Enum):
    """When accepted rows are written to the store.

    - BUFFER_THEN_COMMIT: after every row passed, one batch insert in one
      transaction (all-or-nothing)
    - PER_ROW: each row task inserts its own record as soon as it passes;
      rows accepted before a rejection stay written
    """
    BUFFER_THEN_COMMIT = "buffer_then_commit"
    PER_ROW = "per_row"


@dataclass(frozen=True)
class ImportResult:
    entity: str
    source: str  # file name
    status: ImportStatus
    policy: CommitPolicy
    total_rows: int  # data rows processed (blank rows excluded)
    accepted_rows: int
    rejected_rows: int
    inserted_rows: int
    start_time: datetime
    end_time: datetime
    elapsed_seconds: float
    report: ValidationReport = field(default_factory=ValidationReport)
    dry_run: bool = False

    @property
    def ok(self) -> bool:
        return self.status is ImportStatus.SUCCESS
