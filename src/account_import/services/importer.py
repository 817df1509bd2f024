from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from pathlib import Path
from typing import IO, Any

from ..db.store import StoreError
from ..excel.reader import SpreadsheetError, read_sheet
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.import_result import CommitPolicy, ImportResult, ImportStatus
from ..models.records import EntitySpec
from ..models.row_data import RowData
from ..models.validation_report import ErrorType, FieldError, RowOutcome, ValidationReport
from ..security.passwords import hash_password
from .progress import ProgressTracker
from .rules import check_store, evaluate_rules
from .uniqueness import RowTurnstile, UniquenessTracker

logger = logging.getLogger(__name__)

"""Concurrent spreadsheet import.

SheetImporter.run() reads a sheet and dispatches one task per data row to a
thread pool. Each task runs, in order and with short-circuit:

1. rule evaluation (required / intra-file unique, shared locked tracker),
   taken in row order through a RowTurnstile so the first row of the file
   keeps a duplicated value
2. store uniqueness check (skipped in dry-run mode)
3. materialization (positional mapping, password hashing)
4. insert, only under CommitPolicy.PER_ROW

Tasks return a RowOutcome each. After every task has finished the outcomes are
merged in row order into one ValidationReport. A non-empty report rejects the
whole import; otherwise, under BUFFER_THEN_COMMIT, all records are written with
one batch insert in a single transaction.
"""


class SheetImporter:
    def __init__(
        self,
        entity: EntitySpec,
        store: Any | None,
        *,
        policy: CommitPolicy = CommitPolicy.BUFFER_THEN_COMMIT,
        max_workers: int | None = None,
        password_hasher: Callable[[str], str] = hash_password,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        """
        Args:
            entity: what is imported (table, rule table, record type)
            store: PostgresStore-like object; None = dry run (validation only)
            policy: commit policy
            max_workers: thread cap; None = one thread per data row
            password_hasher: one-way hash applied to the entity's hashed fields
            error_log: buffer receiving rejected rows and file-level failures
        """
        if max_workers is not None and max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.entity = entity
        self.store = store
        self.policy = policy
        self.max_workers = max_workers
        self.password_hasher = password_hasher
        self.error_log = error_log

    @property
    def dry_run(self) -> bool:
        return self.store is None

    def run(self, source: Path | IO[bytes], source_name: str | None = None) -> ImportResult:
        """Import one workbook.

        Raises:
            SpreadsheetError: the workbook cannot be read (before any row work)
            StoreError: store read failure, or commit failure under
                BUFFER_THEN_COMMIT (nothing written in that case)
        """
        name = source_name or (source.name if isinstance(source, Path) else "<stream>")
        try:
            sheet = read_sheet(source)
        except SpreadsheetError as e:
            self._log_file_error(name, "SPREADSHEET_ERROR", str(e))
            raise
        logger.debug(
            "file=%s sheet=%s header=%s rows=%d", name, sheet.sheet_name, sheet.header, len(sheet.rows)
        )
        return self.import_rows(sheet.rows, source_name=name)

    def import_rows(self, rows: Sequence[RowData], source_name: str = "<rows>") -> ImportResult:
        start_time = datetime.now(UTC)
        tracker = UniquenessTracker(self.entity.rules.unique_fields)

        try:
            outcomes = self._run_row_tasks(rows, tracker)
        except StoreError as e:
            self._log_file_error(source_name, "STORE_READ_ERROR", str(e))
            raise

        report = ValidationReport()
        report.merge(outcomes)
        accepted = [o for o in outcomes if o.accepted]
        inserted = sum(1 for o in outcomes if o.inserted)

        if report:
            status = ImportStatus.REJECTED
            if self.error_log is not None:
                self.error_log.extend_from_report(source_name, self.entity.name, report)
            if inserted:
                logger.warning(
                    "%s: %d row(s) were written before the import was rejected (policy=%s)",
                    source_name,
                    inserted,
                    self.policy.value,
                )
        else:
            status = ImportStatus.SUCCESS
            if self.policy is CommitPolicy.BUFFER_THEN_COMMIT and not self.dry_run:
                records = [o.record for o in accepted]
                try:
                    inserted = self.store.insert_batch(self.entity.table, records)
                except StoreError as e:
                    self._log_file_error(source_name, "DATABASE_INSERT_ERROR", str(e))
                    raise

        end_time = datetime.now(UTC)
        return ImportResult(
            entity=self.entity.name,
            source=source_name,
            status=status,
            policy=self.policy,
            total_rows=len(outcomes),
            accepted_rows=len(accepted),
            rejected_rows=len(outcomes) - len(accepted),
            inserted_rows=inserted,
            start_time=start_time,
            end_time=end_time,
            elapsed_seconds=(end_time - start_time).total_seconds(),
            report=report,
            dry_run=self.dry_run,
        )

    def _run_row_tasks(
        self, rows: Sequence[RowData], tracker: UniquenessTracker
    ) -> list[RowOutcome]:
        if not rows:
            return []
        ordered = sorted(rows, key=lambda r: r.row_number)
        turnstile = RowTurnstile()
        workers = self.max_workers or len(ordered)
        with ProgressTracker(len(rows), description=f"Importing {self.entity.name}") as progress:
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="row") as executor:
                futures = [
                    executor.submit(self._process_row, row, tracker, turnstile, i)
                    for i, row in enumerate(ordered)
                ]
                for _ in as_completed(futures):
                    progress.advance()
        # join 済: 行順に結果回収 (タスク内例外はここで再送出)
        return [f.result() for f in futures]

    def _process_row(
        self, row: RowData, tracker: UniquenessTracker, turnstile: RowTurnstile, position: int
    ) -> RowOutcome:
        with turnstile.turn(position):
            errors = evaluate_rules(row, self.entity.rules, tracker)
        if errors:
            logger.debug("%s row %d: rule violations=%d", self.entity.name, row.row_number, len(errors))
            return RowOutcome(row=row.row_number, errors=errors)

        if not self.dry_run:
            errors = check_store(row, self.entity.rules, self.store, self.entity.table)
            if errors:
                logger.debug("%s row %d: already taken in store", self.entity.name, row.row_number)
                return RowOutcome(row=row.row_number, errors=errors)

        record = self.entity.materialize(row, self.password_hasher, datetime.now(UTC))

        if self.policy is CommitPolicy.PER_ROW and not self.dry_run:
            try:
                self.store.insert(self.entity.table, record)
            except StoreError as e:
                n = row.row_number
                return RowOutcome(
                    row=n,
                    errors=[FieldError("insert", n, ErrorType.INSERT_FAILED, f"insert failed row {n}: {e}")],
                )
            return RowOutcome(row=row.row_number, record=record, inserted=True)

        return RowOutcome(row=row.row_number, record=record)

    def _log_file_error(self, source_name: str, error_type: str, message: str) -> None:
        if self.error_log is not None:
            self.error_log.append(
                ErrorRecord.file_level(source_name, self.entity.name, error_type, message)
            )
