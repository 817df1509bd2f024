from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering.

The functions return the line body; the SUMMARY label is added by
log_summary(). Format:
entity={entity} rows={total} accepted={accepted} rejected={rejected}
inserted={inserted} errors={errors} policy={policy} elapsed_sec={elapsed}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # Format very small numbers to avoid scientific notation
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(result: ImportResult) -> str:
    """Render the SUMMARY line for an import result.

    Examples:
        >>> from datetime import datetime, timezone
        >>> from account_import.models.import_result import CommitPolicy, ImportStatus
        >>> t = datetime(2024, 1, 1, tzinfo=timezone.utc)
        >>> r = ImportResult(
        ...     entity="users", source="u.xlsx", status=ImportStatus.SUCCESS,
        ...     policy=CommitPolicy.BUFFER_THEN_COMMIT, total_rows=2, accepted_rows=2,
        ...     rejected_rows=0, inserted_rows=2, start_time=t, end_time=t,
        ...     elapsed_seconds=2.0,
        ... )
        >>> render_summary_line(r)
        'entity=users rows=2 accepted=2 rejected=0 inserted=2 errors=0 policy=buffer_then_commit elapsed_sec=2'
    """
    policy = "dry_run" if result.dry_run else result.policy.value
    return (
        f"entity={result.entity} "
        f"rows={result.total_rows} "
        f"accepted={result.accepted_rows} "
        f"rejected={result.rejected_rows} "
        f"inserted={result.inserted_rows} "
        f"errors={len(result.report)} "
        f"policy={policy} "
        f"elapsed_sec={_format_seconds(result.elapsed_seconds)}"
    )


def render_export_summary_line(entity: str, rows: int, path: str) -> str:
    return f"entity={entity} exported={rows} file={path}"
